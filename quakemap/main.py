# ----
# main.py
# ----
import os, sys, json, logging, argparse, time
from pathlib import Path

from dotenv import load_dotenv

from .helpers import setup_logging, log_mem, data_path, output_path, format_usd, LAST_YEAR
from .cleaning import clean_all
from .unify import load_intermediate, build_unified_dataset, write_unified, load_unified_dataset
from .topology import load_country_features
from .session import MapSession
from .choropleth import write_choropleth
from .timeline import format_year_month, parse_year_month, year_month_key

load_dotenv()

UNIFIED_FILE = "unified_dataset.csv"


# ---------- stages ----------
def run_clean(raw_dir, intermediate_dir):
    logging.info(f"[clean] {raw_dir} -> {intermediate_dir}")
    written = clean_all(raw_dir, intermediate_dir)
    log_mem("after clean")
    return written


def run_build(intermediate_dir, processed_dir) -> Path:
    t0 = time.time()
    frames = load_intermediate(intermediate_dir)
    unified = build_unified_dataset(frames)
    out = write_unified(unified, Path(processed_dir) / UNIFIED_FILE)
    logging.info(f"[unify] build done | elapsed={time.time()-t0:.2f}s")
    log_mem("after build")
    return out


def run_choropleth(unified_path, topology_path, year_month: str, output_folder) -> dict:
    """Styled countries + style map for one selected month, written as GeoJSON and JSON."""
    data = load_unified_dataset(unified_path)
    features = load_country_features(topology_path)
    session = MapSession.build(data, features)
    frame = session.select(year_month)

    styled = session.choropleth.styled_frame(frame.year)
    geojson_path = write_choropleth(styled, Path(output_folder) / f"choropleth_{frame.year}.geojson")

    styles_path = Path(output_folder) / f"styles_{frame.year}.json"
    with styles_path.open("w", encoding="utf-8") as f:
        json.dump(frame.style_dicts(), f, indent=2)
    logging.info(f"[choropleth] wrote {len(frame.styles):,} styles -> {styles_path}")

    with_gdp = styled["gdp_total"].notna()
    if with_gdp.any():
        top = styled.loc[with_gdp].sort_values("gdp_total", ascending=False).iloc[0]
        logging.info(f"[choropleth] {frame.year}: largest economy {top['country_name']} ({format_usd(float(top['gdp_total']))})")
    logging.info(f"[choropleth] {format_year_month(frame.year_month)}: events shown={len(frame.events):,} | "
                 + ", ".join(f"{k}={len(v):,}" for k, v in frame.infrastructure.items()))
    log_mem("after choropleth")
    return {"geojson": geojson_path, "styles": styles_path}


def main(
    run_cleaning: bool = False,
    run_building: bool = False,
    run_rendering: bool = True,
    raw_dir=None,
    intermediate_dir=None,
    processed_dir=None,
    topology_path=None,
    year_month: str = year_month_key(LAST_YEAR, 12),
    output_folder: str = None,
    log_level: str = "INFO",
):
    raw_dir = Path(raw_dir or data_path("raw"))
    intermediate_dir = Path(intermediate_dir or data_path("intermediate"))
    processed_dir = Path(processed_dir or data_path("processed"))
    topology_path = Path(topology_path or data_path("world", "countries-110m.json"))
    output_folder = str(output_folder or output_path(""))

    os.makedirs(output_folder, exist_ok=True)
    setup_logging(output_folder, level=getattr(logging, log_level))
    logging.info("Starting quakemap pipeline...")

    results = {}
    if run_cleaning:
        results["clean"] = run_clean(raw_dir, intermediate_dir)
    if run_building:
        results["build"] = run_build(intermediate_dir, processed_dir)
    if run_rendering:
        results["choropleth"] = run_choropleth(processed_dir / UNIFIED_FILE, topology_path, year_month, output_folder)

    logging.info("Pipeline completed.")
    return results


def _year_month_arg(s: str) -> str:
    # accepts "2015" (-> December) or "2015-06"
    s = s.strip()
    if s.isdigit():
        return year_month_key(int(s), 12)
    try:
        year, month = parse_year_month(s)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))
    return year_month_key(year, month)


# ---- CLI ----
if __name__ == "__main__":
    ap = argparse.ArgumentParser(description="Seismic exposure + GDP choropleth pipeline")
    ap.add_argument("--clean", action="store_true", help="raw CSVs -> intermediate")
    ap.add_argument("--build", action="store_true", help="intermediate -> processed unified dataset")
    ap.add_argument("--choropleth", action="store_true", help="unified dataset + topology -> styled GeoJSON")
    ap.add_argument("--raw-dir", type=Path, default=None)
    ap.add_argument("--intermediate-dir", type=Path, default=None)
    ap.add_argument("--processed-dir", type=Path, default=None)
    ap.add_argument("--topology", type=Path, default=None, help="TopoJSON with a 'countries' object")
    ap.add_argument("--year", type=_year_month_arg, default=year_month_key(LAST_YEAR, 12),
                    help="YYYY or YYYY-MM (default: last month of the timeline)")
    ap.add_argument("--output-folder", default=None)
    ap.add_argument("--log-level", choices=["DEBUG","INFO","WARNING","ERROR"], default="INFO")
    args = ap.parse_args()

    # no stage flag -> run everything
    any_stage = args.clean or args.build or args.choropleth
    try:
        main(
            run_cleaning=args.clean or not any_stage,
            run_building=args.build or not any_stage,
            run_rendering=args.choropleth or not any_stage,
            raw_dir=args.raw_dir,
            intermediate_dir=args.intermediate_dir,
            processed_dir=args.processed_dir,
            topology_path=args.topology,
            year_month=args.year,
            output_folder=args.output_folder,
            log_level=args.log_level,
        )
    except (FileNotFoundError, ValueError) as e:
        # TopologyError is a ValueError
        logging.error(f"Pipeline failed: {e}")
        sys.exit(1)
