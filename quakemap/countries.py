"""
Country identity resolution: free-text boundary names -> economic country codes.

The alias table is built from the GDP series (name + code columns). Lookup is
exact first, then a bidirectional substring match over the table in insertion
order, so the first registered name wins ties.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

import pandas as pd

from .helpers import _find_col

logger = logging.getLogger("quakemap.countries")

# boundary-file spellings -> spelling used by the economic series
COUNTRY_NAME_VARIATIONS: Dict[str, str] = {
    "united states of america": "united states",
    "united states": "united states",
    "usa": "united states",
    "russia": "russian federation",
    "south korea": "korea, rep.",
    "north korea": "korea, dem. people's rep.",
    "uk": "united kingdom",
    "united kingdom": "united kingdom",
}


def normalize_country_name(name) -> str:
    if name is None or (isinstance(name, float) and pd.isna(name)):
        return ""
    normalized = str(name).lower().strip()
    return COUNTRY_NAME_VARIATIONS.get(normalized, normalized)


@dataclass
class CountryAliasTable:
    """Ordered normalized-name -> code map plus the inverse code -> name map."""
    name_to_code: Dict[str, str] = field(default_factory=dict)
    code_to_name: Dict[str, str] = field(default_factory=dict)

    def register(self, name, code) -> None:
        normalized = normalize_country_name(name)
        code = "" if code is None or (isinstance(code, float) and pd.isna(code)) else str(code).strip()
        if not normalized or not code:
            return
        if normalized not in self.name_to_code:
            self.name_to_code[normalized] = code
        self.code_to_name[code] = normalized

    def __len__(self) -> int:
        return len(self.name_to_code)


def build_alias_table(*series: pd.DataFrame) -> CountryAliasTable:
    """
    Register every (name, code) pair across the given economic frames, in
    frame order then row order. Accepts either a `country` or `country_name`
    column for the name.
    """
    table = CountryAliasTable()
    for df in series:
        if df is None or df.empty:
            continue
        name_col = _find_col(df, "country", "country_name")
        code_col = _find_col(df, "country_code")
        if name_col is None or code_col is None:
            logger.warning(f"[countries] frame without name/code columns skipped: {list(df.columns)}")
            continue
        for name, code in zip(df[name_col].tolist(), df[code_col].tolist()):
            table.register(name, code)
    logger.info(f"[countries] alias table: names={len(table.name_to_code):,} codes={len(table.code_to_name):,}")
    return table


def resolve_country_code(raw_name, table: CountryAliasTable) -> Optional[str]:
    """Code for a boundary name, or None when nothing in the table matches."""
    if not raw_name:
        return None
    normalized = normalize_country_name(raw_name)
    if not normalized:
        return None

    code = table.name_to_code.get(normalized)
    if code:
        return code

    for known, known_code in table.name_to_code.items():
        if known in normalized or normalized in known:
            return known_code

    logger.debug(f"[countries] no economic match for {raw_name!r}")
    return None


def resolve_many(names: Iterable, table: CountryAliasTable) -> Dict[str, Optional[str]]:
    return {n: resolve_country_code(n, table) for n in names}
