"""
Dataset loader (Storm Data CSV -> RawRecord list)
=================================================

This module reads the NOAA Storm Data CSV (plain, .bz2 or .gz; pandas infers
the compression from the suffix) and converts each row into a `RawRecord`.

Key ideas:
- We try multiple possible column names because exports vary
  ("EVTYPE" in the classic file, "EVENT_TYPE" in newer ones).
- Only the seven needed columns are read.
- Blank numbers become 0 and blank scale codes become "" (no exponent).
- The loader returns a list of immutable records; the file is never edited.
"""

from __future__ import annotations
from typing import List, Optional, Sequence
import os
import re
import pandas as pd
import structlog
from .models import RawRecord

log = structlog.get_logger(__name__)

COLUMNS = {
    "event_type": ("EVTYPE", "EVENT_TYPE", "Event Type"),
    "fatalities": ("FATALITIES", "DEATHS", "Fatalities"),
    "injuries": ("INJURIES", "Injuries"),
    "prop_dmg": ("PROPDMG", "PROP_DMG", "Property Damage"),
    "prop_dmg_exp": ("PROPDMGEXP", "PROP_DMG_EXP", "Property Damage Exp"),
    "crop_dmg": ("CROPDMG", "CROP_DMG", "Crop Damage"),
    "crop_dmg_exp": ("CROPDMGEXP", "CROP_DMG_EXP", "Crop Damage Exp"),
}

def _to_float(x) -> float:
    """Convert a cell to float; missing or invalid becomes 0."""
    if pd.isna(x): return 0.0
    try: return float(x)
    except (TypeError, ValueError): return 0.0

def _to_str(x) -> str:
    if pd.isna(x): return ""
    return str(x).strip()

def _norm(s: str) -> str:
    return re.sub(r"[^a-z0-9]+", "", str(s).lower())

def _col(columns: Sequence[str], *names: str) -> str:
    cols = list(columns)
    for n in names:
        if n in cols:
            return n
    norm_map = {_norm(c): c for c in cols}
    for n in names:
        nn = _norm(n)
        if nn in norm_map:
            return norm_map[nn]
    raise KeyError(f"Missing required column. Tried={names}. Available={cols}")

def resolve_columns(columns: Sequence[str]) -> dict:
    """Map RawRecord field names to the actual column names of a file."""
    return {field: _col(columns, *names) for field, names in COLUMNS.items()}

def records_from_frame(df: pd.DataFrame) -> List[RawRecord]:
    cols = resolve_columns([str(c).strip() for c in df.columns])
    df = df.rename(columns={c: str(c).strip() for c in df.columns})
    # itertuples/iterrows are slow on ~900k rows; zip plain columns instead
    rows = zip(*(df[cols[f]].tolist() for f in COLUMNS))
    return [
        RawRecord(
            event_type=_to_str(ev),
            fatalities=_to_float(fat),
            injuries=_to_float(inj),
            prop_dmg=_to_float(pd_),
            prop_dmg_exp=_to_str(pexp),
            crop_dmg=_to_float(cd),
            crop_dmg_exp=_to_str(cexp),
            row_id=i,
        )
        for i, (ev, fat, inj, pd_, pexp, cd, cexp) in enumerate(rows)
    ]

def load_storm_csv(path: str, nrows: Optional[int] = None) -> List[RawRecord]:
    """Read a Storm Data CSV and return its rows as RawRecords."""
    if not os.path.exists(path):
        raise FileNotFoundError(f"Storm data file not found: {path}")

    header = pd.read_csv(path, nrows=0)
    cols = resolve_columns([str(c).strip() for c in header.columns])
    # map stripped names back to the raw header for usecols
    raw_by_stripped = {str(c).strip(): c for c in header.columns}
    usecols = [raw_by_stripped[c] for c in cols.values()]
    str_cols = {raw_by_stripped[cols[f]]: str for f in ("event_type", "prop_dmg_exp", "crop_dmg_exp")}

    df = pd.read_csv(path, usecols=usecols, dtype=str_cols, keep_default_na=True, nrows=nrows)
    records = records_from_frame(df)
    log.info("loaded storm data", path=path, rows=len(records))
    return records
