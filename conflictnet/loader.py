"""
Dataset loader and schema projector
===================================

Two steps:

1) `load_table` reads the ACLED export (CSV or Excel) into a pandas
   DataFrame of strings. Nothing is converted yet, so empty actor cells
   stay empty strings instead of turning into NaN.
2) `project_events` picks the columns the pipeline needs and converts each
   row into an immutable `Event` with a real `datetime.date`.

Key ideas:
- Column names are matched loosely (case, spaces and punctuation ignored)
  because exports differ slightly between ACLED download tools.
- Bad rows are collected, not dropped silently: each one becomes a
  `RowError` with its row number and event id.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple
import logging
import math
import re

import pandas as pd

from .config import default_columns
from .errors import (
    DateParseError, FatalitiesParseError, RowError, RowErrors, SchemaError, SourceReadError,
)
from .models import Event

logger = logging.getLogger(__name__)

# YYYY-MM-DD with any one of "-", "/", ".", " " (or nothing) used for both
# separators, ASCII digits only. A midnight time suffix from Excel exports
# is tolerated.
_DATE_RE = re.compile(r"^(\d{4})([-/. ]?)(\d{2})\2(\d{2})(?:[ T]\d{2}:\d{2}(?::\d{2})?)?$", re.ASCII)

# How many row errors are logged one by one before only the count is shown.
_LOG_ROW_ERRORS = 5


@dataclass(frozen=True)
class Projection:
    """Result of projecting a raw table: the good events and the bad rows."""
    events: Tuple[Event, ...]
    errors: List[RowError] = field(default_factory=list)
    input_rows: int = 0


def _raw_str(x) -> str:
    """Cell as read, only missing values become "". Used for grouping keys."""
    if x is None or (not isinstance(x, str) and pd.isna(x)): return ""
    return str(x)

def _to_str(x) -> str:
    if x is None or (not isinstance(x, str) and pd.isna(x)): return ""
    return str(x).strip()

def _to_float(x) -> Optional[float]:
    """Convert a cell to float, returning None if missing/invalid."""
    s = _to_str(x)
    if not s: return None
    try: return float(s)
    except ValueError: return None

def _to_int(x) -> Optional[int]:
    s = _to_str(x)
    if not s: return None
    try: return int(float(s))
    except (ValueError, OverflowError): return None

def _norm(s: str) -> str:
    return re.sub(r"[^a-z0-9]+", "", str(s).lower())


def parse_event_date(value) -> date:
    """Parse a YYYY-MM-DD style string into a date.

    Raises ValueError when the string does not match the grammar or is not a
    real calendar day (e.g. 2018-02-30).
    """
    s = _to_str(value)
    m = _DATE_RE.match(s)
    if not m:
        raise ValueError("expected YYYY-MM-DD")
    return date(int(m.group(1)), int(m.group(3)), int(m.group(4)))


def parse_fatalities(value) -> int:
    """Blank means zero. Anything else must be a non-negative whole number."""
    s = _to_str(value)
    if not s:
        return 0
    try:
        f = float(s)
    except ValueError:
        raise ValueError("not a number") from None
    if not math.isfinite(f) or f < 0 or f != int(f):
        raise ValueError("not a non-negative integer")
    return int(f)


def load_table(path, delimiter: str = ",") -> pd.DataFrame:
    """Read the raw export into a DataFrame of strings.

    `.xlsx` files are read with openpyxl; everything else is treated as
    delimited text.
    """
    p = Path(path)
    try:
        if p.suffix.lower() in (".xlsx", ".xlsm"):
            df = pd.read_excel(p, engine="openpyxl", dtype=str, keep_default_na=False)
        else:
            df = pd.read_csv(p, sep=delimiter, dtype=str, keep_default_na=False, encoding="utf-8")
    except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise SourceReadError(f"Cannot read {p}: {e}") from e
    df = df.rename(columns={c: str(c).strip() for c in df.columns})
    logger.info("Loaded %d rows, %d columns from %s", len(df), len(df.columns), p)
    return df


def resolve_columns(available, columns: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Map every Event field to an actual column of the table.

    Raises SchemaError listing every missing column at once. A column that
    matches more than one header (e.g. "actor1" and "actor1 " once headers
    are stripped) is reported as ambiguous rather than picked silently.
    """
    wanted = default_columns()
    wanted.update(columns or {})
    cols = [str(c) for c in available]
    by_norm: Dict[str, List[str]] = {}
    for c in cols:
        by_norm.setdefault(_norm(c), []).append(c)

    resolved: Dict[str, str] = {}
    missing: List[str] = []
    duplicates: List[str] = []
    for fname, source in wanted.items():
        exact = [c for c in cols if c == source]
        loose = by_norm.get(_norm(source), [])
        matches = exact or loose
        if not matches:
            missing.append(source)
        elif len(matches) > 1:
            duplicates.append(source)
        else:
            resolved[fname] = matches[0]
    if missing or duplicates:
        raise SchemaError(missing, cols, duplicates=duplicates)
    return resolved


def project_events(
    df: pd.DataFrame,
    columns: Optional[Mapping[str, str]] = None,
    date_policy: str = "skip",
) -> Projection:
    """Convert the raw table into `Event` records.

    Rows whose date or fatality count cannot be parsed are left out of the
    events and reported in `Projection.errors`. With date_policy="fail"
    every row is still checked, then `RowErrors` is raised with the full
    list.
    """
    colmap = resolve_columns(df.columns, columns)
    names = list(colmap)
    sub = df[[colmap[n] for n in names]]

    events: List[Event] = []
    errors: List[RowError] = []
    for rownum, values in enumerate(sub.itertuples(index=False, name=None), start=1):
        raw = dict(zip(names, values))
        event_id = _to_str(raw["event_id_cnty"])

        try:
            event_date = parse_event_date(raw["event_date"])
        except ValueError as e:
            errors.append(DateParseError(rownum, event_id, raw["event_date"], str(e)))
            continue
        try:
            fatalities = parse_fatalities(raw["fatalities"])
        except ValueError as e:
            errors.append(FatalitiesParseError(rownum, event_id, raw["fatalities"], str(e)))
            continue

        year = _to_int(raw["year"])
        events.append(Event(
            event_id_cnty=event_id,
            event_date=event_date,
            year=year if year is not None else event_date.year,
            event_type=_raw_str(raw["event_type"]),
            sub_event_type=_raw_str(raw["sub_event_type"]),
            actor1=_to_str(raw["actor1"]),
            actor2=_to_str(raw["actor2"]),
            admin1=_to_str(raw["admin1"]),
            admin2=_to_str(raw["admin2"]),
            location=_to_str(raw["location"]),
            latitude=_to_float(raw["latitude"]),
            longitude=_to_float(raw["longitude"]),
            fatalities=fatalities,
        ))

    for err in errors[:_LOG_ROW_ERRORS]:
        logger.warning("Skipping %s", err)
    if len(errors) > _LOG_ROW_ERRORS:
        logger.warning("... and %d more bad rows", len(errors) - _LOG_ROW_ERRORS)

    if errors and date_policy == "fail":
        raise RowErrors(errors)

    logger.info("Projected %d of %d rows", len(events), len(df))
    return Projection(events=tuple(events), errors=errors, input_rows=len(df))
