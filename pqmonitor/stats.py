# pqmonitor/stats.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Union

import pandas as pd
from dateutil import parser
from pydantic import BaseModel

from pqmonitor.config import (
    RECENT_WINDOW_HOURS,
    SARFI_DECIMALS,
    SARFI_MISSING_VALUE,
    VOLTAGE_DIP,
)

logger = logging.getLogger(__name__)

Events = Union[pd.DataFrame, Iterable[Any], None]

FLAG_COLUMNS = ["is_mother_event", "is_child_event", "false_event"]
OPTIONAL_COLUMNS = [
    "id",
    "event_type",
    "parent_event_id",
    "substation_id",
    "meter_id",
    "oc",
    "location",
    "voltage_level",
]

_TRUE_STRINGS = {"true", "t", "1", "yes", "y"}

# Missing date parts resolve to the 1st at midnight, never to today
_PARSE_DEFAULT = datetime(2000, 1, 1)

# frames already built by events_frame carry this in .attrs
_NORMALIZED = "pqmonitor_normalized"


def parse_ts(value) -> Optional[datetime]:
    """
    Normalize a timestamp to a naive datetime on the local clock.
    Aware values are converted to local time; naive values are kept as wall time.
    Returns None for anything that cannot be parsed.
    """
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    elif isinstance(value, str):
        try:
            value = parser.parse(value, default=_PARSE_DEFAULT)
        except (ValueError, OverflowError):
            return None
    elif not isinstance(value, datetime):
        return None

    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value


def _as_bool(v) -> bool:
    if v is None:
        return False
    if isinstance(v, str):
        return v.strip().lower() in _TRUE_STRINGS
    try:
        if pd.isna(v):
            return False
    except (TypeError, ValueError):
        pass
    return bool(v)


def resolve_now(now) -> datetime:
    if now is None:
        return datetime.now()
    resolved = parse_ts(now)
    if resolved is None:
        raise ValueError(f"invalid reference time: {now!r}")
    return resolved


def events_frame(events: Events) -> pd.DataFrame:
    """
    Build a normalized copy of the event collection:
    - ts: parsed timestamp (NaT when missing or unparsable)
    - boolean flags with missing -> False
    - sarfi_70 numeric with missing -> SARFI_MISSING_VALUE
    Accepts a DataFrame, dicts or PQEvent models. The input is never mutated.
    A frame returned by this function is passed through as a copy, so callers
    can normalize once and reuse it without repeating the warning.
    """
    if isinstance(events, pd.DataFrame):
        if events.attrs.get(_NORMALIZED):
            return events.copy()
        df = events.copy()
    else:
        rows = [e.model_dump() if isinstance(e, BaseModel) else dict(e) for e in (events or [])]
        df = pd.DataFrame(rows)

    if "timestamp" not in df.columns:
        df["timestamp"] = None
    for c in OPTIONAL_COLUMNS:
        if c not in df.columns:
            df[c] = None
    for c in FLAG_COLUMNS:
        if c not in df.columns:
            df[c] = False
        df[c] = df[c].map(_as_bool).astype(bool)

    if "sarfi_70" not in df.columns:
        df["sarfi_70"] = SARFI_MISSING_VALUE
    df["sarfi_70"] = pd.to_numeric(df["sarfi_70"], errors="coerce").fillna(SARFI_MISSING_VALUE).astype(float)

    df["ts"] = pd.to_datetime(df["timestamp"].map(parse_ts), errors="coerce")

    bad = int(df["ts"].isna().sum())
    if bad:
        logger.warning("Excluded %d event(s) with missing or unparsable timestamps from time windows", bad)
    df.attrs = {**df.attrs, _NORMALIZED: True}
    return df


def same_month_mask(ts: pd.Series, now: datetime) -> pd.Series:
    return (ts.dt.year == now.year) & (ts.dt.month == now.month)


def sarfi_eligible(df: pd.DataFrame) -> pd.Series:
    # voltage-dip mother events not flagged as false
    return (df["event_type"] == VOLTAGE_DIP) & df["is_mother_event"] & ~df["false_event"]


def _recent(df: pd.DataFrame, now: datetime, hours: int) -> int:
    # strictly after the cutoff instant
    cutoff = pd.Timestamp(now) - pd.Timedelta(hours=hours)
    return int((df["ts"] > cutoff).sum())


def _month(df: pd.DataFrame, now: datetime) -> int:
    return int(same_month_mask(df["ts"], now).sum())


def _sarfi70_sum(df: pd.DataFrame, now: datetime) -> float:
    mask = sarfi_eligible(df) & same_month_mask(df["ts"], now)
    return float(df.loc[mask, "sarfi_70"].sum())


def format_sarfi(value: float) -> str:
    return f"{value:.{SARFI_DECIMALS}f}"


def recent_count(events: Events, now=None, hours: int = RECENT_WINDOW_HOURS) -> int:
    return _recent(events_frame(events), resolve_now(now), hours)


def month_count(events: Events, now=None) -> int:
    return _month(events_frame(events), resolve_now(now))


def sarfi70_monthly_sum(events: Events, now=None) -> float:
    return _sarfi70_sum(events_frame(events), resolve_now(now))


def sarfi70_monthly_total(events: Events, now=None) -> str:
    return format_sarfi(sarfi70_monthly_sum(events, now))


def dashboard_stats(events: Events, substations=None, now=None) -> Dict[str, Any]:
    """Values for the three stat cards. Substations are accepted but not used."""
    now = resolve_now(now)
    df = events_frame(events)
    return {
        "recent_24h": _recent(df, now, RECENT_WINDOW_HOURS),
        "month_events": _month(df, now),
        "sarfi70_month": format_sarfi(_sarfi70_sum(df, now)),
    }
