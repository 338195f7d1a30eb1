# pqmonitor/sarfi.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from pqmonitor.config import AGGREGATION_KEYS, MONTH_NAMES, NOT_AVAILABLE, SARFI_HISTORY_YEARS
from pqmonitor.stats import Events, resolve_now, events_frame, sarfi_eligible

DETAIL_COLUMNS = ["sequence", "substation_code", "voltage_level", "timestamp", "oc", "sarfi70", "event_id"]
MONTHLY_COLUMNS = ["year", "month", "label", "sarfi70_score", "event_count"]
AGGREGATE_COLUMNS = ["key"] + MONTH_NAMES + ["Total"]


def _eligible(events: Events) -> pd.DataFrame:
    df = events_frame(events)
    df = df[sarfi_eligible(df) & df["ts"].notna()].copy()
    df["year"] = df["ts"].dt.year
    df["month"] = df["ts"].dt.month
    return df


def _label(value) -> str:
    if value is None or pd.isna(value):
        return NOT_AVAILABLE
    s = str(value).strip()
    return s or NOT_AVAILABLE


def monthly_sarfi70(events: Events, now=None, years: int = SARFI_HISTORY_YEARS) -> pd.DataFrame:
    """
    SARFI-70 score per calendar month for the last `years` years (current year included).
    Months after `now` are left out; months without events score 0.
    """
    now = resolve_now(now)
    start_year = now.year - (years - 1)

    df = _eligible(events)
    df = df[(df["year"] >= start_year) & (df["year"] <= now.year)]

    totals: Dict[Tuple[int, int], Tuple[float, int]] = {}
    if not df.empty:
        for (year, month), grp in df.groupby(["year", "month"]):
            totals[(int(year), int(month))] = (float(grp["sarfi_70"].sum()), len(grp))

    rows: List[Dict[str, Any]] = []
    for year in range(start_year, now.year + 1):
        for month in range(1, 13):
            if year == now.year and month > now.month:
                continue
            score, count = totals.get((year, month), (0.0, 0))
            rows.append(
                {
                    "year": year,
                    "month": month,
                    "label": f"{MONTH_NAMES[month - 1]} {year}",
                    "sarfi70_score": score,
                    "event_count": count,
                }
            )
    return pd.DataFrame(rows, columns=MONTHLY_COLUMNS)


def month_detail(
    events: Events,
    substations: Optional[Events],
    year: int,
    month: int,
    sort_by: str = "timestamp",
    ascending: bool = False,
) -> pd.DataFrame:
    """
    Table of the SARFI-70 events behind one point of the monthly chart.
    sequence follows input order and is assigned before sorting.
    """
    if sort_by not in DETAIL_COLUMNS:
        raise ValueError(f"unknown sort column: {sort_by}")

    df = _eligible(events)
    df = df[(df["year"] == year) & (df["month"] == month)]

    codes: Dict[str, str] = {}
    if substations is not None:
        subs = substations if isinstance(substations, pd.DataFrame) else pd.DataFrame([dict(s) for s in substations])
        if not subs.empty and "id" in subs.columns:
            code_col = subs["code"] if "code" in subs.columns else pd.Series([None] * len(subs), index=subs.index)
            codes = {str(i): _label(c) for i, c in zip(subs["id"], code_col)}

    out = pd.DataFrame(
        {
            "sequence": range(1, len(df) + 1),
            "substation_code": [codes.get(str(s), NOT_AVAILABLE) if s is not None else NOT_AVAILABLE for s in df["substation_id"]],
            "voltage_level": [_label(v) for v in df["voltage_level"]],
            "timestamp": df["ts"].tolist(),
            "oc": [_label(v) for v in df["oc"]],
            "sarfi70": df["sarfi_70"].tolist(),
            "event_id": [_label(v) for v in df["id"]],
        },
        columns=DETAIL_COLUMNS,
    )
    return out.sort_values(sort_by, ascending=ascending, kind="stable").reset_index(drop=True)


def aggregate_sarfi70(events: Events, year: int, by: str = "oc") -> pd.DataFrame:
    """
    SARFI-70 sums per OC (or location) and month of `year`, plus a row Total.
    One row per key, sorted by key ignoring case.
    """
    if by not in AGGREGATION_KEYS:
        raise ValueError(f"unknown aggregation key: {by} (expected one of {AGGREGATION_KEYS})")

    df = _eligible(events)
    df = df[df["year"] == year].copy()
    df["key"] = df[by].map(_label)

    if df.empty:
        return pd.DataFrame(columns=AGGREGATE_COLUMNS)

    pivot = df.pivot_table(index="key", columns="month", values="sarfi_70", aggfunc="sum", fill_value=0.0)
    pivot = pivot.reindex(columns=range(1, 13), fill_value=0.0)
    pivot.columns = MONTH_NAMES
    pivot["Total"] = pivot[MONTH_NAMES].sum(axis=1)
    pivot = pivot.reset_index()
    pivot = pivot.sort_values("key", key=lambda s: s.str.casefold(), kind="stable").reset_index(drop=True)
    return pivot[AGGREGATE_COLUMNS]
