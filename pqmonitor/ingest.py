# pqmonitor/ingest.py
from __future__ import annotations

import argparse
import hashlib
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type

import pandas as pd
from pydantic import BaseModel, ValidationError

from pqmonitor.db import EVENT_COLUMNS, SUBSTATION_COLUMNS, upsert_events, upsert_substations
from pqmonitor.schema import PQEvent, Substation
from pqmonitor.stats import parse_ts

logger = logging.getLogger(__name__)

# Fields that feed the generated id when a row has none
ID_FIELDS = ["timestamp", "event_type", "substation_id", "meter_id", "magnitude", "duration"]


def _safe_str(x) -> str:
    return "" if x is None else str(x)

def _hash_id(*parts: str) -> str:
    h = hashlib.sha256()
    for p in parts:
        h.update(_safe_str(p).encode("utf-8", errors="ignore"))
        h.update(b"|")
    return h.hexdigest()[:24]

def _clean_row(row: Dict[str, Any]) -> Dict[str, Any]:
    out = {}
    for k, v in row.items():
        if v is None:
            continue
        if isinstance(v, str):
            v = v.strip()
            if not v:
                continue
        elif isinstance(v, float) and pd.isna(v):
            continue
        out[k] = v
    return out

def _read_csv(path: Path) -> List[Dict[str, Any]]:
    # empty cells stay "" and are dropped by _clean_row
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    return df.to_dict(orient="records")

def validate_rows(rows: Sequence[Dict[str, Any]], model: Type[BaseModel], with_ids: bool = False) -> Tuple[List[BaseModel], int]:
    valid: List[BaseModel] = []
    skipped = 0
    for i, raw in enumerate(rows):
        row = _clean_row(raw)
        if with_ids and not row.get("id"):
            row["id"] = _hash_id(*(row.get(f) for f in ID_FIELDS))
        try:
            valid.append(model(**row))
        except ValidationError as e:
            skipped += 1
            logger.warning("Skipping row %d: %d validation error(s): %s", i + 1, e.error_count(), e.errors()[0]["msg"])
    return valid, skipped

def events_to_frame(events: Sequence[PQEvent]) -> pd.DataFrame:
    df = pd.DataFrame([e.model_dump() for e in events], columns=EVENT_COLUMNS)
    # DuckDB TIMESTAMP is naive; keep local wall time
    df["timestamp"] = pd.to_datetime(df["timestamp"].map(parse_ts))
    return df

def load_events_csv(path: Path) -> pd.DataFrame:
    events, skipped = validate_rows(_read_csv(path), PQEvent, with_ids=True)
    df = events_to_frame(events)
    print(f"[INGEST] events file={path} valid={len(df)} skipped={skipped}")
    return df

def load_substations_csv(path: Path) -> pd.DataFrame:
    subs, skipped = validate_rows(_read_csv(path), Substation)
    df = pd.DataFrame([s.model_dump() for s in subs], columns=SUBSTATION_COLUMNS)
    print(f"[INGEST] substations file={path} valid={len(df)} skipped={skipped}")
    return df

def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Load PQ events and substations from CSV into the local store.")
    ap.add_argument("--events", type=Path, help="CSV of PQ events")
    ap.add_argument("--substations", type=Path, help="CSV of substations")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    if not args.events and not args.substations:
        ap.error("nothing to load: pass --events and/or --substations")

    if args.substations:
        subs = load_substations_csv(args.substations)
        upsert_substations(subs)
        print(f"[INGEST] Upserted substations: {len(subs)}")

    if args.events:
        events = load_events_csv(args.events)
        if events.empty:
            print("[INGEST] No valid events.")
        else:
            upsert_events(events)
            print(f"[INGEST] Upserted events: {len(events)}")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
