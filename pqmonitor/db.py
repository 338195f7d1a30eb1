# pqmonitor/db.py
from __future__ import annotations

from typing import Optional, List
import duckdb
import pandas as pd

from pqmonitor import config

# Canonical column order (inserts go by name, this list is the truth)
EVENT_COLUMNS: List[str] = [
    "id",
    "timestamp",
    "event_type",
    "is_mother_event",
    "is_child_event",
    "parent_event_id",
    "false_event",
    "sarfi_70",
    "magnitude",
    "duration",
    "substation_id",
    "meter_id",
    # meter attributes
    "oc",
    "location",
    "voltage_level",
]

SUBSTATION_COLUMNS: List[str] = ["id", "code", "name", "voltage_level", "region"]


def connect() -> duckdb.DuckDBPyConnection:
    con = duckdb.connect(str(config.DB_PATH))

    con.execute(
        """
        CREATE TABLE IF NOT EXISTS pq_events (
          id VARCHAR PRIMARY KEY,
          timestamp TIMESTAMP,
          event_type VARCHAR,
          is_mother_event BOOLEAN,
          is_child_event BOOLEAN,
          parent_event_id VARCHAR,
          false_event BOOLEAN,
          sarfi_70 DOUBLE,
          magnitude DOUBLE,
          duration DOUBLE,
          substation_id VARCHAR,
          meter_id VARCHAR,

          oc VARCHAR,
          location VARCHAR,
          voltage_level VARCHAR
        );
        """
    )
    con.execute(
        """
        CREATE TABLE IF NOT EXISTS substations (
          id VARCHAR PRIMARY KEY,
          code VARCHAR,
          name VARCHAR,
          voltage_level VARCHAR,
          region VARCHAR
        );
        """
    )

    return con


def _upsert(table: str, columns: List[str], df: pd.DataFrame) -> None:
    """
    Delete-then-insert by id:
    - missing columns are inserted as NULL
    - rows are inserted by column name, not by position
    """
    if df is None or df.empty:
        return

    df = df.copy()
    for c in columns:
        if c not in df.columns:
            df[c] = None
    df = df[columns]

    con = connect()
    try:
        ids = df["id"].astype(str).tolist()
        con.execute(f"DELETE FROM {table} WHERE id IN (SELECT * FROM UNNEST(?))", [ids])

        con.register("incoming", df)
        cols_sql = ", ".join(columns)
        con.execute(f"INSERT INTO {table} ({cols_sql}) SELECT {cols_sql} FROM incoming")
        con.unregister("incoming")
    finally:
        con.close()


def upsert_events(df: pd.DataFrame) -> None:
    _upsert("pq_events", EVENT_COLUMNS, df)


def upsert_substations(df: pd.DataFrame) -> None:
    _upsert("substations", SUBSTATION_COLUMNS, df)


def query_events(
    since_ts: Optional[str] = None,
    event_type: Optional[str] = None,
    only_mother: bool = False,
) -> pd.DataFrame:
    con = connect()
    wh = ["1 = 1"]
    params = []

    if since_ts:
        wh.append("timestamp >= ?")
        params.append(since_ts)

    if event_type and event_type != "all":
        wh.append("event_type = ?")
        params.append(event_type)

    if only_mother:
        wh.append("is_mother_event")

    where_sql = " AND ".join(wh)
    q = f"""
    SELECT * FROM pq_events
    WHERE {where_sql}
    ORDER BY timestamp DESC
    """
    try:
        return con.execute(q, params).df()
    finally:
        con.close()


def query_substations() -> pd.DataFrame:
    con = connect()
    try:
        return con.execute("SELECT * FROM substations ORDER BY code").df()
    finally:
        con.close()
