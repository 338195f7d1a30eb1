"""Tests for CSV loading into the event store."""
import logging

import pandas as pd
import pytest

from pqmonitor.db import query_events, query_substations
from pqmonitor.ingest import _clean_row, _read_csv, load_events_csv, main, validate_rows
from pqmonitor.schema import PQEvent

EVENTS_CSV = """id,timestamp,event_type,is_mother_event,false_event,sarfi_70,substation_id,oc
e1,2024-03-01T08:00:00,voltage_dip,true,false,0.5,s1,East
,2024-03-02T09:30:00,voltage_dip,true,false,,s1,East
e3,not-a-date,voltage_dip,true,false,0.5,s1,East
e4,2024-03-03T10:00:00,voltage_swell,false,true,,,
"""

SUBSTATIONS_CSV = """id,code,name,voltage_level
s1,APB,Airport B,11kV
,XXX,missing id,
"""


@pytest.fixture
def events_csv(tmp_path):
    path = tmp_path / "events.csv"
    path.write_text(EVENTS_CSV)
    return path


@pytest.fixture
def substations_csv(tmp_path):
    path = tmp_path / "substations.csv"
    path.write_text(SUBSTATIONS_CSV)
    return path


def test_load_events_skips_invalid_rows(events_csv, caplog):
    with caplog.at_level(logging.WARNING, logger="pqmonitor.ingest"):
        df = load_events_csv(events_csv)
    assert len(df) == 3
    assert "Skipping row 3" in caplog.text
    assert df["timestamp"].dtype.kind == "M"


def test_generated_ids_are_stable(events_csv):
    first = load_events_csv(events_csv)
    second = load_events_csv(events_csv)
    assert first["id"].tolist() == second["id"].tolist()
    generated = first["id"].iloc[1]
    assert len(generated) == 24


def test_missing_values_take_model_defaults(events_csv):
    df = load_events_csv(events_csv).set_index("id")
    assert df.loc["e1", "is_mother_event"]
    assert df.loc["e4", "false_event"]
    assert pd.isna(df.loc["e4", "sarfi_70"])


def test_validate_rows_counts_skipped():
    rows = [{"id": "a", "timestamp": "2024-01-01T00:00:00", "event_type": "voltage_dip"}, {"id": "b"}]
    valid, skipped = validate_rows(rows, PQEvent)
    assert [e.id for e in valid] == ["a"]
    assert skipped == 1


def test_main_loads_store(tmp_db, events_csv, substations_csv, capsys):
    assert main(["--events", str(events_csv), "--substations", str(substations_csv)]) == 0
    assert len(query_events()) == 3
    assert query_substations()["code"].tolist() == ["APB"]
    out = capsys.readouterr().out
    assert "[INGEST] Upserted events: 3" in out


def test_main_requires_input():
    with pytest.raises(SystemExit):
        main([])


def test_empty_optional_cells_are_dropped(events_csv):
    rows = _read_csv(events_csv)
    e4 = _clean_row(rows[3])
    assert e4 == {
        "id": "e4",
        "timestamp": "2024-03-03T10:00:00",
        "event_type": "voltage_swell",
        "is_mother_event": "false",
        "false_event": "true",
    }
    PQEvent(**e4)


def test_clean_row_drops_nan():
    assert _clean_row({"id": "a", "oc": float("nan"), "sarfi_70": None, "location": "  "}) == {"id": "a"}


def test_row_with_only_required_cells_loads(tmp_path):
    path = tmp_path / "sparse.csv"
    path.write_text("id,timestamp,event_type,oc,location,sarfi_70\nx1,2024-03-01T00:00:00,voltage_dip,,,\n")
    df = load_events_csv(path)
    assert df["id"].tolist() == ["x1"]
