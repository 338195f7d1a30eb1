"""Shared fixtures for pqmonitor tests."""
import pytest

from pqmonitor import config

from .helpers import NOW


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def tmp_db(tmp_path, monkeypatch):
    path = tmp_path / "pq_test.duckdb"
    monkeypatch.setattr(config, "DB_PATH", path)
    return path
