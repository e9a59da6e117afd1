"""Tests for the DuckDB parameter mirror."""

import pytest

from openaq_dashboard.core.schemas import ParameterRecord
from openaq_dashboard.storage.parameter_store import TABLE, ParameterStore


@pytest.fixture
def store():
    s = ParameterStore(":memory:")
    yield s
    s.close()


def test_empty_store(store):
    assert store.count() == 0
    assert store.list_all() == []
    assert store.upsert_many([]) == 0


def test_upsert_inserts_then_updates(store):
    store.upsert_many([ParameterRecord(remote_id=2, name="pm25", units="µg/m³")])
    store.upsert_many(
        [
            ParameterRecord(remote_id=2, name="pm25", display_name="PM2.5", units="µg/m³"),
            ParameterRecord(remote_id=3, name="o3", display_name="O₃", units="ppm"),
        ]
    )
    assert store.count() == 2
    by_id = {r.remote_id: r for r in store.list_all()}
    assert by_id[2].display_name == "PM2.5"
    assert by_id[3].units == "ppm"


def test_upsert_keeps_created_at(store):
    store.upsert_many([ParameterRecord(remote_id=2, name="pm25")])
    created = store._db.execute(f"SELECT created_at FROM {TABLE}").fetchone()[0]
    store.upsert_many([ParameterRecord(remote_id=2, name="pm25", units="µg/m³")])
    created_after, updated_after = store._db.execute(
        f"SELECT created_at, updated_at FROM {TABLE}"
    ).fetchone()
    assert created_after == created
    assert updated_after >= created


def test_duplicate_ids_in_one_batch(store):
    written = store.upsert_many(
        [ParameterRecord(remote_id=1, name="pm10"), ParameterRecord(remote_id=1, name="pm10-new")]
    )
    assert written == 1
    assert store.list_all()[0].name == "pm10-new"


def test_list_orders_by_display_name_then_name(store):
    store.upsert_many(
        [
            ParameterRecord(remote_id=1, name="zz", display_name="B"),
            ParameterRecord(remote_id=2, name="aa", display_name="A"),
            ParameterRecord(remote_id=3, name="mm"),
        ]
    )
    assert [r.remote_id for r in store.list_all()] == [2, 1, 3]


def test_file_database_persists(tmp_path):
    path = str(tmp_path / "nested" / "openaq.duckdb")
    s = ParameterStore(path)
    s.upsert_many([ParameterRecord(remote_id=7, name="no2")])
    s.close()

    reopened = ParameterStore(path)
    try:
        assert reopened.count() == 1
    finally:
        reopened.close()
