"""Shared pytest fixtures."""

import pytest

from medchart.chart_store.database import (
    ChartTransfer,
    KeyValueStore,
    PatientDirectory,
    RecordStore,
    init_database,
)


@pytest.fixture
def db_path(tmp_path):
    """Fresh, initialized database file for each test."""
    path = tmp_path / "medchart-test.db"
    init_database(path)
    return path


@pytest.fixture
def kv_store(db_path):
    return KeyValueStore(db_path)


@pytest.fixture
def records(kv_store):
    return RecordStore(kv_store)


@pytest.fixture
def directory(kv_store):
    return PatientDirectory(kv_store)


@pytest.fixture
def transfer(directory, records):
    return ChartTransfer(directory, records)


@pytest.fixture
def jane(directory):
    """A patient created through the directory (and therefore current)."""
    return directory.create(name="Jane Doe", dob="1980-04-02", sex="Female", mrn="M001")
