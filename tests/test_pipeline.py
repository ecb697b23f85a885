"""Tests for the pipeline helpers."""

import pandas as pd
import pytest

from src.pipeline.run_pipeline import save_processed, validate_and_save
from src.quality.checks import QualityCheckError
from src.transformation.transform import LoadReport


def _tables(snapshot, trips=None):
    trips = snapshot.trips if trips is None else trips
    return {
        "dim_locations": snapshot.locations,
        "dim_calendar": snapshot.calendar,
        "fact_trips": trips,
        "quarantined_trips": trips.head(1).assign(reason="unknown pickup location"),
    }


def test_save_processed_writes_each_table(tmp_path, snapshot):
    tables = {
        "dim_locations": snapshot.locations,
        "fact_trips": snapshot.trips,
        "quarantined_trips": snapshot.trips.head(0).assign(reason=pd.Series(dtype="object")),
    }
    save_processed(tables, tmp_path)
    assert sorted(p.name for p in tmp_path.iterdir()) == [
        "dim_locations.parquet",
        "fact_trips.parquet",
        "quarantined_trips.parquet",
    ]
    assert len(pd.read_parquet(tmp_path / "fact_trips.parquet")) == 4


def test_validate_and_save_writes_tables_after_checks_pass(tmp_path, snapshot):
    report = LoadReport()
    report.add_quarantine("unknown pickup location", 1)
    validate_and_save(_tables(snapshot), report, tmp_path)
    assert sorted(p.name for p in tmp_path.iterdir()) == [
        "dim_calendar.parquet",
        "dim_locations.parquet",
        "fact_trips.parquet",
        "quarantined_trips.parquet",
    ]


def test_failed_checks_leave_only_the_quarantine(tmp_path, snapshot):
    trips = snapshot.trips.copy()
    trips.loc[0, "fare_amount"] = -1.0
    with pytest.raises(QualityCheckError, match="negative"):
        validate_and_save(_tables(snapshot, trips), LoadReport(), tmp_path)
    assert [p.name for p in tmp_path.iterdir()] == ["quarantined_trips.parquet"]
    assert pd.read_parquet(tmp_path / "quarantined_trips.parquet")["reason"].tolist() == [
        "unknown pickup location"
    ]
