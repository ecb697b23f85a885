"""Tests for the ingestion layer."""

from unittest.mock import MagicMock, patch

import pandas as pd
import pytest

from src.ingestion import source_client
from src.ingestion.source_client import (
    find_source_file,
    read_source_table,
    resolve_source,
    save_raw,
)


def test_read_source_table_csv(tmp_path):
    path = tmp_path / "location.csv"
    path.write_text("LocationID,Location,City\n1,Airport,Metro\n2,Harbor,Metro\n")
    df = read_source_table(path)
    assert list(df.columns) == ["LocationID", "Location", "City"]
    assert len(df) == 2


def test_read_source_table_unsupported(tmp_path):
    path = tmp_path / "location.json"
    path.write_text("[]")
    with pytest.raises(ValueError, match="Unsupported source file"):
        read_source_table(path)


def test_find_source_file(tmp_path, monkeypatch):
    monkeypatch.setattr(source_client, "SOURCE_DIR", tmp_path)
    (tmp_path / "trip_details.csv").write_text("Trip ID\nT1\n")
    assert find_source_file("trip_details") == tmp_path / "trip_details.csv"
    with pytest.raises(FileNotFoundError):
        find_source_file("location")


def test_resolve_source_downloads_when_url_is_set(tmp_path, monkeypatch):
    monkeypatch.setattr(source_client, "SOURCE_DIR", tmp_path)
    monkeypatch.setenv("LOCATION_URL", "https://example.com/files/location.csv?dl=1")
    response = MagicMock(content=b"LocationID,Location,City\n1,Airport,Metro\n")

    with patch("src.ingestion.source_client.requests.get", return_value=response) as get:
        path = resolve_source("location")

    get.assert_called_once_with("https://example.com/files/location.csv?dl=1", timeout=120)
    response.raise_for_status.assert_called_once()
    assert path == tmp_path / "location.csv"
    assert read_source_table(path)["Location"].tolist() == ["Airport"]


def test_save_raw_writes_parquet(tmp_path, monkeypatch):
    monkeypatch.setattr(source_client, "RAW_DIR", tmp_path)
    df = pd.DataFrame({"Trip ID": ["T1", 2], "fare_amount": [10.0, 12.5]})
    path = save_raw(df, "trip_details")
    assert path == tmp_path / "trip_details_raw.parquet"
    loaded = pd.read_parquet(path)
    assert loaded["Trip ID"].tolist() == ["T1", "2"]
    assert df["Trip ID"].tolist() == ["T1", 2]
