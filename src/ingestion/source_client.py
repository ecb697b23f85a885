"""Ingest the trip and location source tables into the raw landing zone."""

import logging
import os
from pathlib import Path

import pandas as pd
import requests
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]
SOURCE_DIR = PROJECT_ROOT / "data" / "source"
RAW_DIR = PROJECT_ROOT / "data" / "raw"

# Source table name → environment variable holding an optional download URL
SOURCES = {
    "trip_details": "TRIP_DETAILS_URL",
    "location": "LOCATION_URL",
}
SUPPORTED_SUFFIXES = (".csv", ".xlsx", ".parquet")

load_dotenv(PROJECT_ROOT / ".env")


def read_source_table(path: Path) -> pd.DataFrame:
    """Read a CSV, Excel workbook or Parquet file into a DataFrame."""
    suffix = path.suffix.lower()
    if suffix == ".csv":
        df = pd.read_csv(path)
    elif suffix == ".xlsx":
        df = pd.read_excel(path, engine="openpyxl")
    elif suffix == ".parquet":
        df = pd.read_parquet(path)
    else:
        raise ValueError(f"Unsupported source file {path.name}; expected {SUPPORTED_SUFFIXES}")
    logger.info("Read %d rows with columns %s from %s", len(df), list(df.columns), path)
    return df


def download_source(url: str, filename: str) -> Path:
    """Download a source file into the source directory."""
    SOURCE_DIR.mkdir(parents=True, exist_ok=True)
    path = SOURCE_DIR / filename
    logger.info("Downloading %s", url)
    resp = requests.get(url, timeout=120)
    resp.raise_for_status()
    path.write_bytes(resp.content)
    logger.info("Saved %s (%d bytes)", path, len(resp.content))
    return path


def find_source_file(name: str) -> Path:
    """Locate ``<name>.<csv|xlsx|parquet>`` in the source directory."""
    for suffix in SUPPORTED_SUFFIXES:
        path = SOURCE_DIR / f"{name}{suffix}"
        if path.exists():
            return path
    raise FileNotFoundError(f"No source file for {name!r} in {SOURCE_DIR}")


def resolve_source(name: str) -> Path:
    """Download the source when its URL is configured, else use the local file."""
    url = os.getenv(SOURCES[name])
    if url:
        suffix = Path(url.split("?")[0]).suffix.lower() or ".csv"
        return download_source(url, f"{name}{suffix}")
    return find_source_file(name)


def save_raw(df: pd.DataFrame, name: str) -> Path:
    """Save DataFrame as Parquet to the raw data landing zone."""
    RAW_DIR.mkdir(parents=True, exist_ok=True)
    path = RAW_DIR / f"{name}_raw.parquet"
    df = df.copy()
    # Mixed-type object columns cannot be written to Parquet as-is
    for col in df.select_dtypes(include="object").columns:
        df[col] = df[col].astype("string")
    df.to_parquet(path, index=False)
    logger.info("Saved raw %s to %s (%d rows)", name, path, len(df))
    return path


def ingest_source_data() -> dict[str, Path]:
    """Full ingestion: resolve → read → save for every source table."""
    paths = {}
    for name in SOURCES:
        df = read_source_table(resolve_source(name))
        paths[name] = save_raw(df, name)
    return paths


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    ingest_source_data()
