"""Main pipeline orchestration: ingest → transform → validate → load."""

import logging
import sys
from pathlib import Path

# Ensure project root is on the Python path
sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

import pandas as pd

from src.database.warehouse import create_tables, load_to_db
from src.ingestion.source_client import ingest_source_data
from src.quality.checks import run_all_checks
from src.transformation.transform import LoadReport, load_raw_table, transform_all

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

PROCESSED_DIR = Path(__file__).resolve().parents[2] / "data" / "processed"

QUARANTINE_TABLE = "quarantined_trips"


def save_processed(tables: dict[str, pd.DataFrame], out_dir: Path = PROCESSED_DIR) -> None:
    """Write each table to the processed zone as Parquet."""
    out_dir.mkdir(parents=True, exist_ok=True)
    for name, df in tables.items():
        path = out_dir / f"{name}.parquet"
        df.to_parquet(path, index=False)
        logger.info("Saved %s (%d rows) to %s", name, len(df), path)


def validate_and_save(
    tables: dict[str, pd.DataFrame], report: LoadReport, out_dir: Path = PROCESSED_DIR
) -> None:
    """Save the quarantine, run the quality gate, then save the star schema.

    The quarantine is written even when a check fails; the star-schema
    tables only reach the processed zone once every check has passed.
    """
    star_schema = {name: df for name, df in tables.items() if name != QUARANTINE_TABLE}
    if QUARANTINE_TABLE in tables:
        save_processed({QUARANTINE_TABLE: tables[QUARANTINE_TABLE]}, out_dir)
    if report.quarantined_total:
        logger.warning("%d trips quarantined, see %s", report.quarantined_total, out_dir)

    run_all_checks(star_schema)
    save_processed(star_schema, out_dir)


def run() -> None:
    """Execute the full pipeline."""
    # Creates the engine from the environment on first import
    from src.database.connection import engine

    logger.info("=== Starting trip data pipeline ===")

    # Step 1: Ingest
    logger.info("--- Step 1: Ingestion ---")
    raw_paths = ingest_source_data()
    logger.info("Ingestion complete: %s", raw_paths)

    # Step 2: Transform
    logger.info("--- Step 2: Transformation ---")
    tables, report = transform_all(
        load_raw_table("trip_details", raw_paths["trip_details"]),
        load_raw_table("location", raw_paths["location"]),
    )

    # Step 3: Validate
    logger.info("--- Step 3: Quality checks ---")
    validate_and_save(tables, report)

    # Step 4: Load
    logger.info("--- Step 4: Load to database ---")
    create_tables(engine)
    load_to_db(tables, engine)

    logger.info("=== Pipeline complete ===")


if __name__ == "__main__":
    try:
        run()
    except Exception:
        logger.exception("Pipeline failed")
        sys.exit(1)
