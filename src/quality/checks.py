"""Data quality checks for the trip pipeline."""

import logging

import pandas as pd

logger = logging.getLogger(__name__)


class QualityCheckError(Exception):
    pass


def _flagged_counts(flags: pd.DataFrame) -> dict[str, int]:
    """Number of flagged cells per column, for columns with at least one."""
    return {col: int(n) for col, n in flags.sum().items() if n}


def check_not_empty(df: pd.DataFrame, name: str) -> None:
    """A table with no rows would load an empty report."""
    if len(df) == 0:
        raise QualityCheckError(f"{name} is empty; nothing to load")
    logger.info("PASS: %s has %d rows", name, len(df))


def check_no_nulls(df: pd.DataFrame, columns: list[str], name: str) -> None:
    """Keys and required trip fields must be populated after cleaning."""
    flagged = _flagged_counts(df[columns].isna())
    if flagged:
        raise QualityCheckError(f"{name} has null values per column: {flagged}")
    logger.info("PASS: %s has no nulls in %s", name, columns)


def check_non_negative(df: pd.DataFrame, columns: list[str], name: str) -> None:
    """Distances and amounts are never below zero (missing ones were zero-filled)."""
    flagged = _flagged_counts(df[columns].lt(0))
    if flagged:
        raise QualityCheckError(f"{name} has negative values per column: {flagged}")
    logger.info("PASS: %s has no negatives in %s", name, columns)


def check_unique(df: pd.DataFrame, columns: list[str], name: str) -> None:
    """Each key (location_id, date, trip_id) identifies exactly one row."""
    repeated = df.loc[df.duplicated(subset=columns, keep=False), columns]
    if not repeated.empty:
        keys = repeated.drop_duplicates().head(5).to_dict("records")
        raise QualityCheckError(
            f"{name} has {len(repeated)} rows on a duplicate {columns} key, e.g. {keys}"
        )
    logger.info("PASS: %s is unique on %s", name, columns)


def check_chronological(df: pd.DataFrame, start_col: str, end_col: str, name: str) -> None:
    """Verify ``end_col`` never precedes ``start_col``."""
    backwards = (df[end_col] < df[start_col]).sum()
    if backwards > 0:
        raise QualityCheckError(f"{name} has {backwards} rows where {end_col} < {start_col}")
    logger.info("PASS: %s has %s >= %s", name, end_col, start_col)


def check_referential_integrity(
    fact_df: pd.DataFrame,
    fact_col: str,
    dim_df: pd.DataFrame,
    dim_col: str,
    name: str,
) -> None:
    """Every location reference on a trip resolves to a Location row."""
    keys = fact_df[fact_col].dropna()
    orphans = keys[~keys.isin(dim_df[dim_col])].drop_duplicates()
    if not orphans.empty:
        raise QualityCheckError(
            f"{name}: {len(orphans)} orphan keys in {fact_col} "
            f"missing from {dim_col}: {sorted(orphans.tolist())[:5]}"
        )
    logger.info("PASS: %s resolves %d distinct keys", name, keys.nunique())


def check_calendar_coverage(calendar: pd.DataFrame, trips: pd.DataFrame) -> None:
    """Verify every pickup date has a calendar row."""
    trip_dates = trips["pickup_time"].dt.normalize().drop_duplicates()
    missing = trip_dates[~trip_dates.isin(calendar["date"])]
    if not missing.empty:
        raise QualityCheckError(f"dim_calendar is missing {len(missing)} pickup dates")
    logger.info("PASS: dim_calendar covers %d pickup dates", len(trip_dates))


def run_all_checks(tables: dict[str, pd.DataFrame]) -> None:
    """Run all quality checks on the transformed tables."""
    dim_locations = tables["dim_locations"]
    dim_calendar = tables["dim_calendar"]
    fact_trips = tables["fact_trips"]

    # Not empty
    for name in ["dim_locations", "dim_calendar", "fact_trips"]:
        check_not_empty(tables[name], name)

    # No nulls on key columns
    check_no_nulls(dim_locations, ["location_id", "location_name", "city"], "dim_locations")
    check_no_nulls(dim_calendar, ["date", "day_name", "day_num"], "dim_calendar")
    check_no_nulls(
        fact_trips,
        [
            "trip_id",
            "pickup_time",
            "dropoff_time",
            "pickup_location_id",
            "dropoff_location_id",
            "passenger_count",
            "vehicle_type",
            "payment_type",
        ],
        "fact_trips",
    )

    # Unique keys
    check_unique(dim_locations, ["location_id"], "dim_locations")
    check_unique(dim_calendar, ["date"], "dim_calendar")
    check_unique(fact_trips, ["trip_id"], "fact_trips")

    # Value ranges
    check_non_negative(fact_trips, ["trip_distance", "fare_amount", "surge_fee"], "fact_trips")
    check_chronological(fact_trips, "pickup_time", "dropoff_time", "fact_trips")

    # Referential integrity
    check_referential_integrity(
        fact_trips, "pickup_location_id", dim_locations, "location_id", "fact→pickup location"
    )
    check_referential_integrity(
        fact_trips, "dropoff_location_id", dim_locations, "location_id", "fact→dropoff location"
    )
    check_calendar_coverage(dim_calendar, fact_trips)

    logger.info("All quality checks passed!")
