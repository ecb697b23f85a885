"""Transform raw trip, location data into star-schema fact/dimension tables."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd

logger = logging.getLogger(__name__)

RAW_DIR = Path(__file__).resolve().parents[2] / "data" / "raw"

TRIP_COLUMNS = {
    "Trip ID": "trip_id",
    "Pickup Time": "pickup_time",
    "Drop Off Time": "dropoff_time",
    "passenger_count": "passenger_count",
    "trip_distance": "trip_distance",
    "PULocationID": "pickup_location_id",
    "DOLocationID": "dropoff_location_id",
    "fare_amount": "fare_amount",
    "Surge Fee": "surge_fee",
    "Vehicle": "vehicle_type",
    "Payment_type": "payment_type",
}
LOCATION_COLUMNS = {
    "LocationID": "location_id",
    "Location": "location_name",
    "City": "city",
}

# Missing amounts are treated as zero
ZERO_FILLED = ["trip_distance", "fare_amount", "surge_fee"]
REQUIRED_TRIP_FIELDS = [
    "trip_id",
    "pickup_time",
    "dropoff_time",
    "pickup_location_id",
    "dropoff_location_id",
    "passenger_count",
]
UNKNOWN = "Unknown"


@dataclass
class LoadReport:
    """Counts of rows dropped or quarantined while building the star schema."""

    duplicate_locations: int = 0
    duplicate_trips: int = 0
    quarantined: dict[str, int] = field(default_factory=dict)

    @property
    def quarantined_total(self) -> int:
        return sum(self.quarantined.values())

    def add_quarantine(self, reason: str, count: int) -> None:
        if count:
            self.quarantined[reason] = self.quarantined.get(reason, 0) + count


def load_raw_table(name: str, path: Path | None = None) -> pd.DataFrame:
    """Load a raw Parquet table from the landing zone."""
    path = path or RAW_DIR / f"{name}_raw.parquet"
    df = pd.read_parquet(path)
    logger.info("Loaded %d rows from %s", len(df), path)
    return df


def clean_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Strip whitespace from column names and string columns."""
    df.columns = [str(c).strip() for c in df.columns]
    for col in df.select_dtypes(include=["object", "string"]).columns:
        df[col] = df[col].map(lambda v: v.strip() if isinstance(v, str) else v)
    return df


def build_dim_locations(df: pd.DataFrame, report: LoadReport | None = None) -> pd.DataFrame:
    """Build the Location dimension, keeping the first row for each location_id."""
    locations = df.rename(columns=LOCATION_COLUMNS)
    locations = locations.reindex(columns=list(LOCATION_COLUMNS.values()))
    locations["location_id"] = pd.to_numeric(locations["location_id"], errors="coerce")
    locations = locations.dropna(subset=["location_id"]).copy()
    locations["location_id"] = locations["location_id"].astype(int)

    duplicated = locations.duplicated(subset=["location_id"], keep="first")
    if duplicated.any():
        collisions = sorted(locations.loc[duplicated, "location_id"].unique())
        logger.warning(
            "dim_locations: dropped %d duplicate rows for location_id %s",
            duplicated.sum(),
            collisions,
        )
        if report is not None:
            report.duplicate_locations += int(duplicated.sum())
    locations = locations[~duplicated].copy()

    locations["location_name"] = locations["location_name"].fillna(UNKNOWN)
    locations["city"] = locations["city"].fillna(UNKNOWN)
    logger.info("Built dim_locations: %d rows", len(locations))
    return locations.reset_index(drop=True)


def coerce_trips(df: pd.DataFrame) -> pd.DataFrame:
    """Rename raw trip columns and coerce them to their analytic types."""
    trips = df.rename(columns=TRIP_COLUMNS).reindex(columns=list(TRIP_COLUMNS.values()))

    trips["pickup_time"] = pd.to_datetime(trips["pickup_time"], errors="coerce")
    trips["dropoff_time"] = pd.to_datetime(trips["dropoff_time"], errors="coerce")
    for col in ["pickup_location_id", "dropoff_location_id", "passenger_count"]:
        trips[col] = pd.to_numeric(trips[col], errors="coerce")
    for col in ZERO_FILLED:
        trips[col] = pd.to_numeric(trips[col], errors="coerce").fillna(0.0).astype(float)

    for col in ["vehicle_type", "payment_type"]:
        trips[col] = trips[col].fillna(UNKNOWN).astype(str)
    return trips


def _quarantine(
    trips: pd.DataFrame, mask: pd.Series, reason: str, report: LoadReport, rejected: list
) -> pd.DataFrame:
    if mask.any():
        bad = trips[mask].copy()
        bad["reason"] = reason
        rejected.append(bad)
        report.add_quarantine(reason, int(mask.sum()))
        logger.warning("fact_trips: quarantined %d rows (%s)", mask.sum(), reason)
    return trips[~mask].copy()


def build_fact_trips(
    df: pd.DataFrame,
    dim_locations: pd.DataFrame,
    report: LoadReport | None = None,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Build the trip fact table.

    Rows that cannot be part of the model are not dropped silently: they are
    returned in a quarantine frame with a ``reason`` column and counted in
    ``report``.

    Returns:
        ``(fact_trips, quarantined_trips)``
    """
    report = report if report is not None else LoadReport()
    rejected: list[pd.DataFrame] = []
    trips = coerce_trips(df)

    missing = trips[REQUIRED_TRIP_FIELDS].isna().any(axis=1)
    trips = _quarantine(trips, missing, "missing_required_field", report, rejected)

    backwards = trips["dropoff_time"] < trips["pickup_time"]
    trips = _quarantine(trips, backwards, "dropoff_before_pickup", report, rejected)

    negative = (trips[ZERO_FILLED] < 0).any(axis=1)
    trips = _quarantine(trips, negative, "negative_amount", report, rejected)

    known = set(dim_locations["location_id"])
    orphan = ~trips["pickup_location_id"].isin(known) | ~trips["dropoff_location_id"].isin(known)
    trips = _quarantine(trips, orphan, "unknown_location", report, rejected)

    duplicated = trips.duplicated(subset=["trip_id"], keep="first")
    if duplicated.any():
        logger.warning("fact_trips: dropped %d duplicate trip_id rows", duplicated.sum())
        report.duplicate_trips += int(duplicated.sum())
        trips = trips[~duplicated].copy()

    for col in ["pickup_location_id", "dropoff_location_id", "passenger_count"]:
        trips[col] = trips[col].astype(int)

    quarantined = (
        pd.concat(rejected, ignore_index=True)
        if rejected
        else trips.head(0).assign(reason=pd.Series(dtype="object"))
    )
    logger.info("Built fact_trips: %d rows (%d quarantined)", len(trips), len(quarantined))
    return trips.sort_values("pickup_time", kind="stable").reset_index(drop=True), quarantined


def build_dim_calendar(trips: pd.DataFrame) -> pd.DataFrame:
    """Build a contiguous calendar covering every pickup date."""
    if trips.empty:
        dates = pd.DatetimeIndex([], name="date")
    else:
        start = trips["pickup_time"].min().normalize()
        end = trips["pickup_time"].max().normalize()
        dates = pd.date_range(start, end, freq="D", name="date")

    calendar = pd.DataFrame({"date": dates})
    calendar["day_name"] = calendar["date"].dt.day_name()
    calendar["day_num"] = calendar["date"].dt.isocalendar().day.astype(int)
    calendar["month"] = calendar["date"].dt.month
    calendar["month_name"] = calendar["date"].dt.month_name()
    calendar["year"] = calendar["date"].dt.year
    calendar["week_of_year"] = calendar["date"].dt.isocalendar().week.astype(int)
    calendar["is_weekend"] = calendar["day_num"] >= 6
    logger.info("Built dim_calendar: %d rows", len(calendar))
    return calendar


def transform_all(
    trips_raw: pd.DataFrame | None = None,
    locations_raw: pd.DataFrame | None = None,
) -> tuple[dict[str, pd.DataFrame], LoadReport]:
    """Run all transformations and return the star-schema tables plus a load report."""
    if trips_raw is None:
        trips_raw = load_raw_table("trip_details")
    if locations_raw is None:
        locations_raw = load_raw_table("location")

    report = LoadReport()
    dim_locations = build_dim_locations(clean_columns(locations_raw), report)
    fact_trips, quarantined = build_fact_trips(clean_columns(trips_raw), dim_locations, report)
    dim_calendar = build_dim_calendar(fact_trips)

    logger.info(
        "Load report: %d duplicate locations, %d duplicate trips, %d quarantined %s",
        report.duplicate_locations,
        report.duplicate_trips,
        report.quarantined_total,
        report.quarantined,
    )
    tables = {
        "dim_locations": dim_locations,
        "dim_calendar": dim_calendar,
        "fact_trips": fact_trips,
        "quarantined_trips": quarantined,
    }
    return tables, report
