"""Load the star schema into the warehouse and read it back."""

import logging

import pandas as pd
from sqlalchemy import delete
from sqlalchemy.engine import Engine

from src.database.models import Base, DimCalendar, DimLocation, FactTrip

logger = logging.getLogger(__name__)

# Dimensions before the fact table that references them
LOAD_ORDER = [
    ("dim_locations", DimLocation),
    ("dim_calendar", DimCalendar),
    ("fact_trips", FactTrip),
]


def create_tables(engine: Engine) -> None:
    """Create all tables using SQLAlchemy models."""
    Base.metadata.create_all(engine)
    logger.info("Database tables created/verified")


def _prepare(name: str, df: pd.DataFrame, model) -> pd.DataFrame:
    columns = [c.name for c in model.__table__.columns]
    out = df[columns].copy()
    if name == "dim_calendar":
        out["date"] = out["date"].dt.date
    if name == "fact_trips":
        out["trip_id"] = out["trip_id"].astype(str)
    return out


def load_to_db(tables: dict[str, pd.DataFrame], engine: Engine) -> None:
    """Replace the warehouse contents with ``tables`` in one transaction.

    Either every table is replaced or, on failure, none is.
    """
    with engine.begin() as conn:
        # Clear the fact table first, then dimensions
        for name, model in reversed(LOAD_ORDER):
            conn.execute(delete(model.__table__))
        logger.info("Cleared all warehouse tables")

        for name, model in LOAD_ORDER:
            df = _prepare(name, tables[name], model)
            df.to_sql(name, conn, if_exists="append", index=False)
            logger.info("Loaded %d rows into %s", len(df), name)


def read_tables(engine: Engine) -> dict[str, pd.DataFrame]:
    """Read the star schema back into DataFrames shaped like ``transform_all`` output."""
    with engine.connect() as conn:
        locations = pd.read_sql_table("dim_locations", conn)
        calendar = pd.read_sql_table("dim_calendar", conn)
        trips = pd.read_sql_table("fact_trips", conn)

    calendar["date"] = pd.to_datetime(calendar["date"])
    calendar["is_weekend"] = calendar["is_weekend"].astype(bool)
    trips["pickup_time"] = pd.to_datetime(trips["pickup_time"])
    trips["dropoff_time"] = pd.to_datetime(trips["dropoff_time"])
    trips = trips.sort_values("pickup_time", kind="stable").reset_index(drop=True)

    logger.info(
        "Read warehouse: %d trips, %d locations, %d calendar days",
        len(trips),
        len(locations),
        len(calendar),
    )
    return {"dim_locations": locations, "dim_calendar": calendar, "fact_trips": trips}
