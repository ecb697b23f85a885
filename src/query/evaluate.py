"""Query contract: evaluate a measure under a filter context."""

import logging
from dataclasses import dataclass
from datetime import date

import pandas as pd

from src.measures.measures import MeasureResult, day_night
from src.measures.registry import get_measure
from src.model.relationships import ACTIVE_RELATIONSHIP, join_locations
from src.model.snapshot import ReportSnapshot, SnapshotStore

logger = logging.getLogger(__name__)

GROUPINGS = [
    "date",
    "day_name",
    "hour",
    "vehicle_type",
    "payment_type",
    "pickup_location",
    "day_night",
]


@dataclass(frozen=True)
class Filters:
    """Active report selections. ``None`` means no filter on that field."""

    date_range: tuple[date, date] | None = None
    city: str | None = None
    location: str | None = None
    vehicle_type: str | None = None
    payment_type: str | None = None


def apply_filters(snapshot: ReportSnapshot, filters: Filters | None = None) -> pd.DataFrame:
    """Return the trips visible under ``filters``.

    City and location selections reach the trips through the active
    (pickup) relationship.
    """
    trips = snapshot.trips
    filters = filters or Filters()
    mask = pd.Series(True, index=trips.index)

    if filters.date_range is not None:
        start, end = (pd.Timestamp(d) for d in filters.date_range)
        pickup_date = trips["pickup_time"].dt.normalize()
        mask &= pickup_date.between(start, end, inclusive="both")
    if filters.vehicle_type is not None:
        mask &= trips["vehicle_type"] == filters.vehicle_type
    if filters.payment_type is not None:
        mask &= trips["payment_type"] == filters.payment_type

    if filters.city is not None or filters.location is not None:
        locations = snapshot.locations
        if filters.city is not None:
            locations = locations[locations["city"] == filters.city]
        if filters.location is not None:
            locations = locations[locations["location_name"] == filters.location]
        mask &= trips[ACTIVE_RELATIONSHIP.foreign_key].isin(locations["location_id"])

    visible = trips[mask]
    logger.debug("Filters %s leave %d of %d trips", filters, len(visible), len(trips))
    return visible


def evaluate(
    snapshot: ReportSnapshot, metric_name: str, filters: Filters | None = None
) -> MeasureResult:
    """Evaluate a measure (by function or Dynamic Measure name) under ``filters``."""
    measure = get_measure(metric_name)
    return measure(apply_filters(snapshot, filters), snapshot.locations)


def _group_keys(trips: pd.DataFrame, locations: pd.DataFrame, by: str) -> pd.Series:
    if by == "date":
        return trips["pickup_time"].dt.normalize()
    if by == "day_name":
        return trips["pickup_time"].dt.day_name()
    if by == "hour":
        return trips["pickup_time"].dt.hour
    if by in ("vehicle_type", "payment_type"):
        return trips[by]
    if by == "pickup_location":
        joined = join_locations(trips, locations, ACTIVE_RELATIONSHIP)
        return pd.Series(joined["pickup_location_name"].to_numpy(), index=trips.index)
    if by == "day_night":
        return day_night(trips)
    raise ValueError(f"Unsupported grouping {by!r}; expected one of {GROUPINGS}")


def metric_series(
    snapshot: ReportSnapshot,
    metric_name: str,
    filters: Filters | None = None,
    by: str = "date",
) -> pd.DataFrame:
    """Evaluate a measure per group.

    The frame always has the columns ``[by, "value"]`` whichever measure is
    selected, so a chart can switch metrics without changing shape.
    """
    measure = get_measure(metric_name)
    trips = apply_filters(snapshot, filters)
    keys = _group_keys(trips, snapshot.locations, by)

    rows = [
        {by: key, "value": measure(group, snapshot.locations).value}
        for key, group in trips.groupby(keys, sort=True)
    ]
    return pd.DataFrame(rows, columns=[by, "value"])


class ReportQuery:
    """``evaluate(metric, filters)`` against whatever snapshot a store holds."""

    def __init__(self, store: SnapshotStore) -> None:
        self.store = store

    def evaluate(self, metric_name: str, filters: Filters | None = None) -> MeasureResult:
        return evaluate(self.store.current(), metric_name, filters)

    def series(
        self, metric_name: str, filters: Filters | None = None, by: str = "date"
    ) -> pd.DataFrame:
        return metric_series(self.store.current(), metric_name, filters, by)
