"""Booking, distance and location measures over a (filtered) trip set.

Every measure takes the trip fact frame and the Location dimension and
returns a :class:`MeasureResult`. Measures never mutate their inputs.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

import pandas as pd

from src.model.relationships import (
    AmbiguousLookupError,
    Relationship,
    join_by_dropoff,
    join_by_pickup,
    lookup_value,
)

logger = logging.getLogger(__name__)

DAY_START_HOUR = 6
DAY_END_HOUR = 19
BLANK = "(Blank)"


class ResultStatus(str, Enum):
    OK = "ok"
    NO_VALUE = "no_value"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True)
class MeasureResult:
    value: Any
    formatted: str
    status: ResultStatus = ResultStatus.OK

    @classmethod
    def no_value(cls) -> "MeasureResult":
        return cls(value=None, formatted=BLANK, status=ResultStatus.NO_VALUE)

    @property
    def is_blank(self) -> bool:
        return self.status is ResultStatus.NO_VALUE


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_number(value: float) -> str:
    """Render a number without trailing zeros (5.0 -> '5', 12.5 -> '12.5')."""
    return f"{value:g}"


def trip_minutes(trips: pd.DataFrame) -> pd.Series:
    """Whole minute boundaries crossed between pickup and dropoff, per trip."""
    delta = trips["dropoff_time"].dt.floor("min") - trips["pickup_time"].dt.floor("min")
    return delta // pd.Timedelta(minutes=1)


def day_night_flag(pickup_time) -> str:
    """'Day' when the pickup hour is within 6..19 inclusive, else 'Night'."""
    return "Day" if DAY_START_HOUR <= pickup_time.hour <= DAY_END_HOUR else "Night"


def day_night(trips: pd.DataFrame) -> pd.Series:
    hours = trips["pickup_time"].dt.hour
    is_day = hours.between(DAY_START_HOUR, DAY_END_HOUR, inclusive="both")
    return is_day.map({True: "Day", False: "Night"}).rename("day_night")


def rank_one(labels: pd.Series) -> list:
    """Labels sharing the highest occurrence count (dense rank 1), sorted."""
    counts = labels.value_counts()
    if counts.empty:
        return []
    return sorted(counts[counts == counts.max()].index)


def top_location_names(joined: pd.DataFrame, relationship: Relationship) -> list[str]:
    """Names of the rank-1 locations in a trip frame joined on ``relationship``.

    Trips are counted per location id, so two locations that share a name
    (e.g. both filled with "Unknown") are never added together.
    """
    key = relationship.foreign_key
    name_col = f"{relationship.value}_location_name"
    joined = joined.dropna(subset=[name_col])
    top_ids = rank_one(joined[key])
    names = joined.drop_duplicates(key).set_index(key)[name_col]
    return sorted(names.loc[top_ids].unique())


# --- Booking measures ---


def total_bookings(trips: pd.DataFrame, locations: pd.DataFrame) -> MeasureResult:
    count = len(trips)
    return MeasureResult(value=count, formatted=f"{count:,}")


def total_booking_value(trips: pd.DataFrame, locations: pd.DataFrame) -> MeasureResult:
    total = float(trips["fare_amount"].fillna(0).sum() + trips["surge_fee"].fillna(0).sum())
    return MeasureResult(value=total, formatted=f"{total:,.2f}")


def avg_booking_value(trips: pd.DataFrame, locations: pd.DataFrame) -> MeasureResult:
    bookings = total_bookings(trips, locations).value
    if bookings == 0:
        return MeasureResult.no_value()
    average = total_booking_value(trips, locations).value / bookings
    return MeasureResult(value=average, formatted=f"{average:,.2f}")


# --- Distance and duration measures ---


def total_trip_distance(trips: pd.DataFrame, locations: pd.DataFrame) -> MeasureResult:
    total = float(trips["trip_distance"].fillna(0).sum())
    return MeasureResult(value=total, formatted=f"{total:,.0f} miles")


def avg_trip_distance(trips: pd.DataFrame, locations: pd.DataFrame) -> MeasureResult:
    if trips.empty:
        return MeasureResult.no_value()
    average = float(trips["trip_distance"].fillna(0).mean())
    return MeasureResult(value=average, formatted=f"{round_half_up(average)} miles")


def avg_trip_time(trips: pd.DataFrame, locations: pd.DataFrame) -> MeasureResult:
    """Mean of the per-trip minute differences, shown in whole minutes."""
    if trips.empty:
        return MeasureResult.no_value()
    average = float(trip_minutes(trips).mean())
    return MeasureResult(value=average, formatted=f"{math.floor(average)} Min")


# --- Location measures ---


def most_frequent_pickup_point(trips: pd.DataFrame, locations: pd.DataFrame) -> MeasureResult:
    """Pickup location with the most bookings.

    Ties go to the alphabetically first location name.
    """
    top = top_location_names(join_by_pickup(trips, locations), Relationship.PICKUP)
    if not top:
        return MeasureResult.no_value()
    if len(top) > 1:
        logger.debug("Pickup point tie between %s, choosing %s", top, top[0])
    return MeasureResult(value=top[0], formatted=top[0])


def most_frequent_dropoff_point(trips: pd.DataFrame, locations: pd.DataFrame) -> MeasureResult:
    """Dropoff location(s) ranked first by bookings; ties are all listed."""
    top = top_location_names(join_by_dropoff(trips, locations), Relationship.DROPOFF)
    if not top:
        return MeasureResult.no_value()
    joined = ", ".join(top)
    return MeasureResult(value=joined, formatted=joined)


def farthest_trip(trips: pd.DataFrame, locations: pd.DataFrame) -> MeasureResult:
    """Route of the longest trip, looked up through both location joins.

    The route is decided on location ids. Longest trips on more than one
    route give an ``ambiguous`` result listing each route.
    """
    if trips.empty:
        return MeasureResult.no_value()

    max_distance = trips["trip_distance"].max()
    longest = trips[trips["trip_distance"] == max_distance]
    longest = join_by_dropoff(join_by_pickup(longest, locations), locations)

    try:
        pickup_id = lookup_value(longest, "pickup_location_id", trip_distance=max_distance)
        dropoff_id = lookup_value(longest, "dropoff_location_id", trip_distance=max_distance)
    except AmbiguousLookupError as exc:
        routes = longest.drop_duplicates(["pickup_location_id", "dropoff_location_id"])
        logger.warning("Farthest trip is ambiguous: %s", exc)
        return MeasureResult(
            value=[
                {"pickup": p, "dropoff": d, "distance": float(max_distance)}
                for p, d in routes[
                    ["pickup_location_name", "dropoff_location_name"]
                ].itertuples(index=False)
            ],
            formatted=(
                f"Ambiguous: {len(routes)} routes share the farthest distance "
                f"({format_number(max_distance)} miles)"
            ),
            status=ResultStatus.AMBIGUOUS,
        )

    pickup = lookup_value(longest, "pickup_location_name", pickup_location_id=pickup_id)
    dropoff = lookup_value(longest, "dropoff_location_name", dropoff_location_id=dropoff_id)
    return MeasureResult(
        value={"pickup": pickup, "dropoff": dropoff, "distance": float(max_distance)},
        formatted=f"Pickup:{pickup} -> Drop-off:{dropoff} ({format_number(max_distance)} miles)",
    )


# --- Vehicle and payment measures ---


def _most_used(trips: pd.DataFrame, column: str) -> MeasureResult:
    top = rank_one(trips[column])
    if not top:
        return MeasureResult.no_value()
    joined = ", ".join(top)
    return MeasureResult(value=joined, formatted=joined)


def most_used_vehicle_type(trips: pd.DataFrame, locations: pd.DataFrame) -> MeasureResult:
    return _most_used(trips, "vehicle_type")


def most_used_payment_type(trips: pd.DataFrame, locations: pd.DataFrame) -> MeasureResult:
    return _most_used(trips, "payment_type")


def vehicle_type_summary(trips: pd.DataFrame) -> pd.DataFrame:
    """Per-vehicle booking grid: bookings, booking value, average value, distance."""
    grid = (
        trips.assign(booking_value=trips["fare_amount"] + trips["surge_fee"])
        .groupby("vehicle_type")
        .agg(
            total_bookings=("trip_id", "count"),
            total_booking_value=("booking_value", "sum"),
            total_trip_distance=("trip_distance", "sum"),
        )
        .reset_index()
    )
    grid["avg_booking_value"] = grid["total_booking_value"] / grid["total_bookings"]
    return grid.sort_values("total_bookings", ascending=False, kind="stable").reset_index(drop=True)
