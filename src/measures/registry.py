"""Measure registry and the Dynamic Measure switch table."""

from dataclasses import dataclass
from typing import Callable

import pandas as pd

from src.measures import measures
from src.measures.measures import MeasureResult

MeasureFunction = Callable[[pd.DataFrame, pd.DataFrame], MeasureResult]


class UnknownMetricError(KeyError):
    pass


@dataclass(frozen=True)
class MetricDefinition:
    """One row of the Dynamic Measure table."""

    display_name: str
    measure: MeasureFunction
    sort_order: int

    @property
    def measure_name(self) -> str:
        return self.measure.__name__


MEASURES: dict[str, MeasureFunction] = {
    fn.__name__: fn
    for fn in [
        measures.total_bookings,
        measures.total_booking_value,
        measures.avg_booking_value,
        measures.total_trip_distance,
        measures.avg_trip_distance,
        measures.avg_trip_time,
        measures.most_frequent_pickup_point,
        measures.most_frequent_dropoff_point,
        measures.farthest_trip,
        measures.most_used_vehicle_type,
        measures.most_used_payment_type,
    ]
}

DYNAMIC_MEASURES: list[MetricDefinition] = [
    MetricDefinition("Total Bookings", measures.total_bookings, 0),
    MetricDefinition("Total Booking Value", measures.total_booking_value, 1),
    MetricDefinition("Total Trip Distance", measures.total_trip_distance, 2),
]

AXIS_LABELS = {
    "date": "Date",
    "day_name": "Day",
    "hour": "Hour",
    "vehicle_type": "Vehicle Type",
    "payment_type": "Payment Type",
    "pickup_location": "Pickup Location",
    "day_night": "Day/Night",
}


def _ordered(definitions: list[MetricDefinition] | None) -> list[MetricDefinition]:
    return sorted(definitions or DYNAMIC_MEASURES, key=lambda d: d.sort_order)


def display_names(definitions: list[MetricDefinition] | None = None) -> list[str]:
    """Switch entries in display order."""
    return [d.display_name for d in _ordered(definitions)]


def default_metric(definitions: list[MetricDefinition] | None = None) -> MetricDefinition:
    """The entry with the lowest sort_order."""
    return _ordered(definitions)[0]


def default_index(definitions: list[MetricDefinition] | None = None) -> int:
    """Position of the default entry in :func:`display_names`, for the switch widget."""
    return display_names(definitions).index(default_metric(definitions).display_name)


def resolve(
    display_name: str, definitions: list[MetricDefinition] | None = None
) -> MetricDefinition:
    for definition in _ordered(definitions):
        if definition.display_name == display_name:
            return definition
    raise UnknownMetricError(f"No dynamic measure named {display_name!r}")


def get_measure(name: str) -> MeasureFunction:
    """Look up a measure by function name or by Dynamic Measure display name."""
    if name in MEASURES:
        return MEASURES[name]
    return resolve(name).measure


def dynamic_title(display_name: str, axis: str = "date") -> str:
    """Chart title for the selected switch entry, e.g. 'Total Bookings by Date'."""
    definition = resolve(display_name)
    return f"{definition.display_name} by {AXIS_LABELS.get(axis, axis)}"
