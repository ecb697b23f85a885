"""Shared fixtures: a small Location dimension and a trip-frame factory."""

import pandas as pd
import pytest

from src.model.snapshot import ReportSnapshot
from src.transformation.transform import build_dim_calendar


@pytest.fixture
def locations():
    return pd.DataFrame({
        "location_id": [1, 2, 3, 4],
        "location_name": ["Airport", "Downtown", "Harbor", "Old Town"],
        "city": ["Metro", "Metro", "Metro", "Riverside"],
    })


@pytest.fixture
def make_trips():
    """Build a cleaned trip fact frame from partial row dicts."""

    def _make(rows):
        defaults = {
            "passenger_count": 1,
            "trip_distance": 1.0,
            "pickup_location_id": 1,
            "dropoff_location_id": 2,
            "fare_amount": 10.0,
            "surge_fee": 0.0,
            "vehicle_type": "UberX",
            "payment_type": "Cash",
        }
        records = [
            {"trip_id": f"T{i}", **defaults, **row} for i, row in enumerate(rows, start=1)
        ]
        df = pd.DataFrame(records, columns=["trip_id", "pickup_time", "dropoff_time", *defaults])
        df = df.astype({
            "passenger_count": int,
            "pickup_location_id": int,
            "dropoff_location_id": int,
            "trip_distance": float,
            "fare_amount": float,
            "surge_fee": float,
        })
        df["pickup_time"] = pd.to_datetime(df["pickup_time"])
        df["dropoff_time"] = pd.to_datetime(df["dropoff_time"])
        return df

    return _make


@pytest.fixture
def example_trips(make_trips):
    """Two trips: 06:00-06:15 and 19:00-19:40."""
    return make_trips([
        {
            "trip_distance": 1.2,
            "fare_amount": 10.0,
            "surge_fee": 2.0,
            "pickup_time": "2024-06-01 06:00",
            "dropoff_time": "2024-06-01 06:15",
        },
        {
            "trip_distance": 3.0,
            "fare_amount": 15.0,
            "surge_fee": 0.0,
            "pickup_time": "2024-06-01 19:00",
            "dropoff_time": "2024-06-01 19:40",
        },
    ])


@pytest.fixture
def snapshot(make_trips, locations):
    trips = make_trips([
        {"pickup_time": "2024-06-01 08:00", "dropoff_time": "2024-06-01 08:20",
         "pickup_location_id": 1, "dropoff_location_id": 2, "fare_amount": 20.0,
         "trip_distance": 4.0, "vehicle_type": "UberX", "payment_type": "Cash"},
        {"pickup_time": "2024-06-01 22:00", "dropoff_time": "2024-06-01 22:30",
         "pickup_location_id": 4, "dropoff_location_id": 1, "fare_amount": 30.0,
         "trip_distance": 9.0, "vehicle_type": "Uber XL", "payment_type": "UPI"},
        {"pickup_time": "2024-06-02 09:00", "dropoff_time": "2024-06-02 09:10",
         "pickup_location_id": 2, "dropoff_location_id": 4, "fare_amount": 12.0,
         "trip_distance": 2.0, "vehicle_type": "UberX", "payment_type": "UPI"},
        {"pickup_time": "2024-06-03 18:00", "dropoff_time": "2024-06-03 18:45",
         "pickup_location_id": 1, "dropoff_location_id": 3, "fare_amount": 25.0,
         "surge_fee": 5.0, "trip_distance": 6.0, "vehicle_type": "Uber Black",
         "payment_type": "Cash"},
    ])
    return ReportSnapshot(
        trips=trips, locations=locations, calendar=build_dim_calendar(trips)
    )
