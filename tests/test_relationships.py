"""Tests for the pickup/dropoff joins and lookups."""

import pandas as pd
import pytest

from src.model.relationships import (
    ACTIVE_RELATIONSHIP,
    AmbiguousLookupError,
    Relationship,
    join_by_dropoff,
    join_by_pickup,
    lookup_value,
)


def test_pickup_is_the_active_relationship():
    assert ACTIVE_RELATIONSHIP is Relationship.PICKUP
    assert Relationship.DROPOFF.foreign_key == "dropoff_location_id"


def test_both_joins_on_one_frame(snapshot):
    joined = join_by_dropoff(join_by_pickup(snapshot.trips, snapshot.locations), snapshot.locations)
    assert len(joined) == len(snapshot.trips)
    first = joined.iloc[0]
    assert first["pickup_location_name"] == "Airport"
    assert first["dropoff_location_name"] == "Downtown"
    assert joined.loc[1, "pickup_city"] == "Riverside"
    assert joined.loc[1, "dropoff_city"] == "Metro"


def test_join_does_not_mutate_trips(snapshot):
    before = list(snapshot.trips.columns)
    join_by_pickup(snapshot.trips, snapshot.locations)
    assert list(snapshot.trips.columns) == before


def test_lookup_value_single_match():
    table = pd.DataFrame({"distance": [5.0, 5.0, 2.0], "name": ["A", "A", "B"]})
    assert lookup_value(table, "name", distance=5.0) == "A"


def test_lookup_value_no_match():
    table = pd.DataFrame({"distance": [2.0], "name": ["B"]})
    assert lookup_value(table, "name", distance=9.0) is None


def test_lookup_value_ambiguous():
    table = pd.DataFrame({"distance": [5.0, 5.0], "name": ["A", "C"]})
    with pytest.raises(AmbiguousLookupError, match="2 distinct values"):
        lookup_value(table, "name", distance=5.0)
