"""Tests for loading the star schema into the warehouse and reading it back."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from src.database.models import DimLocation, FactTrip
from src.database.warehouse import create_tables, load_to_db, read_tables


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'warehouse.db'}")
    create_tables(engine)
    yield engine
    engine.dispose()


def _tables(snapshot):
    return {
        "dim_locations": snapshot.locations,
        "dim_calendar": snapshot.calendar,
        "fact_trips": snapshot.trips,
    }


def test_round_trip(engine, snapshot):
    load_to_db(_tables(snapshot), engine)
    tables = read_tables(engine)

    assert len(tables["dim_locations"]) == 4
    assert len(tables["dim_calendar"]) == 3
    trips = tables["fact_trips"]
    assert trips["trip_id"].tolist() == ["T1", "T2", "T3", "T4"]
    assert trips.loc[0, "pickup_time"].hour == 8
    assert trips["fare_amount"].sum() == 87.0
    assert tables["dim_calendar"]["is_weekend"].tolist() == [True, True, False]


def test_reload_replaces_rows(engine, snapshot):
    load_to_db(_tables(snapshot), engine)
    smaller = {**_tables(snapshot), "fact_trips": snapshot.trips.head(2)}
    load_to_db(smaller, engine)
    assert len(read_tables(engine)["fact_trips"]) == 2


def test_failed_load_keeps_previous_contents(engine, snapshot):
    load_to_db(_tables(snapshot), engine)
    broken = {**_tables(snapshot), "fact_trips": snapshot.trips.drop(columns=["surge_fee"])}
    with pytest.raises(KeyError):
        load_to_db(broken, engine)
    assert len(read_tables(engine)["fact_trips"]) == 4


def test_orm_follows_both_location_relationships(engine, snapshot):
    load_to_db(_tables(snapshot), engine)
    with Session(engine) as session:
        trip = session.get(FactTrip, "T2")
        assert trip.pickup_location.location_name == "Old Town"
        assert trip.dropoff_location.location_name == "Airport"

        airport = session.get(DimLocation, 1)
        assert sorted(t.trip_id for t in airport.pickups) == ["T1", "T4"]
        assert [t.trip_id for t in airport.dropoffs] == ["T2"]
