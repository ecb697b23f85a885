"""Tests for the report snapshot store."""

import pytest

from src.model.snapshot import ReportSnapshot, SnapshotStore


def _tables(snapshot):
    return {
        "fact_trips": snapshot.trips,
        "dim_locations": snapshot.locations,
        "dim_calendar": snapshot.calendar,
    }


def test_current_before_load():
    with pytest.raises(RuntimeError, match="No snapshot"):
        SnapshotStore().current()


def test_swap_returns_previous(snapshot):
    store = SnapshotStore(snapshot)
    replacement = ReportSnapshot.from_tables(_tables(snapshot))
    assert store.swap(replacement) is snapshot
    assert store.current() is replacement


def test_refresh_replaces_every_table(snapshot):
    store = SnapshotStore(snapshot)
    smaller = {
        "fact_trips": snapshot.trips.head(1),
        "dim_locations": snapshot.locations.head(2),
        "dim_calendar": snapshot.calendar.head(1),
    }
    store.refresh(lambda: smaller)
    current = store.current()
    assert (len(current.trips), len(current.locations), len(current.calendar)) == (1, 2, 1)


def test_reader_keeps_its_snapshot_across_refresh(snapshot):
    store = SnapshotStore(snapshot)
    held = store.current()
    store.refresh(lambda: {**_tables(snapshot), "fact_trips": snapshot.trips.head(0)})
    assert len(held.trips) == 4
    assert len(store.current().trips) == 0


def test_failed_refresh_keeps_current_snapshot(snapshot):
    store = SnapshotStore(snapshot)

    def broken_loader():
        raise OSError("warehouse unavailable")

    with pytest.raises(OSError):
        store.refresh(broken_loader)
    assert store.current() is snapshot
