"""Read-only report snapshot and its atomic refresh."""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

import pandas as pd

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class ReportSnapshot:
    """The star-schema tables the measures are evaluated against."""

    trips: pd.DataFrame
    locations: pd.DataFrame
    calendar: pd.DataFrame
    loaded_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_tables(cls, tables: dict[str, pd.DataFrame]) -> "ReportSnapshot":
        return cls(
            trips=tables["fact_trips"],
            locations=tables["dim_locations"],
            calendar=tables["dim_calendar"],
        )


class SnapshotStore:
    """Holds the current snapshot; a refresh swaps every table at once.

    Readers take a reference to one snapshot and keep evaluating against it,
    so they never see tables from two different loads.
    """

    def __init__(self, snapshot: ReportSnapshot | None = None) -> None:
        self._snapshot = snapshot
        self._lock = threading.Lock()

    def current(self) -> ReportSnapshot:
        snapshot = self._snapshot
        if snapshot is None:
            raise RuntimeError("No snapshot loaded yet; run refresh() first")
        return snapshot

    def swap(self, snapshot: ReportSnapshot) -> ReportSnapshot | None:
        """Install ``snapshot`` and return the one it replaced."""
        with self._lock:
            previous, self._snapshot = self._snapshot, snapshot
        logger.info(
            "Swapped report snapshot: %d trips, %d locations, %d calendar days",
            len(snapshot.trips),
            len(snapshot.locations),
            len(snapshot.calendar),
        )
        return previous

    def refresh(self, loader: Callable[[], dict[str, pd.DataFrame]]) -> ReportSnapshot:
        """Build a new snapshot from ``loader`` and swap it in.

        If ``loader`` raises, the current snapshot stays in place.
        """
        snapshot = ReportSnapshot.from_tables(loader())
        self.swap(snapshot)
        return snapshot
