"""Trip → Location relationships.

A trip references the Location dimension twice. The pickup relationship is
the active one: location and city filters travel along it. The dropoff
relationship is inactive and is only used by the measures that ask for it,
so each join is a named function rather than an implicit foreign key.
"""

import logging
from enum import Enum

import pandas as pd

logger = logging.getLogger(__name__)


class Relationship(str, Enum):
    PICKUP = "pickup"
    DROPOFF = "dropoff"

    @property
    def foreign_key(self) -> str:
        return f"{self.value}_location_id"


ACTIVE_RELATIONSHIP = Relationship.PICKUP

LOCATION_ATTRIBUTES = ["location_name", "city"]


class AmbiguousLookupError(Exception):
    """Raised when a lookup matches more than one distinct value."""


def join_locations(
    trips: pd.DataFrame, locations: pd.DataFrame, relationship: Relationship
) -> pd.DataFrame:
    """Attach Location attributes to each trip along ``relationship``.

    Added columns are prefixed with the relationship name, e.g.
    ``dropoff_location_name`` and ``dropoff_city``, so both joins can sit on
    the same frame without shadowing each other.
    """
    prefix = relationship.value
    dim = locations[["location_id", *LOCATION_ATTRIBUTES]].rename(
        columns={
            "location_id": relationship.foreign_key,
            **{col: f"{prefix}_{col}" for col in LOCATION_ATTRIBUTES},
        }
    )
    return trips.merge(dim, on=relationship.foreign_key, how="left", validate="many_to_one")


def join_by_pickup(trips: pd.DataFrame, locations: pd.DataFrame) -> pd.DataFrame:
    return join_locations(trips, locations, Relationship.PICKUP)


def join_by_dropoff(trips: pd.DataFrame, locations: pd.DataFrame) -> pd.DataFrame:
    return join_locations(trips, locations, Relationship.DROPOFF)


def lookup_value(table: pd.DataFrame, result_col: str, **criteria) -> object:
    """Return the single value of ``result_col`` among rows matching ``criteria``.

    Returns None when nothing matches. Several rows agreeing on one value are
    fine; several distinct values raise :class:`AmbiguousLookupError`.
    """
    mask = pd.Series(True, index=table.index)
    for col, value in criteria.items():
        mask &= table[col] == value
    values = table.loc[mask, result_col].drop_duplicates()
    if values.empty:
        return None
    if len(values) > 1:
        raise AmbiguousLookupError(
            f"{result_col} lookup on {criteria} matched {len(values)} distinct values"
        )
    return values.iloc[0]
