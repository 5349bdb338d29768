"""
Data model
==========

Each row of the Storm Data CSV becomes a `RawRecord`. Records that survive
filtering become `NormalizedRecord`s, and the aggregator produces one
`AggregateRow` per canonical event class.

All of them are immutable (`frozen=True`): stages derive new records and
never edit the ones they were given.
"""

from dataclasses import dataclass
from typing import Optional

@dataclass(frozen=True)
class RawRecord:
    """One observed event row, as read from the source file."""
    event_type: str
    fatalities: float
    injuries: float
    prop_dmg: float
    prop_dmg_exp: str
    crop_dmg: float
    crop_dmg_exp: str
    # source row index, kept for debugging
    row_id: Optional[int] = None

    def has_impact(self) -> bool:
        """True if any of the four impact fields is non-zero."""
        return any(v != 0 for v in (self.prop_dmg, self.crop_dmg, self.fatalities, self.injuries))

@dataclass(frozen=True)
class TaxonomyRule:
    """(pattern, canonical class). Rule order in the table is significant."""
    pattern: str
    event_class: str

@dataclass(frozen=True)
class NormalizedRecord:
    event_class: str
    casualties: int
    # US$, property + crop
    damage: float
    label: str = ""

@dataclass(frozen=True)
class AggregateRow:
    """Summed casualties and damage for one canonical event class."""
    event_class: str
    casualties: int = 0
    damage: float = 0.0

    def value(self, metric: str) -> float:
        return getattr(self, metric)
