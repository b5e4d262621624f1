"""
Fillup Timeline

Chronological view over a vehicle's fillups used for every predecessor and
successor lookup. Fillups are ordered by calendar date, and fillups sharing a
date are ordered by a tie-break comparator passed in by the caller:

- ``insertion_order`` (default): persisted records by id, then records not yet
  persisted in the order they were supplied, then a new candidate last.
- ``odometer_order``: by odometer reading, records without one last.

Lookups always use the true chronological neighbour, never the order a list
happened to be displayed or paginated in.
"""

from bisect import bisect_left
from typing import Callable, Iterable, List, Optional, Tuple

from justfuel.calculations.consumption import calculate_odometer
from justfuel.exceptions import ConfigurationError
from justfuel.utils.time_utils import parse_fillup_date

# Sequence groups for insertion order
PERSISTED = 0
PENDING = 1
CANDIDATE = 2


def read_field(source, name: str, default=None):
    """Read a field from a model instance, a plain object or a dict."""
    if isinstance(source, dict):
        return source.get(name, default)
    return getattr(source, name, default)


def fillup_identity(source):
    """Persisted id of a fillup-like object, if any."""
    identity = read_field(source, "id")
    if identity is None:
        identity = read_field(source, "fillup_id")
    return identity


class TimelineEntry:
    """A fillup's position in the timeline plus the mileage fields needed for derivation."""

    def __init__(self, date, odometer=None, distance=None, sequence=(CANDIDATE, 0), source=None):
        self.date = date
        self.odometer = odometer
        self.distance = distance
        self.sequence = sequence
        self.source = source

    @classmethod
    def from_fillup(cls, fillup, position: int = 0) -> "TimelineEntry":
        """Build an entry from a stored fillup (model instance, ValidatedFillup or dict)."""
        identity = fillup_identity(fillup)
        if identity is not None:
            sequence = (PERSISTED, identity)
        else:
            sequence = (PENDING, position)

        return cls(
            date=parse_fillup_date(read_field(fillup, "date")),
            odometer=read_field(fillup, "odometer"),
            distance=read_field(fillup, "distance_traveled"),
            sequence=sequence,
            source=fillup,
        )

    def __repr__(self):
        return (
            f"<TimelineEntry date={self.date} odometer={self.odometer} "
            f"distance={self.distance} sequence={self.sequence}>"
        )


TieBreak = Callable[[TimelineEntry], tuple]


def insertion_order(entry: TimelineEntry) -> tuple:
    """Same-day fillups in the order they were recorded."""
    return entry.sequence


def odometer_order(entry: TimelineEntry) -> tuple:
    """Same-day fillups by odometer reading; entries without a reading sort last."""
    if entry.odometer is None:
        return (1, 0, entry.sequence)
    return (0, entry.odometer, entry.sequence)


TIE_BREAKS = {
    "insertion": insertion_order,
    "odometer": odometer_order,
}


def get_tie_break(name: str) -> "TieBreak":
    """Look up a same-day tie-break by its configured name."""
    try:
        return TIE_BREAKS[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown tie-break '{name}', expected one of: {', '.join(sorted(TIE_BREAKS))}",
            config_key="FILLUP_TIE_BREAK",
        )


class Timeline:
    """
    Sorted fillup history for one vehicle.

    Args:
        entries: TimelineEntry objects (any order, undated entries are dropped)
        tie_break: comparator key for fillups sharing a date
        initial_odometer: vehicle's odometer at creation, used to reconstruct
            absolute positions for distance-based entries
    """

    def __init__(
        self,
        entries: Iterable[TimelineEntry],
        tie_break: TieBreak = insertion_order,
        initial_odometer: float = 0
    ):
        self.tie_break = tie_break
        self.initial_odometer = initial_odometer or 0
        self.entries: List[TimelineEntry] = sorted(
            (e for e in entries if e.date is not None),
            key=self.sort_key,
        )
        self._keys = [self.sort_key(e) for e in self.entries]
        self._index = {id(e): i for i, e in enumerate(self.entries)}
        self._positions: Optional[List[float]] = None

    @classmethod
    def from_fillups(
        cls,
        fillups: Iterable,
        tie_break: TieBreak = insertion_order,
        initial_odometer: float = 0,
        exclude_id=None
    ) -> "Timeline":
        """Build a timeline from stored fillups, optionally leaving one record out."""
        entries = []
        for position, fillup in enumerate(fillups):
            if exclude_id is not None and fillup_identity(fillup) == exclude_id:
                continue
            entries.append(TimelineEntry.from_fillup(fillup, position))
        return cls(entries, tie_break=tie_break, initial_odometer=initial_odometer)

    def sort_key(self, entry: TimelineEntry) -> tuple:
        return (entry.date, self.tie_break(entry))

    def __len__(self):
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def _locate(self, entry: TimelineEntry) -> Tuple[int, bool]:
        """Index of entry (if a member) or of its insertion point."""
        index = self._index.get(id(entry))
        if index is not None and self.entries[index] is entry:
            return index, True
        return bisect_left(self._keys, self.sort_key(entry)), False

    def neighbours(self, entry: TimelineEntry) -> Tuple[Optional[TimelineEntry], Optional[TimelineEntry]]:
        """Chronological predecessor and successor of entry."""
        index, member = self._locate(entry)
        predecessor = self.entries[index - 1] if index > 0 else None
        next_index = index + 1 if member else index
        successor = self.entries[next_index] if next_index < len(self.entries) else None
        return predecessor, successor

    def previous_reading(self, entry: TimelineEntry) -> Optional[TimelineEntry]:
        """Nearest earlier entry carrying an odometer reading."""
        index, _ = self._locate(entry)
        for candidate in reversed(self.entries[:index]):
            if candidate.odometer is not None:
                return candidate
        return None

    def next_reading(self, entry: TimelineEntry) -> Optional[TimelineEntry]:
        """Nearest later entry carrying an odometer reading."""
        index, member = self._locate(entry)
        start = index + 1 if member else index
        for candidate in self.entries[start:]:
            if candidate.odometer is not None:
                return candidate
        return None

    def _absolute_positions(self) -> List[float]:
        if self._positions is None:
            positions = []
            position = self.initial_odometer
            for e in self.entries:
                if e.odometer is not None:
                    position = e.odometer
                elif e.distance is not None:
                    position = calculate_odometer(position, e.distance)
                positions.append(position)
            self._positions = positions
        return self._positions

    def absolute_odometer_before(self, entry: TimelineEntry) -> float:
        """Absolute odometer position reached just before entry."""
        index, _ = self._locate(entry)
        if index == 0:
            return self.initial_odometer
        return self._absolute_positions()[index - 1]

    def odometer_regressions(self) -> List[TimelineEntry]:
        """
        Entries whose odometer is lower than the previous reading in the timeline.

        A non-zero initial odometer counts as the reading before the first entry.
        """
        flagged = []
        previous = self.initial_odometer or None
        for e in self.entries:
            if e.odometer is None:
                continue
            if previous is not None and e.odometer < previous:
                flagged.append(e)
            previous = e.odometer
        return flagged


def flag_odometer_regressions(
    fillups: Iterable,
    tie_break: TieBreak = insertion_order,
    initial_odometer: float = 0
) -> set:
    """
    Ids of fillups whose odometer decreased relative to their chronological predecessor.

    Used by list views to mark individual cards regardless of sort direction or page.
    """
    timeline = Timeline.from_fillups(fillups, tie_break=tie_break, initial_odometer=initial_odometer)
    return {fillup_identity(e.source) for e in timeline.odometer_regressions()}
