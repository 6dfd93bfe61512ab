"""Segment policy and unblock-window computation.

The day is split into N equal segments. Within each segment a blocked site
is reachable for the first `unblock_hours` hours, then blocked until the
next segment starts:

    segments=4, unblock_hours=2
    00:00-02:00 open | 02:00-06:00 blocked | 06:00-08:00 open | ...
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from segblock.models.rules import BlockRule

HOURS_PER_DAY = 24

# Segment count -> segment duration in hours. Every key divides 24 evenly.
SEGMENT_HOURS = {
    2: 12,
    4: 6,
    6: 4,
    8: 3,
    12: 2,
}

ALLOWED_SEGMENTS = tuple(sorted(SEGMENT_HOURS))

MIN_UNBLOCK_HOURS = 1

DEFAULT_SEGMENTS = 4
DEFAULT_UNBLOCK_HOURS = 2


def segment_duration(segments: int) -> int:
    """Hours per segment for an allowed segment count."""
    try:
        return SEGMENT_HOURS[segments]
    except KeyError:
        allowed = ", ".join(str(s) for s in ALLOWED_SEGMENTS)
        raise ValueError(f"Segments must be one of {allowed}, got {segments!r}") from None


def max_unblock_hours(segments: int) -> int:
    """Upper bound of the unblock-duration value for a segment count."""
    return segment_duration(segments)


def clamp_unblock_hours(value: int, segments: int) -> int:
    """Clamp an unblock-duration value into [1, segment duration]."""
    return max(MIN_UNBLOCK_HOURS, min(int(value), max_unblock_hours(segments)))


@dataclass
class SegmentSelection:
    """Current segment/unblock choice while a rule is being edited.

    Changing the segment count re-clamps the unblock hours immediately, so
    the value shown to the user is always the value that gets saved.
    """

    segments: int = DEFAULT_SEGMENTS
    unblock_hours: int = DEFAULT_UNBLOCK_HOURS

    def __post_init__(self) -> None:
        self.select_segments(self.segments)

    @property
    def max_hours(self) -> int:
        return max_unblock_hours(self.segments)

    def select_segments(self, segments: int) -> int:
        """Switch segment count. Returns the (possibly lowered) unblock hours."""
        segment_duration(segments)
        self.segments = segments
        self.unblock_hours = clamp_unblock_hours(self.unblock_hours, segments)
        return self.unblock_hours

    def set_unblock_hours(self, value: int) -> int:
        self.unblock_hours = clamp_unblock_hours(value, self.segments)
        return self.unblock_hours


def unblock_windows(rule: "BlockRule") -> list[tuple[timedelta, timedelta]]:
    """List (start, end) offsets from midnight of each unblock window."""
    duration = timedelta(hours=rule.segment_duration)
    open_for = timedelta(hours=rule.unblock_hours)
    return [(i * duration, i * duration + open_for) for i in range(rule.segments)]


def _segment_position(rule: "BlockRule", when: datetime) -> tuple[datetime, timedelta]:
    """Return (start of the segment containing `when`, offset into it)."""
    midnight = when.replace(hour=0, minute=0, second=0, microsecond=0)
    since_midnight = when - midnight
    duration = timedelta(hours=rule.segment_duration)
    index = since_midnight // duration
    start = midnight + index * duration
    return start, when - start


def is_unblocked(rule: "BlockRule", when: datetime) -> bool:
    """Check whether `when` falls inside one of the rule's unblock windows."""
    _, offset = _segment_position(rule, when)
    return offset < timedelta(hours=rule.unblock_hours)


def next_change(rule: "BlockRule", when: datetime) -> Optional[datetime]:
    """Next moment the site flips between blocked and unblocked.

    Returns None for a rule whose unblock window fills the whole segment,
    since such a site is never blocked.
    """
    if rule.unblock_hours >= rule.segment_duration:
        return None

    start, offset = _segment_position(rule, when)
    open_for = timedelta(hours=rule.unblock_hours)
    if offset < open_for:
        return start + open_for
    return start + timedelta(hours=rule.segment_duration)
