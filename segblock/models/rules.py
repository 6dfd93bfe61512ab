"""Block rule entity and its persisted record format."""

import time
from dataclasses import dataclass, replace
from typing import Any, Optional

from segblock.errors import PersistenceError
from segblock.segments import MIN_UNBLOCK_HOURS, clamp_unblock_hours, segment_duration


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class BlockRule:
    """One blocked website and its daily unblock schedule.

    Attributes:
        url: Normalized hostname, unique across the store
        segments: Number of equal segments per day (2, 4, 6, 8 or 12)
        unblock_hours: Hours of access at the start of each segment
        segment_duration: 24 / segments, derived
        created_at: Epoch milliseconds of the last save (rewritten on upsert)
    """

    url: str
    segments: int
    unblock_hours: int
    segment_duration: int
    created_at: int

    def __post_init__(self) -> None:
        expected = segment_duration(self.segments)
        if self.segment_duration != expected:
            raise ValueError(
                f"segment_duration must be {expected} for {self.segments} segments, "
                f"got {self.segment_duration}"
            )
        if not MIN_UNBLOCK_HOURS <= self.unblock_hours <= expected:
            raise ValueError(
                f"unblock_hours must be between {MIN_UNBLOCK_HOURS} and {expected}, "
                f"got {self.unblock_hours}"
            )

    def with_segments(self, segments: int) -> "BlockRule":
        """Copy with a new segment count, lowering unblock_hours if needed."""
        return replace(
            self,
            segments=segments,
            segment_duration=segment_duration(segments),
            unblock_hours=clamp_unblock_hours(self.unblock_hours, segments),
        )

    def to_record(self) -> dict[str, Any]:
        """Serialize to the stored/broadcast record shape."""
        return {
            "url": self.url,
            "segments": self.segments,
            "unblockHours": self.unblock_hours,
            "segmentDuration": self.segment_duration,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "BlockRule":
        """Load a stored record, re-deriving segmentDuration.

        Raises:
            PersistenceError: If the record is missing fields or holds an
                unsupported segment count
        """
        try:
            url = str(record["url"])
            segments = int(record["segments"])
            duration = segment_duration(segments)
            unblock = clamp_unblock_hours(int(record["unblockHours"]), segments)
            created_at = int(record.get("createdAt", 0))
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Corrupt block rule record {record!r}: {e}") from e

        return cls(
            url=url,
            segments=segments,
            unblock_hours=unblock,
            segment_duration=duration,
            created_at=created_at,
        )


def build_rule(
    url: str,
    segments: int,
    unblock_hours: int,
    created_at: Optional[int] = None,
) -> BlockRule:
    """Construct a rule from an already-normalized host and a selection.

    Args:
        url: Normalized hostname
        segments: Segment count, must be an allowed value
        unblock_hours: Requested hours per segment, clamped into range
        created_at: Timestamp in epoch ms, defaults to now

    Raises:
        ValueError: If segments is not an allowed count
    """
    return BlockRule(
        url=url,
        segments=segments,
        unblock_hours=clamp_unblock_hours(unblock_hours, segments),
        segment_duration=segment_duration(segments),
        created_at=now_ms() if created_at is None else created_at,
    )
