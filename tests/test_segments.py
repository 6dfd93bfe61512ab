"""Tests for the segment policy and unblock windows."""

from datetime import datetime, timedelta

import pytest

from segblock.models import build_rule
from segblock.segments import (
    ALLOWED_SEGMENTS,
    SEGMENT_HOURS,
    SegmentSelection,
    clamp_unblock_hours,
    is_unblocked,
    max_unblock_hours,
    next_change,
    segment_duration,
    unblock_windows,
)


class TestSegmentPolicy:
    def test_allowed_segments(self) -> None:
        assert ALLOWED_SEGMENTS == (2, 4, 6, 8, 12)

    @pytest.mark.parametrize("segments", ALLOWED_SEGMENTS)
    def test_segments_fill_the_day(self, segments: int) -> None:
        assert segments * segment_duration(segments) == 24

    def test_table(self) -> None:
        assert SEGMENT_HOURS == {2: 12, 4: 6, 6: 4, 8: 3, 12: 2}

    @pytest.mark.parametrize("segments", [0, 1, 3, 5, 24])
    def test_unknown_segment_count(self, segments: int) -> None:
        with pytest.raises(ValueError):
            max_unblock_hours(segments)


class TestClamp:
    @pytest.mark.parametrize("segments", ALLOWED_SEGMENTS)
    def test_never_exceeds_max(self, segments: int) -> None:
        for value in range(1, 30):
            assert clamp_unblock_hours(value, segments) <= max_unblock_hours(segments)

    @pytest.mark.parametrize("segments", ALLOWED_SEGMENTS)
    def test_monotonic(self, segments: int) -> None:
        clamped = [clamp_unblock_hours(v, segments) for v in range(1, 30)]
        assert clamped == sorted(clamped)

    def test_identity_within_range(self) -> None:
        assert clamp_unblock_hours(4, 4) == 4

    def test_floor_of_one(self) -> None:
        assert clamp_unblock_hours(0, 4) == 1
        assert clamp_unblock_hours(-3, 12) == 1

    def test_eight_segments_caps_at_three(self) -> None:
        assert clamp_unblock_hours(5, 8) == 3


class TestSegmentSelection:
    def test_defaults(self) -> None:
        selection = SegmentSelection()
        assert selection.segments == 4
        assert selection.unblock_hours == 2
        assert selection.max_hours == 6

    def test_changing_segments_reclamps(self) -> None:
        selection = SegmentSelection()
        selection.set_unblock_hours(5)
        assert selection.select_segments(8) == 3
        assert selection.unblock_hours == 3

    def test_widening_does_not_restore(self) -> None:
        selection = SegmentSelection(segments=4, unblock_hours=6)
        selection.select_segments(12)
        selection.select_segments(2)
        assert selection.unblock_hours == 2

    def test_set_hours_clamped(self) -> None:
        selection = SegmentSelection(segments=6)
        assert selection.set_unblock_hours(10) == 4

    def test_constructor_clamps(self) -> None:
        assert SegmentSelection(segments=12, unblock_hours=9).unblock_hours == 2

    def test_invalid_segments_leave_state(self) -> None:
        selection = SegmentSelection(segments=8, unblock_hours=3)
        with pytest.raises(ValueError):
            selection.select_segments(5)
        assert (selection.segments, selection.unblock_hours) == (8, 3)


class TestUnblockWindows:
    def test_windows_open_at_segment_start(self) -> None:
        rule = build_rule("example.com", 4, 2, created_at=0)
        hours = [(int(s / timedelta(hours=1)), int(e / timedelta(hours=1))) for s, e in unblock_windows(rule)]
        assert hours == [(0, 2), (6, 8), (12, 14), (18, 20)]

    def test_window_count_matches_segments(self) -> None:
        for segments in ALLOWED_SEGMENTS:
            rule = build_rule("example.com", segments, 1, created_at=0)
            assert len(unblock_windows(rule)) == segments

    def test_is_unblocked(self) -> None:
        rule = build_rule("example.com", 4, 2, created_at=0)
        assert is_unblocked(rule, datetime(2024, 5, 1, 7, 30))
        assert not is_unblocked(rule, datetime(2024, 5, 1, 3, 0))
        assert not is_unblocked(rule, datetime(2024, 5, 1, 8, 0))
        assert is_unblocked(rule, datetime(2024, 5, 1, 18, 0))

    def test_next_change_while_open(self) -> None:
        rule = build_rule("example.com", 4, 2, created_at=0)
        assert next_change(rule, datetime(2024, 5, 1, 7, 30)) == datetime(2024, 5, 1, 8, 0)

    def test_next_change_while_blocked(self) -> None:
        rule = build_rule("example.com", 4, 2, created_at=0)
        assert next_change(rule, datetime(2024, 5, 1, 3, 0)) == datetime(2024, 5, 1, 6, 0)

    def test_next_change_rolls_into_next_day(self) -> None:
        rule = build_rule("example.com", 4, 2, created_at=0)
        assert next_change(rule, datetime(2024, 5, 1, 22, 15)) == datetime(2024, 5, 2, 0, 0)

    def test_full_window_never_blocks(self) -> None:
        rule = build_rule("example.com", 12, 2, created_at=0)
        for hour in range(24):
            assert is_unblocked(rule, datetime(2024, 5, 1, hour, 59))

    def test_full_window_has_no_next_change(self) -> None:
        rule = build_rule("example.com", 12, 2, created_at=0)
        assert next_change(rule, datetime(2024, 5, 1, 13, 0)) is None
