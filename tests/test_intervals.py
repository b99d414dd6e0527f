from datetime import time

from kitchen_booking.core.intervals import (
    DAY_END,
    Segment,
    SegmentKind,
    apply_segments,
    contains,
    format_minutes,
    overlaps,
    subtract,
    to_minutes,
    union,
)


def test_minutes_conversion():
    assert to_minutes(time(9, 30)) == 570
    assert format_minutes(545) == "09:05"


def test_overlaps_is_half_open():
    assert overlaps(600, 660, 630, 700)
    assert not overlaps(600, 660, 660, 720)
    assert not overlaps(660, 720, 600, 660)


def test_union_merges_overlapping_and_touching():
    assert union([(600, 700), (540, 620), (700, 720), (800, 900)]) == [(540, 720), (800, 900)]


def test_union_drops_empty_ranges():
    assert union([(600, 600), (700, 650)]) == []


def test_subtract_splits_window():
    assert subtract([(540, 1020)], [(660, 780)]) == [(540, 660), (780, 1020)]


def test_subtract_cut_covering_everything():
    assert subtract([(540, 1020)], [(0, DAY_END)]) == []


def test_apply_segments_unions_duplicate_bases_before_subtracting():
    segments = [
        Segment(SegmentKind.OPEN, 540, 1020),
        Segment(SegmentKind.OPEN, 540, 1020),
        Segment(SegmentKind.OPEN, 900, 1080),
        Segment(SegmentKind.BLOCK, 660, 780),
    ]
    assert apply_segments(segments) == [(540, 660), (780, 1080)]


def test_contains_requires_single_window():
    windows = [(540, 660), (780, 1020)]
    assert contains(windows, 540, 600)
    assert not contains(windows, 630, 800)
