"""
Interval algebra over minutes-since-midnight.

All ranges are half-open [start, end). A day is [0, 1440).
"""
from dataclasses import dataclass
from datetime import time
from enum import Enum
from typing import Iterable, List, Tuple

DAY_START = 0
DAY_END = 24 * 60

Interval = Tuple[int, int]


class SegmentKind(str, Enum):
    OPEN = "open"
    BLOCK = "block"


@dataclass(frozen=True)
class Segment:
    kind: SegmentKind
    start: int
    end: int


def to_minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def format_minutes(m: int) -> str:
    return f"{m // 60:02d}:{m % 60:02d}"


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """True if [a_start, a_end) intersects [b_start, b_end)."""
    return a_start < b_end and b_start < a_end


def union(intervals: Iterable[Interval]) -> List[Interval]:
    """Merge overlapping or touching intervals; drops empty ones."""
    ordered = sorted((s, e) for s, e in intervals if e > s)
    merged: List[Interval] = []
    for start, end in ordered:
        if merged and start <= merged[-1][1]:
            last_start, last_end = merged[-1]
            merged[-1] = (last_start, max(last_end, end))
        else:
            merged.append((start, end))
    return merged


def subtract(base: Iterable[Interval], cuts: Iterable[Interval]) -> List[Interval]:
    """Remove every cut from the base set."""
    result = union(base)
    for cut_start, cut_end in union(cuts):
        remaining: List[Interval] = []
        for start, end in result:
            if not overlaps(start, end, cut_start, cut_end):
                remaining.append((start, end))
                continue
            if start < cut_start:
                remaining.append((start, cut_start))
            if cut_end < end:
                remaining.append((cut_end, end))
        result = remaining
    return result


def apply_segments(segments: Iterable[Segment]) -> List[Interval]:
    """Union the OPEN segments, then carve out the BLOCK segments."""
    segments = list(segments)
    opens = [(s.start, s.end) for s in segments if s.kind == SegmentKind.OPEN]
    blocks = [(s.start, s.end) for s in segments if s.kind == SegmentKind.BLOCK]
    return subtract(opens, blocks)


def contains(windows: Iterable[Interval], start: int, end: int) -> bool:
    """True if [start, end) lies entirely inside one window."""
    return any(w_start <= start and end <= w_end for w_start, w_end in union(windows))
