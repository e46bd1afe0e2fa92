from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from offerseed.sqlbuilder import Executor, MultiReplace

SEGMENT_KINDS = ("olc_8", "olc_6", "purchase", "request")
SEGMENT_INTERVALS = ("minute", "hour", "day", "week", "month")

SEGMENT_COLUMNS = ("segment_id", "valid_interval", "filter_kind", "filter_value")


@dataclass(frozen=True)
class Segment:
    interval: str
    kind: str
    value: str


def string_hash(text: str) -> int:
    """
    djb2 (xor variant) over UTF-16 code units, last to first, as an unsigned
    32-bit integer. Bit-compatible with the npm `string-hash` package so ids
    written by other tools line up with ours.
    """
    data = text.encode("utf-16-le", "surrogatepass")
    h = 5381
    for i in range(len(data) - 2, -1, -2):
        unit = data[i] | (data[i + 1] << 8)
        h = ((h * 33) & 0xFFFFFFFF) ^ unit
    return h


def segment_id(segment: Segment) -> int:
    return string_hash(f"{segment.interval}-{segment.kind}-{segment.value}")


def segments_statement(segments: Iterable[Segment]) -> MultiReplace:
    stmt = MultiReplace("segments", SEGMENT_COLUMNS, key_columns=("segment_id",))
    for segment in segments:
        stmt.append(segment_id(segment), segment.interval, segment.kind, segment.value)
    return stmt


async def write_segments(executor: Executor, segments: Iterable[Segment]) -> None:
    """Upsert segments keyed by their derived id; re-writing a segment is a no-op."""
    statement = segments_statement(segments).build()
    if not statement:
        return
    await executor.execute(statement.sql, statement.params)
