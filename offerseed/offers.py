from __future__ import annotations

import asyncio
import enum
import json
from dataclasses import dataclass, field
from typing import Any, Awaitable, Iterable, List, Tuple

from offerseed.geo import CityConfig, point_wkt
from offerseed.segments import Segment, segment_id, write_segments
from offerseed.sqlbuilder import Executor, MultiReplace

DEFAULT_CUSTOMER_ID = 0
MAX_OFFERS_PER_BATCH = 500

OFFER_COLUMNS = (
    "customer_id",
    "notification_zone",
    "segment_ids",
    "notification_content",
    "notification_target",
    "maximum_bid_cents",
)
OFFER_PLACEHOLDERS = {
    "notification_zone": "ST_GeomFromText(%s, 4326)",
    "segment_ids": "%s::jsonb",
}


@dataclass(frozen=True)
class Offer:
    segments: Tuple[Segment, ...]
    # WKT polygon
    notification_zone: str
    notification_content: str
    notification_target: str
    maximum_bid_cents: int


async def create_city(executor: Executor, city: CityConfig) -> None:
    stmt = MultiReplace(
        "cities",
        ("city_name", "center", "diameter"),
        key_columns=("city_name",),
        placeholders={"center": "ST_GeomFromText(%s, 4326)"},
    )
    stmt.append(city.name, point_wkt(city.lonlat), city.diameter)
    statement = stmt.build()
    await executor.execute(statement.sql, statement.params)


async def join_both(first: Awaitable[Any], second: Awaitable[Any]) -> Tuple[Any, Any]:
    """
    Run two awaitables concurrently and wait for both to settle.

    Neither is cancelled when the other fails. If either failed, the first
    failure in argument order is raised after both have finished.
    """
    results = await asyncio.gather(first, second, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results[0], results[1]


class BatchState(enum.Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"
    FLUSHING = "flushing"


@dataclass
class OfferWriter:
    """
    Batches offers into multi-row inserts, flushing the offers statement and
    the segments those offers reference together.

    append() is synchronous and only reports whether the batch is full;
    flush() is the single transition that touches the database. A failed
    flush keeps the batch so the whole flush can be retried; upserted
    segments make the retry idempotent.
    """

    executor: Executor
    customer_id: int = DEFAULT_CUSTOMER_ID
    batch_size: int = MAX_OFFERS_PER_BATCH

    state: BatchState = field(default=BatchState.IDLE, init=False)
    flush_count: int = field(default=0, init=False)
    offers_written: int = field(default=0, init=False)
    segments_written: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._stmt = MultiReplace("offers", OFFER_COLUMNS, placeholders=OFFER_PLACEHOLDERS)
        self._segments: List[Segment] = []

    @property
    def pending_offers(self) -> int:
        return len(self._stmt)

    @property
    def pending_segments(self) -> List[Segment]:
        return list(self._segments)

    def append(self, offer: Offer) -> bool:
        """Queue one offer; returns True once the batch has reached batch_size."""
        if self.state is BatchState.FLUSHING:
            raise RuntimeError("cannot append while a flush is in progress")
        self._stmt.append(
            self.customer_id,
            offer.notification_zone,
            json.dumps([segment_id(s) for s in offer.segments], separators=(",", ":")),
            offer.notification_content,
            offer.notification_target,
            offer.maximum_bid_cents,
        )
        self._segments.extend(offer.segments)
        self.state = BatchState.ACCUMULATING
        return len(self._stmt) >= self.batch_size

    async def flush(self) -> None:
        if self.state is BatchState.FLUSHING:
            raise RuntimeError("flush already in progress")
        if not len(self._stmt):
            return
        self.state = BatchState.FLUSHING
        statement = self._stmt.build()
        try:
            await join_both(
                self.executor.execute(statement.sql, statement.params),
                write_segments(self.executor, self._segments),
            )
        except BaseException:
            self.state = BatchState.ACCUMULATING
            raise
        self.flush_count += 1
        self.offers_written += len(self._stmt)
        self.segments_written += len(self._segments)
        self._stmt.clear()
        self._segments = []
        self.state = BatchState.IDLE

    async def write(self, offers: Iterable[Offer]) -> None:
        for offer in offers:
            if self.append(offer):
                await self.flush()
        await self.flush()


async def write_offers(
    executor: Executor,
    offers: Iterable[Offer],
    customer_id: int = DEFAULT_CUSTOMER_ID,
) -> OfferWriter:
    writer = OfferWriter(executor, customer_id=customer_id)
    await writer.write(offers)
    return writer
