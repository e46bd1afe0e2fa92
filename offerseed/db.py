from __future__ import annotations

import argparse
import asyncio
from typing import Any, Dict, Optional, Sequence

import psycopg2
from psycopg2 import errorcodes, errors
from psycopg2.pool import ThreadedConnectionPool

# SQLSTATE classes worth retrying: connection exception, transaction
# rollback (serialization/deadlock), insufficient resources, operator
# intervention.
TRANSIENT_SQLSTATE_CLASSES = {"08", "40", "53", "57"}

DDL_SQL = """
CREATE EXTENSION IF NOT EXISTS postgis;

CREATE TABLE IF NOT EXISTS cities (
  city_id       bigserial UNIQUE,
  city_name     text PRIMARY KEY,
  center        geometry(Point, 4326) NOT NULL,
  diameter      double precision NOT NULL
);

CREATE TABLE IF NOT EXISTS segments (
  segment_id      bigint PRIMARY KEY,
  valid_interval  text NOT NULL,
  filter_kind     text NOT NULL,
  filter_value    text NOT NULL
);

CREATE TABLE IF NOT EXISTS offers (
  offer_id              bigserial PRIMARY KEY,
  customer_id           bigint NOT NULL,
  notification_zone     geometry(Polygon, 4326) NOT NULL,
  segment_ids           jsonb NOT NULL,
  notification_content  text NOT NULL,
  notification_target   text NOT NULL,
  maximum_bid_cents     integer NOT NULL CHECK (maximum_bid_cents > 0),
  created_at            timestamptz DEFAULT now()
);

CREATE INDEX IF NOT EXISTS idx_offers_zone ON offers USING GIST (notification_zone);
CREATE INDEX IF NOT EXISTS idx_offers_customer ON offers (customer_id);
"""

RESET_ALL_SQL = """
TRUNCATE TABLE offers, segments, cities RESTART IDENTITY;
"""

COUNTED_TABLES = ("cities", "segments", "offers")


class StatementError(RuntimeError):
    """A statement failed; wraps the driver error with enough context to decide on a retry."""

    def __init__(self, sql: str, exc: psycopg2.Error) -> None:
        self.sql = sql
        self.pgcode: Optional[str] = sqlstate(exc)
        self.transient = is_transient(exc)
        super().__init__(str(exc).strip() or exc.__class__.__name__)


def _sqlstate_by_class() -> Dict[type, str]:
    mapping: Dict[type, str] = {}
    for name in dir(errorcodes):
        code = getattr(errorcodes, name)
        if not (isinstance(code, str) and len(code) == 5):
            continue
        try:
            mapping.setdefault(errors.lookup(code), code)
        except KeyError:
            continue
    return mapping


SQLSTATE_BY_CLASS = _sqlstate_by_class()


def sqlstate(exc: psycopg2.Error) -> Optional[str]:
    """The server's SQLSTATE, or the one implied by the psycopg2.errors subclass."""
    return getattr(exc, "pgcode", None) or SQLSTATE_BY_CLASS.get(type(exc))


def is_transient(exc: psycopg2.Error) -> bool:
    code = sqlstate(exc)
    if code:
        return code[:2] in TRANSIENT_SQLSTATE_CLASSES
    # no SQLSTATE: the connection itself failed
    return isinstance(exc, psycopg2.OperationalError)


def create_pool(args: argparse.Namespace) -> ThreadedConnectionPool:
    return ThreadedConnectionPool(
        minconn=1,
        maxconn=max(2, args.pool_size),
        host=args.host,
        port=args.port,
        dbname=args.db,
        user=args.user,
        password=args.password,
    )


class PostgresExecutor:
    """
    Runs each statement on its own pooled connection in a worker thread and
    commits it, so two statements awaited together really overlap.
    """

    def __init__(self, pool: ThreadedConnectionPool) -> None:
        self.pool = pool

    def _run(self, sql: str, params: Optional[Sequence[Any]], fetch: bool) -> Any:
        conn = self.pool.getconn()
        try:
            with conn.cursor() as cur:
                if params is None:
                    cur.execute(sql)
                else:
                    cur.execute(sql, params)
                row = cur.fetchone() if fetch else None
            conn.commit()
            return row
        except psycopg2.Error as exc:
            if not conn.closed:
                conn.rollback()
            raise StatementError(sql, exc) from exc
        finally:
            self.pool.putconn(conn, close=bool(conn.closed))

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> None:
        if not sql:
            return
        await asyncio.to_thread(self._run, sql, list(params), False)

    async def execute_script(self, sql: str) -> None:
        await asyncio.to_thread(self._run, sql, None, False)

    async def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> Any:
        row = await asyncio.to_thread(self._run, sql, list(params), True)
        return row[0] if row else None

    def close(self) -> None:
        self.pool.closeall()


async def create_schema(executor: PostgresExecutor) -> None:
    await executor.execute_script(DDL_SQL)


async def reset_data(executor: PostgresExecutor) -> None:
    await executor.execute_script(RESET_ALL_SQL)


async def count_rows(executor: PostgresExecutor, table: str) -> int:
    if table not in COUNTED_TABLES:
        raise ValueError(f"unknown table: {table}")
    return await executor.fetch_one(f"SELECT count(*) FROM {table};") or 0
