#!/usr/bin/env python3
"""
Offer seeding bootstrapper:
- Creates the PostGIS schema (cities, segments, offers)
- Upserts the demo city
- Generates synthetic offers around the city and writes them, with the
  segments they reference, in batches

Usage:
  offerseed \
    --host localhost --port 5432 --db offers --user offers --password offers \
    --offers 1200 --seed 42
"""

from __future__ import annotations

import argparse
import asyncio
import os
import random
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv

from offerseed.db import (
    COUNTED_TABLES,
    PostgresExecutor,
    StatementError,
    count_rows,
    create_pool,
    create_schema,
    reset_data,
)
from offerseed.generator import OfferGenerator
from offerseed.geo import DEFAULT_CITY, CityConfig, city_bbox
from offerseed.offers import DEFAULT_CUSTOMER_ID, MAX_OFFERS_PER_BATCH, OfferWriter, create_city


def warn(message: str) -> None:
    print(f"WARNING: {message}", file=sys.stderr, flush=True)


def format_bbox(bbox) -> str:
    return f"({bbox[0]:.4f}, {bbox[1]:.4f}, {bbox[2]:.4f}, {bbox[3]:.4f})"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="offerseed")
    p.add_argument("--host", default=os.environ.get("PGHOST", "localhost"))
    p.add_argument("--port", type=int, default=int(os.environ.get("PGPORT", "5432")))
    p.add_argument("--db", default=os.environ.get("PGDATABASE", "offers"))
    p.add_argument("--user", default=os.environ.get("PGUSER", "offers"))
    p.add_argument("--password", default=os.environ.get("PGPASSWORD", "offers"))
    p.add_argument("--pool-size", type=int, default=4, help="Max pooled connections (at least 2 are used).")
    p.add_argument("--city-name", default=DEFAULT_CITY.name)
    p.add_argument(
        "--center",
        nargs=2,
        type=float,
        metavar=("LON", "LAT"),
        default=list(DEFAULT_CITY.lonlat),
        help="City center as longitude latitude.",
    )
    p.add_argument(
        "--diameter",
        type=float,
        default=DEFAULT_CITY.diameter,
        help="Side of the square (degrees) that offers and segments are sampled in.",
    )
    p.add_argument("--offers", type=int, default=1000, help="How many synthetic offers to insert (append).")
    p.add_argument("--customer-id", type=int, default=DEFAULT_CUSTOMER_ID)
    p.add_argument("--seed", type=int, default=None, help="Random seed for deterministic offer generation.")
    p.add_argument("--reset", action="store_true", help="Truncate cities, segments and offers before seeding.")
    p.add_argument(
        "--skip-schema",
        action="store_true",
        help="Assume the schema already exists instead of running CREATE ... IF NOT EXISTS.",
    )
    return p


async def run(args: argparse.Namespace, executor: PostgresExecutor) -> int:
    city = CityConfig(name=args.city_name, lonlat=(args.center[0], args.center[1]), diameter=args.diameter)

    if args.skip_schema:
        print("1) Skipping schema creation.", flush=True)
    else:
        print("1) Creating schema (PostGIS + tables)...", flush=True)
        await create_schema(executor)

    print("2) Resetting tables (if requested)...", flush=True)
    if args.reset:
        await reset_data(executor)
        print("   Reset: offers + segments + cities", flush=True)
    else:
        print("   (no reset)", flush=True)

    print(f"3) Upserting city '{city.name}' bbox {format_bbox(city_bbox(city))}...", flush=True)
    await create_city(executor, city)
    if city.diameter <= 0:
        warn(f"city diameter {city.diameter} is not positive; every sample collapses onto the center.")

    print(f"4) Generating synthetic offers: +{args.offers}...", flush=True)
    generator = OfferGenerator(rng=random.Random(args.seed))
    offers = generator.random_offers(city, args.offers)

    print(f"5) Writing offers in batches of {MAX_OFFERS_PER_BATCH}...", flush=True)
    writer = OfferWriter(executor, customer_id=args.customer_id)
    try:
        await writer.write(offers)
    except StatementError as exc:
        kind = "transient" if exc.transient else "non-transient"
        print(
            f"   Flush #{writer.flush_count + 1} failed ({kind}); "
            f"{writer.offers_written} offers were written before it.",
            file=sys.stderr,
            flush=True,
        )
        raise
    print(
        f"   Flushes: {writer.flush_count}, offers={writer.offers_written}, "
        f"segment refs={writer.segments_written}",
        flush=True,
    )

    counts = {table: await count_rows(executor, table) for table in COUNTED_TABLES}
    print("Counts: " + ", ".join(f"{table}={cnt}" for table, cnt in counts.items()), flush=True)
    if counts["offers"] == 0:
        warn("offers is empty; nothing will be eligible for notifications.")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    if args.offers < 0:
        print("ERROR: --offers must be >= 0.", file=sys.stderr, flush=True)
        return 2
    if args.pool_size < 1:
        print("ERROR: --pool-size must be >= 1.", file=sys.stderr, flush=True)
        return 2

    print(f"Connecting to Postgres: {args.user}@{args.host}:{args.port}/{args.db}", flush=True)
    try:
        executor = PostgresExecutor(create_pool(args))
    except Exception as e:
        print(f"\nERROR: {e}", file=sys.stderr, flush=True)
        return 1

    try:
        status = asyncio.run(run(args, executor))
        print("\nDone.", flush=True)
        return status
    except Exception as e:
        print(f"\nERROR: {e}", file=sys.stderr, flush=True)
        return 1
    finally:
        executor.close()


if __name__ == "__main__":
    raise SystemExit(main())
