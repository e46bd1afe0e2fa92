from __future__ import annotations

import random
from typing import List, Optional, Sequence

from offerseed.geo import CityConfig, LonLat, bounds_to_wkt_polygon, encode_geocode, geocode_bounds
from offerseed.offers import DEFAULT_CUSTOMER_ID, Offer, OfferWriter
from offerseed.segments import SEGMENT_INTERVALS, SEGMENT_KINDS, Segment
from offerseed.sqlbuilder import Executor
from offerseed.vendors import VENDORS, Vendor, vendor_domain

GEOCODE_SEGMENT_LENGTHS = {"olc_8": 8, "olc_6": 6}
NOTIFICATION_ZONE_LENGTHS = (8, 10)


class OfferGenerator:
    """
    Random but well-formed offers and segments for one city, used to seed
    demo data. The vendor catalog and RNG are injectable so tests can pin
    both.
    """

    def __init__(self, vendors: Sequence[Vendor] = VENDORS, rng: Optional[random.Random] = None) -> None:
        if not vendors:
            raise ValueError("vendor catalog is empty")
        self.vendors = tuple(vendors)
        self.rng = rng or random.Random()

    def random_vendor(self) -> Vendor:
        return self.rng.choice(self.vendors)

    def random_point_in_city(self, city: CityConfig) -> LonLat:
        lon, lat = city.lonlat
        radius = city.diameter / 2
        return (
            self.rng.uniform(lon - radius, lon + radius),
            self.rng.uniform(lat - radius, lat + radius),
        )

    def random_segment(self, city: CityConfig) -> Segment:
        kind = self.rng.choice(SEGMENT_KINDS)
        interval = self.rng.choice(SEGMENT_INTERVALS)
        if kind in GEOCODE_SEGMENT_LENGTHS:
            length = GEOCODE_SEGMENT_LENGTHS[kind]
            lon, lat = self.random_point_in_city(city)
            # drop the "+" separator / zero padding
            value = encode_geocode(lat, lon, length)[:length]
        elif kind == "purchase":
            value = self.random_vendor()["vendor"]
        else:
            value = vendor_domain(self.random_vendor())
        return Segment(interval=interval, kind=kind, value=value)

    def random_notification_zone(self, city: CityConfig) -> str:
        lon, lat = self.random_point_in_city(city)
        code = encode_geocode(lat, lon, self.rng.choice(NOTIFICATION_ZONE_LENGTHS))
        return bounds_to_wkt_polygon(geocode_bounds(code))

    def random_offer(self, city: CityConfig) -> Offer:
        num_segments = self.rng.randrange(1, 3)
        segments = tuple(self.random_segment(city) for _ in range(num_segments))

        vendor = self.random_vendor()
        pct_off = self.rng.randrange(10, 50)
        vendor_offer_id = self.rng.randrange(1, 1000)

        return Offer(
            segments=segments,
            notification_zone=self.random_notification_zone(city),
            notification_content=f"{pct_off}% off at {vendor['vendor']}",
            notification_target=f"https://{vendor_domain(vendor)}/s2cellular?offerId={vendor_offer_id}",
            maximum_bid_cents=self.rng.randrange(2, 15),
        )

    def random_offers(self, city: CityConfig, count: int) -> List[Offer]:
        return [self.random_offer(city) for _ in range(max(0, count))]


def random_offers(city: CityConfig, count: int) -> List[Offer]:
    return OfferGenerator().random_offers(city, count)


async def seed_city_with_offers(
    executor: Executor,
    city: CityConfig,
    count: int,
    customer_id: int = DEFAULT_CUSTOMER_ID,
    generator: Optional[OfferGenerator] = None,
) -> OfferWriter:
    """Generate count offers around city and write them; returns the writer for its counters."""
    offers = (generator or OfferGenerator()).random_offers(city, count)
    writer = OfferWriter(executor, customer_id=customer_id)
    await writer.write(offers)
    return writer
