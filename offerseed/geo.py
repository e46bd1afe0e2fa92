from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from openlocationcode import openlocationcode as olc

# (lat, lon), the same corner layout the map widgets use.
LatLon = Tuple[float, float]
# (lon, lat)
LonLat = Tuple[float, float]


@dataclass(frozen=True)
class Bounds:
    ne: LatLon
    sw: LatLon


@dataclass(frozen=True)
class CityConfig:
    name: str
    lonlat: LonLat
    diameter: float


DEFAULT_CITY = CityConfig(
    name="New York",
    lonlat=(-73.993562, 40.727063),
    diameter=0.15,
)


def city_bbox(city: CityConfig) -> Tuple[float, float, float, float]:
    """(min_lon, min_lat, max_lon, max_lat) of the square sampled for a city."""
    lon, lat = city.lonlat
    radius = city.diameter / 2
    return (lon - radius, lat - radius, lon + radius, lat + radius)


def point_wkt(lonlat: LonLat) -> str:
    return f"POINT({lonlat[0]} {lonlat[1]})"


def bounds_to_wkt_polygon(bounds: Bounds) -> str:
    north, east = bounds.ne
    south, west = bounds.sw
    ring = [(west, south), (east, south), (east, north), (west, north), (west, south)]
    return "POLYGON((" + ", ".join(f"{lon} {lat}" for lon, lat in ring) + "))"


def encode_geocode(lat: float, lon: float, length: int) -> str:
    return olc.encode(lat, lon, length)


def decode_geocode(code: str):
    return olc.decode(code)


def geocode_bounds(code: str) -> Bounds:
    area = decode_geocode(code)
    return Bounds(
        ne=(area.latitudeHi, area.longitudeHi),
        sw=(area.latitudeLo, area.longitudeLo),
    )
