"""
Approximate postal-code geocoding.

This is a deliberate approximation layer, not a mapping API: a postal code
resolves to a curated Forward Sortation Area (FSA) centroid when one is
known, otherwise to a coarse province/region centroid, and a small
deterministic offset derived from the full code spreads distinct codes
around that centroid. The same code always yields the same point.

A real geocoding provider can replace GeoApproximator as long as it keeps
the ``coordinates_from_postal_code`` contract.
"""

import logging
import math
from typing import Optional

from homecare.schemas.geo_schema import Coordinate
from homecare.utils import is_valid_postal_code, normalize_postal_code

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0
EARTH_RADIUS_M = 6_371_000.0

# Offset applied on each axis lies in [-JITTER_DEGREES, +JITTER_DEGREES)
JITTER_DEGREES = 0.005
_JITTER_BUCKETS = 1000
_HASH_MASK = 0xFFFFFFFF

FSA_COORDINATES: dict[str, tuple[float, float]] = {
    # Toronto - downtown core
    "M5V": (43.6426, -79.3871),
    "M5H": (43.6497, -79.3833),
    "M5J": (43.6405, -79.3816),
    "M5G": (43.6580, -79.3873),
    "M5S": (43.6627, -79.3957),
    "M5T": (43.6532, -79.4000),
    "M5A": (43.6542, -79.3606),
    "M5B": (43.6572, -79.3784),
    "M5E": (43.6448, -79.3733),
    "M4Y": (43.6659, -79.3832),
    "M4W": (43.6796, -79.3774),
    "M4X": (43.6680, -79.3676),
    # Toronto - west end and east end
    "M6G": (43.6694, -79.4225),
    "M6J": (43.6479, -79.4197),
    "M6K": (43.6368, -79.4283),
    "M6P": (43.6616, -79.4648),
    "M6R": (43.6489, -79.4563),
    "M4L": (43.6689, -79.3155),
    "M4M": (43.6595, -79.3409),
    "M4K": (43.6796, -79.3522),
    # Toronto - midtown and inner suburbs
    "M4S": (43.7043, -79.3887),
    "M4P": (43.7128, -79.3903),
    "M4N": (43.7280, -79.3888),
    "M3C": (43.7259, -79.3405),
    "M6M": (43.6911, -79.4760),
    "M2N": (43.7701, -79.4081),
    "M1P": (43.7574, -79.2733),
    "M9W": (43.7067, -79.5941),
    "M8V": (43.6056, -79.5013),
    # Greater Toronto and Hamilton
    "L5B": (43.5890, -79.6441),
    "L6Y": (43.6707, -79.7615),
    "L4C": (43.8828, -79.4403),
    "L4J": (43.8097, -79.4516),
    "L3R": (43.8561, -79.3370),
    "L1V": (43.8384, -79.0868),
    "L1G": (43.8971, -78.8658),
    "L6H": (43.4675, -79.6877),
    "L7R": (43.3255, -79.7990),
    "L8P": (43.2557, -79.8711),
    # Ottawa
    "K1P": (45.4215, -75.6972),
    "K1N": (45.4292, -75.6886),
    "K2P": (45.4163, -75.6918),
    "K1S": (45.3993, -75.6837),
    "K2G": (45.3389, -75.7318),
    # Belleville / Quinte, Kingston, Peterborough
    "K8N": (44.1628, -77.3832),
    "K8P": (44.1840, -77.3680),
    "K8R": (44.1670, -77.4200),
    "K8V": (44.1001, -77.5760),
    "K7L": (44.2312, -76.4860),
    "K7K": (44.2390, -76.4600),
    "K9J": (44.3091, -78.3197),
    # Montreal
    "H2X": (45.5089, -73.5617),
    "H3B": (45.5005, -73.5700),
    "H3A": (45.5048, -73.5772),
    # Vancouver
    "V6B": (49.2796, -123.1150),
    "V6E": (49.2858, -123.1296),
    "V5K": (49.2800, -123.0400),
    # Calgary, Edmonton
    "T2P": (51.0478, -114.0700),
    "T5J": (53.5444, -113.4909),
}

REGION_COORDINATES: dict[str, tuple[float, float]] = {
    "M": (43.6532, -79.3832),   # Toronto
    "L": (43.5890, -79.6441),   # Central Ontario / Peel
    "K": (45.4215, -75.6972),   # Eastern Ontario
    "N": (43.0096, -81.2737),   # Southwestern Ontario
    "P": (46.4917, -80.9930),   # Northern Ontario
    "H": (45.5017, -73.5673),   # Montreal
    "G": (46.8139, -71.2080),   # Eastern Quebec
    "J": (45.5000, -73.0000),   # Western Quebec
    "V": (49.2827, -123.1207),  # British Columbia
    "T": (51.0447, -114.0719),  # Alberta
    "R": (49.8951, -97.1384),   # Manitoba
    "S": (52.1332, -106.6700),  # Saskatchewan
    "B": (44.6488, -63.5752),   # Nova Scotia
    "E": (45.9636, -66.6431),   # New Brunswick
    "A": (47.5615, -52.7126),   # Newfoundland and Labrador
    "C": (46.2382, -63.1311),   # Prince Edward Island
    "X": (62.4540, -114.3718),  # Northwest Territories / Nunavut
    "Y": (60.7212, -135.0568),  # Yukon
}


def postal_code_hash(normalized_code: str) -> int:
    """Stable 32-bit polynomial hash; independent of PYTHONHASHSEED."""
    value = 0
    for char in normalized_code:
        value = (value * 31 + ord(char)) & _HASH_MASK
    return value


def _jitter(normalized_code: str) -> tuple[float, float]:
    """Map a code to a (lat, lng) offset within ±JITTER_DEGREES."""
    value = postal_code_hash(normalized_code)
    lat_bucket = value % _JITTER_BUCKETS
    lng_bucket = (value // _JITTER_BUCKETS) % _JITTER_BUCKETS
    scale = 2 * JITTER_DEGREES / _JITTER_BUCKETS
    return lat_bucket * scale - JITTER_DEGREES, lng_bucket * scale - JITTER_DEGREES


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance in kilometres (Haversine)."""
    return _haversine(a, b, EARTH_RADIUS_KM)


def distance_meters(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance in metres (Haversine)."""
    return _haversine(a, b, EARTH_RADIUS_M)


def _haversine(a: Coordinate, b: Coordinate, radius: float) -> float:
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lng / 2) ** 2
    )
    return radius * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def format_distance(meters: float) -> str:
    """Format a distance for display: metres below 1 km, else km with one decimal."""
    if meters < 1000:
        return f"{round(meters)}m"
    return f"{meters / 1000:.1f}km"


class GeoApproximator:
    """Resolves postal codes to approximate coordinates.

    Lookup tables can be swapped for tests or other regions; by default the
    curated FSA and region tables above are used.
    """

    def __init__(
        self,
        fsa_table: Optional[dict[str, tuple[float, float]]] = None,
        region_table: Optional[dict[str, tuple[float, float]]] = None,
    ) -> None:
        self.fsa_table = FSA_COORDINATES if fsa_table is None else fsa_table
        self.region_table = REGION_COORDINATES if region_table is None else region_table

    def coordinates_from_postal_code(self, postal_code: str) -> Optional[Coordinate]:
        """Resolve a postal code, or return None if malformed or unknown."""
        if not postal_code or not is_valid_postal_code(postal_code):
            return None

        cleaned = normalize_postal_code(postal_code)
        base = self.fsa_table.get(cleaned[:3]) or self.region_table.get(cleaned[0])
        if base is None:
            logger.debug("No lookup entry for postal code %s", cleaned)
            return None

        d_lat, d_lng = _jitter(cleaned)
        return Coordinate(lat=base[0] + d_lat, lng=base[1] + d_lng)

    def distance_between_postal_codes(self, first: str, second: str) -> Optional[float]:
        """Kilometres between two postal codes, or None if either is unresolved."""
        a = self.coordinates_from_postal_code(first)
        b = self.coordinates_from_postal_code(second)
        if a is None or b is None:
            return None
        return distance_km(a, b)

    distance_km = staticmethod(distance_km)
    distance_meters = staticmethod(distance_meters)
