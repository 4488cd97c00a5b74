from homecare.geo.geocoding import GeoApproximator, distance_km, distance_meters, format_distance
from homecare.geo.proximity import ProximityVerifier, get_radius_options, normalize_service_radius

__all__ = [
    "GeoApproximator",
    "distance_km",
    "distance_meters",
    "format_distance",
    "ProximityVerifier",
    "get_radius_options",
    "normalize_service_radius",
]
