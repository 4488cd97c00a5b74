"""Coordinate and proximity result models."""

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict


class Coordinate(BaseModel):
    """A latitude/longitude pair in decimal degrees."""
    model_config = ConfigDict(frozen=True)

    lat: float
    lng: float


@dataclass
class RadiusCheckResult:
    """Outcome of a service-radius check for a postal code."""
    within_radius: bool
    distance_km: Optional[int]
    message: str


@dataclass
class ProximityResult:
    """Outcome of a GPS check-in proximity check."""
    within_proximity: bool
    distance_meters: Optional[int]
    message: str
    threshold_meters: float = 0.0


@dataclass
class CoverageResult:
    """Whether any approved worker lives within the active service radius."""
    within_coverage: bool
    closest_distance_km: Optional[int]
    nearest_worker_city: Optional[str]
    active_radius_km: float
    message: str


@dataclass
class WorkerLocation:
    """Home location of a worker considered for coverage checks."""
    vetting_status: str
    home_postal_code: Optional[str] = None
    home_city: Optional[str] = None
    coords: Optional[Coordinate] = None
