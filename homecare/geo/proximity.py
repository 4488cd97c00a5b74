"""
Service-radius eligibility and PSW check-in proximity.

Both checks are soft gates built on approximate geocoding: a negative
result carries the measured distance and a message pointing the user to
the office, which can override manually. Nothing here raises for an
out-of-range location.

Usage:
    verifier = ProximityVerifier()
    verifier.is_postal_code_within_service_radius("M5V 1J9").within_radius
    verifier.verify_check_in(psw_position, client_position, is_transport=False)
"""

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, Optional

from homecare.config import AppConfig, settings
from homecare.geo.geocoding import GeoApproximator, distance_km, distance_meters
from homecare.schemas.geo_schema import (
    Coordinate,
    CoverageResult,
    ProximityResult,
    RadiusCheckResult,
    WorkerLocation,
)

logger = logging.getLogger(__name__)

# Admin-selectable service radius bounds
MIN_SERVICE_RADIUS_KM = 5
MAX_SERVICE_RADIUS_KM = 75
RADIUS_INCREMENT_KM = 5

CHECK_IN_OK_MESSAGE = "Location verified. You can check in."
CHECK_IN_FAILED_MESSAGE = (
    "You must be at the client's location to check in. "
    "If you are having GPS issues, contact the office."
)
PICKUP_FAILED_MESSAGE = (
    "You must be at the pickup location to check in. "
    "If you are having GPS issues, contact the office."
)
LOCATION_UNAVAILABLE_MESSAGE = (
    "We could not read your location. Check-in is blocked until your "
    "position is available. Contact the office if this continues."
)
EXPANDING_MESSAGE = (
    "We are currently expanding! We haven't reached your area yet, but check back soon."
)


def normalize_service_radius(radius_km: float) -> Optional[int]:
    """Round an admin radius to the 5 km grid, or None if out of range."""
    if not MIN_SERVICE_RADIUS_KM <= radius_km <= MAX_SERVICE_RADIUS_KM:
        return None
    return int(round(radius_km / RADIUS_INCREMENT_KM) * RADIUS_INCREMENT_KM)


def get_radius_options() -> list[int]:
    """All selectable radii, 5 km to 75 km in 5 km steps."""
    return list(range(MIN_SERVICE_RADIUS_KM, MAX_SERVICE_RADIUS_KM + 1, RADIUS_INCREMENT_KM))


class ProximityVerifier:
    """Decides address eligibility and check-in proximity."""

    def __init__(
        self,
        geo: Optional[GeoApproximator] = None,
        config: Optional[AppConfig] = None,
    ) -> None:
        self.geo = geo or GeoApproximator()
        self.config = config or settings
        office = self.config.office
        self.office = Coordinate(lat=office.lat, lng=office.lng)

    # --- Service radius ---

    def is_within_service_radius(
        self, lat: float, lng: float, radius_km: Optional[float] = None
    ) -> bool:
        radius = self.config.office.service_radius_km if radius_km is None else radius_km
        return distance_km(self.office, Coordinate(lat=lat, lng=lng)) <= radius

    def is_postal_code_within_service_radius(
        self, postal_code: str, radius_km: Optional[float] = None
    ) -> RadiusCheckResult:
        """Compare a postal code against the office postal code's location."""
        radius = self.config.office.service_radius_km if radius_km is None else radius_km
        distance = self.geo.distance_between_postal_codes(
            postal_code, self.config.office.postal_code
        )

        if distance is None:
            logger.info("Service radius check could not resolve %r", postal_code)
            return RadiusCheckResult(
                within_radius=False,
                distance_km=None,
                message="Unable to verify postal code. Please check the format.",
            )

        if distance > radius:
            return RadiusCheckResult(
                within_radius=False,
                distance_km=round(distance),
                message=(
                    f"We currently only service within {radius:g}km of our central office. "
                    "Please contact us for special requests."
                ),
            )

        return RadiusCheckResult(
            within_radius=True,
            distance_km=round(distance),
            message=f"Address is within our {radius:g}km service area.",
        )

    # --- Check-in ---

    def check_in_threshold(self, is_transport: bool = False) -> float:
        """Pickup points for transport/escort shifts use the wider threshold."""
        checkin = self.config.checkin
        return checkin.transport_threshold_meters if is_transport else checkin.client_threshold_meters

    def is_within_check_in_proximity(
        self,
        psw_lat: float,
        psw_lng: float,
        target_lat: float,
        target_lng: float,
        threshold_meters: Optional[float] = None,
        failure_message: str = CHECK_IN_FAILED_MESSAGE,
    ) -> ProximityResult:
        threshold = self.check_in_threshold() if threshold_meters is None else threshold_meters
        distance = distance_meters(
            Coordinate(lat=psw_lat, lng=psw_lng),
            Coordinate(lat=target_lat, lng=target_lng),
        )

        if distance > threshold:
            logger.info("Check-in rejected: %.0fm from target (limit %.0fm)", distance, threshold)
            return ProximityResult(
                within_proximity=False,
                distance_meters=round(distance),
                message=failure_message,
                threshold_meters=threshold,
            )

        return ProximityResult(
            within_proximity=True,
            distance_meters=round(distance),
            message=CHECK_IN_OK_MESSAGE,
            threshold_meters=threshold,
        )

    def verify_check_in(
        self, psw: Coordinate, target: Coordinate, is_transport: bool = False
    ) -> ProximityResult:
        return self.is_within_check_in_proximity(
            psw.lat,
            psw.lng,
            target.lat,
            target.lng,
            threshold_meters=self.check_in_threshold(is_transport),
            failure_message=PICKUP_FAILED_MESSAGE if is_transport else CHECK_IN_FAILED_MESSAGE,
        )

    async def check_in_with_location(
        self,
        read_location: Callable[[], Awaitable[Coordinate]],
        target: Coordinate,
        is_transport: bool = False,
        timeout_seconds: Optional[float] = None,
    ) -> ProximityResult:
        """Await a live location reading, then verify it.

        A timeout or a failed reading blocks the check-in; it is never
        approved without a position. Cancelling the awaiting task abandons
        the pending reading.
        """
        timeout = self.config.checkin.location_timeout_sec if timeout_seconds is None else timeout_seconds
        try:
            position = await asyncio.wait_for(read_location(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Location reading timed out after %.1fs", timeout)
            return self._location_unavailable(is_transport)
        except (OSError, RuntimeError, ValueError) as exc:
            logger.warning("Location reading failed: %s", exc)
            return self._location_unavailable(is_transport)

        return self.verify_check_in(position, target, is_transport=is_transport)

    def _location_unavailable(self, is_transport: bool) -> ProximityResult:
        return ProximityResult(
            within_proximity=False,
            distance_meters=None,
            message=LOCATION_UNAVAILABLE_MESSAGE,
            threshold_meters=self.check_in_threshold(is_transport),
        )

    # --- Coverage ---

    def check_worker_coverage(
        self,
        client_postal_code: str,
        workers: Iterable[WorkerLocation],
        radius_km: Optional[float] = None,
    ) -> CoverageResult:
        """Is any approved worker's home within the active radius of the client?"""
        radius = self.config.office.service_radius_km if radius_km is None else radius_km
        approved = [
            w for w in workers
            if w.vetting_status == "approved" and (w.home_postal_code or w.coords)
        ]

        if not approved:
            return CoverageResult(False, None, None, radius, EXPANDING_MESSAGE)

        client = self.geo.coordinates_from_postal_code(client_postal_code)
        if client is None:
            return CoverageResult(
                False, None, None, radius,
                "Unable to verify your location. Please check your postal code.",
            )

        closest: Optional[float] = None
        nearest_city: Optional[str] = None
        for worker in approved:
            home = worker.coords or self.geo.coordinates_from_postal_code(worker.home_postal_code or "")
            if home is None:
                continue
            distance = distance_km(client, home)
            if closest is None or distance < closest:
                closest = distance
                nearest_city = worker.home_city

        rounded = round(closest) if closest is not None else None
        if closest is not None and closest <= radius:
            return CoverageResult(
                True, rounded, nearest_city, radius,
                "Great news! We have PSWs available in your area.",
            )
        return CoverageResult(False, rounded, nearest_city, radius, EXPANDING_MESSAGE)
