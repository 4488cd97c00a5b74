"""Cancellation refund eligibility."""

import logging
from datetime import datetime
from typing import Optional

from homecare.config import settings
from homecare.schemas.booking_schema import RefundDecision
from homecare.utils import minutes_of_day

logger = logging.getLogger(__name__)


def check_cancellation_refund(
    shift_date: str,
    shift_start_time: str,
    is_asap: bool = False,
    now: Optional[datetime] = None,
    threshold_hours: Optional[float] = None,
) -> RefundDecision:
    """ASAP bookings are never refunded; others only outside the notice window.

    Raises:
        ValueError: If the date or time is malformed.
    """
    threshold = settings.pricing.cancellation_threshold_hours if threshold_hours is None else threshold_hours

    if is_asap:
        return RefundDecision(
            eligible=False,
            message=(
                "Immediate service requests are non-refundable. "
                "Please call the office for special circumstances."
            ),
        )

    start_minutes = minutes_of_day(shift_start_time)
    shift_start = datetime.fromisoformat(shift_date).replace(
        hour=start_minutes // 60, minute=start_minutes % 60, second=0, microsecond=0
    )
    current = now or datetime.now()
    hours_until_shift = (shift_start - current).total_seconds() / 3600

    if hours_until_shift >= threshold:
        logger.info("Refund approved for shift on %s %s", shift_date, shift_start_time)
        return RefundDecision(
            eligible=True,
            message="Cancellation confirmed. Your refund is being processed.",
        )

    return RefundDecision(
        eligible=False,
        message=(
            f"Cancellations within {threshold:g} hours are non-refundable. "
            "Please call the office for special circumstances."
        ),
    )
