"""
Overtime billing from scheduled end and actual sign-out.

Overtime up to the grace period is free. Once past it, the whole overtime
is billed in started blocks, each at a percentage of the hourly rate.

Times may be "HH:MM" strings, compared as minutes of the same day (a
sign-out earlier than the scheduled end counts as no overtime), or full
datetimes, which measure real elapsed time and handle shifts that end
after midnight.
"""

import logging
import math
from datetime import datetime
from typing import Optional, Union

from homecare.schemas.booking_schema import OvertimeResult
from homecare.schemas.pricing_schema import PricingPolicy
from homecare.utils import minutes_of_day

logger = logging.getLogger(__name__)

TimeInput = Union[str, datetime]


def overtime_minutes_between(scheduled_end: TimeInput, actual_sign_out: TimeInput) -> int:
    """Whole minutes worked past the scheduled end, never negative.

    Raises:
        InvalidTimeError: If a string is not a valid HH:MM time.
        TypeError: If a string is mixed with a datetime.
    """
    if isinstance(scheduled_end, datetime) and isinstance(actual_sign_out, datetime):
        elapsed = (actual_sign_out - scheduled_end).total_seconds() / 60
        return max(0, int(elapsed))
    if isinstance(scheduled_end, str) and isinstance(actual_sign_out, str):
        return max(0, minutes_of_day(actual_sign_out) - minutes_of_day(scheduled_end))
    raise TypeError("scheduled_end and actual_sign_out must both be HH:MM strings or datetimes")


def calculate_overtime_charges(
    scheduled_end: TimeInput,
    actual_sign_out: TimeInput,
    hourly_rate: float,
    policy: Optional[PricingPolicy] = None,
) -> OvertimeResult:
    policy = policy or PricingPolicy()
    overtime_minutes = overtime_minutes_between(scheduled_end, actual_sign_out)
    block_minutes = policy.overtime_block_minutes
    rate_per_block = hourly_rate * (policy.overtime_rate_percentage / 100) * (block_minutes / 60)

    if overtime_minutes <= policy.overtime_grace_minutes:
        return OvertimeResult(
            overtime_minutes=overtime_minutes,
            billable_overtime_blocks=0,
            overtime_rate_per_block=rate_per_block,
            overtime_charge=0.0,
            within_grace_period=True,
        )

    blocks = math.ceil(overtime_minutes / block_minutes)
    charge = blocks * rate_per_block
    logger.info(
        "Overtime: %d min -> %d block(s) of %d min, charge %.2f",
        overtime_minutes, blocks, block_minutes, charge,
    )
    return OvertimeResult(
        overtime_minutes=overtime_minutes,
        billable_overtime_blocks=blocks,
        overtime_rate_per_block=rate_per_block,
        overtime_charge=charge,
        within_grace_period=False,
    )
