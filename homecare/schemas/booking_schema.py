"""Booking quote request and price computation results."""

from dataclasses import dataclass, field
from typing import Optional

from pydantic import BaseModel, Field

from homecare.schemas.pricing_schema import SurgeScheduleRule, SurgeZone
from homecare.schemas.task_schema import ServiceCategory


class BookingQuoteRequest(BaseModel):
    """Validated request for a booking price estimate."""
    task_ids: list[str] = Field(min_length=1)
    is_asap: bool = False
    city: Optional[str] = None
    postal_code: Optional[str] = None
    booking_date: Optional[str] = None  # YYYY-MM-DD
    booking_time: Optional[str] = None  # HH:MM


@dataclass
class SurgeEvaluation:
    """Combined multiplier from all surge schedule rules active at one instant."""
    multiplier: float = 1.0
    active_rules: list[SurgeScheduleRule] = field(default_factory=list)
    surge_amount_percent: float = 0.0

    @property
    def rule_names(self) -> list[str]:
        return [rule.name for rule in self.active_rules]


@dataclass
class CheckoutSurgeInfo:
    """Surge summary shown to the client at checkout."""
    has_surge: bool
    surge_percentage: float
    surge_amount: float
    adjusted_total: float
    rule_names: list[str] = field(default_factory=list)


@dataclass
class BookingPriceResult:
    """Every intermediate of a booking estimate, for display and audit."""

    # Duration
    task_minutes: int
    total_minutes: int
    exceeds_base_hour: bool
    warning_message: Optional[str]

    # Base charge
    hourly_rate: float
    base_hour_total: float
    service_category: ServiceCategory
    subtotal: float

    # Time-based surge
    asap_multiplier: float
    scheduled_multiplier: float
    effective_multiplier: float
    scheduled_surge_percentage: float
    scheduled_surge_rules: list[str]
    surge_amount: float

    # Regional surge
    regional_surcharge: float
    psw_bonus: float
    psw_flat_bonus: float
    surge_zone_id: Optional[str]

    # Totals
    total: float
    minimum_fee_applied: bool
    hst_amount: float
    total_with_tax: float


@dataclass
class OvertimeResult:
    """Billable overtime derived from scheduled end and actual sign-out."""
    overtime_minutes: int
    billable_overtime_blocks: int
    overtime_rate_per_block: float
    overtime_charge: float
    within_grace_period: bool


@dataclass
class FinalBookingPrice:
    """Charge for a completed shift: base hour plus overtime, taxed if applicable."""
    hourly_rate: float
    base_hour_total: float
    overtime_charge: float
    overtime_blocks: int
    subtotal: float
    taxable: bool
    hst_amount: float
    total: float


@dataclass
class RegionalPrice:
    """Client total and PSW pay once a regional surge zone is applied."""
    client_total: float
    psw_pay: float
    surge_zone: Optional[SurgeZone]
    client_surcharge: float
    psw_bonus: float
    psw_flat_bonus: float


@dataclass
class RefundDecision:
    """Whether a cancellation qualifies for a refund."""
    eligible: bool
    message: str
