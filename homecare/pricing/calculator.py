"""
Booking price orchestration.

Combines the task catalog, the pricing policy, scheduled surge rules and
regional surge zones into a single estimate, and re-derives the final
charge once a shift's actual sign-out time is known.

Usage:
    calculator = BookingPriceCalculator(catalog, PolicyLoader(store, catalog),
                                        SurgeScheduleEngine(store))
    result = calculator.calculate_multi_service_price(
        ["personal-care", "meal-prep"], postal_code="M5V 1J9",
        booking_date="2025-06-02", booking_time="09:00",
    )
"""

from dataclasses import dataclass
from typing import Optional

from homecare.catalog.tasks import TaskCatalog
from homecare.config import settings
from homecare.logging_context import get_booking_logger
from homecare.pricing.overtime import TimeInput, calculate_overtime_charges
from homecare.pricing.policy import (
    PolicyLoader,
    calculate_price_with_regional_surge,
    get_applicable_surge_zone,
)
from homecare.pricing.surge_schedule import SurgeScheduleEngine
from homecare.schemas.booking_schema import (
    BookingPriceResult,
    BookingQuoteRequest,
    FinalBookingPrice,
    RegionalPrice,
)
from homecare.schemas.pricing_schema import PricingPolicy
from homecare.schemas.task_schema import ServiceCategory, Task

logger = get_booking_logger(__name__)


@dataclass
class _BaseCharge:
    tasks: list[Task]
    task_minutes: int
    hourly_rate: float
    minimum_hours: float
    base_hour_total: float
    category: ServiceCategory
    subtotal: float


class BookingPriceCalculator:
    """Produces booking estimates and final charges."""

    def __init__(
        self,
        catalog: Optional[TaskCatalog] = None,
        policy_loader: Optional[PolicyLoader] = None,
        surge_engine: Optional[SurgeScheduleEngine] = None,
        fallback_hourly_rate: Optional[float] = None,
    ) -> None:
        self.catalog = catalog or TaskCatalog()
        self.policy_loader = policy_loader or PolicyLoader(catalog=self.catalog)
        self.surge_engine = surge_engine or SurgeScheduleEngine()
        self.fallback_hourly_rate = (
            settings.catalog.fallback_hourly_rate
            if fallback_hourly_rate is None
            else fallback_hourly_rate
        )

    def _base_charge(self, task_ids: list[str], policy: PricingPolicy) -> _BaseCharge:
        by_id = {task.id: task for task in self.catalog.get_tasks()}
        selected = [by_id.get(task_id) for task_id in task_ids]
        matched = [task for task in selected if task is not None]

        unknown = [task_id for task_id, task in zip(task_ids, selected) if task is None]
        if unknown:
            logger.warning("Unknown task ids priced at fallback rate: %s", ", ".join(unknown))

        costs = [task.base_cost if task else self.fallback_hourly_rate for task in selected]
        hourly_rate = sum(costs) / len(costs) if costs else self.fallback_hourly_rate
        task_minutes = sum(task.included_minutes for task in matched)

        category = self.catalog.get_service_category_for_tasks(task_ids)
        needs_escort_minimum = any(task.is_hospital_doctor for task in matched) or (
            category != ServiceCategory.STANDARD
        )
        minimum_hours = (
            policy.doctor_escort_minimum_hours if needs_escort_minimum else policy.minimum_hours
        )
        base_hour_total = hourly_rate * minimum_hours

        subtotal = base_hour_total
        if category == ServiceCategory.HOSPITAL_DISCHARGE:
            subtotal = max(subtotal, policy.hospital_discharge_rate)
        elif category == ServiceCategory.DOCTOR_APPOINTMENT:
            subtotal = max(subtotal, policy.doctor_appointment_rate)

        return _BaseCharge(
            tasks=matched,
            task_minutes=task_minutes,
            hourly_rate=hourly_rate,
            minimum_hours=minimum_hours,
            base_hour_total=base_hour_total,
            category=category,
            subtotal=subtotal,
        )

    def calculate_multi_service_price(
        self,
        task_ids: list[str],
        is_asap: bool = False,
        city: Optional[str] = None,
        postal_code: Optional[str] = None,
        booking_date: Optional[str] = None,
        booking_time: Optional[str] = None,
        policy: Optional[PricingPolicy] = None,
    ) -> BookingPriceResult:
        """Estimate the client-facing price for a prospective booking.

        Without a booking date and time, scheduled surge is evaluated for
        the current instant.
        """
        policy = policy or self.policy_loader.load_policy()
        base = self._base_charge(task_ids, policy)

        exceeds_base_hour = base.task_minutes > policy.base_hour_minutes
        warning_message = (
            "This amount of care may require additional time. Overtime will be billed in "
            f"{policy.overtime_block_minutes}-minute blocks if the visit extends beyond the base hour."
            if exceeds_base_hour
            else None
        )

        evaluation = self.surge_engine.calculate_active_surge_multiplier(booking_date, booking_time)
        asap_multiplier = policy.asap_multiplier if is_asap and policy.asap_enabled else 1.0
        effective_multiplier = max(asap_multiplier, evaluation.multiplier, policy.surge_multiplier)
        surge_amount = base.subtotal * (effective_multiplier - 1)

        zone = get_applicable_surge_zone(policy, city, postal_code)
        regional_surcharge = zone.client_surcharge if zone else 0.0

        total = base.subtotal + surge_amount + regional_surcharge
        minimum_fee_applied = total < policy.minimum_booking_fee
        if minimum_fee_applied:
            total = policy.minimum_booking_fee

        taxable = any(task.apply_hst for task in base.tasks)
        hst_amount = total * policy.hst_rate if taxable else 0.0

        logger.info(
            "Priced %d task(s): subtotal %.2f, surge x%.2f, regional %.2f, total %.2f",
            len(task_ids), base.subtotal, effective_multiplier, regional_surcharge, total,
        )

        return BookingPriceResult(
            task_minutes=base.task_minutes,
            total_minutes=max(base.task_minutes, int(base.minimum_hours * 60)),
            exceeds_base_hour=exceeds_base_hour,
            warning_message=warning_message,
            hourly_rate=base.hourly_rate,
            base_hour_total=base.base_hour_total,
            service_category=base.category,
            subtotal=base.subtotal,
            asap_multiplier=asap_multiplier,
            scheduled_multiplier=evaluation.multiplier,
            effective_multiplier=effective_multiplier,
            scheduled_surge_percentage=evaluation.surge_amount_percent,
            scheduled_surge_rules=evaluation.rule_names,
            surge_amount=surge_amount,
            regional_surcharge=regional_surcharge,
            psw_bonus=zone.psw_bonus if zone else 0.0,
            psw_flat_bonus=zone.psw_flat_bonus if zone else 0.0,
            surge_zone_id=zone.id if zone else None,
            total=total,
            minimum_fee_applied=minimum_fee_applied,
            hst_amount=hst_amount,
            total_with_tax=total + hst_amount,
        )

    def quote(self, request: BookingQuoteRequest) -> BookingPriceResult:
        return self.calculate_multi_service_price(
            request.task_ids,
            is_asap=request.is_asap,
            city=request.city,
            postal_code=request.postal_code,
            booking_date=request.booking_date,
            booking_time=request.booking_time,
        )

    def calculate_price_with_regional_surge(
        self,
        base_price: float,
        city: Optional[str] = None,
        postal_code: Optional[str] = None,
    ) -> RegionalPrice:
        return calculate_price_with_regional_surge(
            self.policy_loader.load_policy(), base_price, city, postal_code
        )

    def calculate_final_booking_price(
        self,
        task_ids: list[str],
        scheduled_end: Optional[TimeInput] = None,
        actual_sign_out: Optional[TimeInput] = None,
        policy: Optional[PricingPolicy] = None,
    ) -> FinalBookingPrice:
        """Base charge plus overtime for a completed shift.

        HST applies to the whole amount when any selected task is taxable.
        """
        policy = policy or self.policy_loader.load_policy()
        base = self._base_charge(task_ids, policy)

        overtime_charge = 0.0
        overtime_blocks = 0
        if scheduled_end is not None and actual_sign_out is not None:
            overtime = calculate_overtime_charges(
                scheduled_end, actual_sign_out, base.hourly_rate, policy
            )
            overtime_charge = overtime.overtime_charge
            overtime_blocks = overtime.billable_overtime_blocks

        subtotal = base.subtotal + overtime_charge
        taxable = any(task.apply_hst for task in base.tasks)
        hst_amount = subtotal * policy.hst_rate if taxable else 0.0

        return FinalBookingPrice(
            hourly_rate=base.hourly_rate,
            base_hour_total=base.subtotal,
            overtime_charge=overtime_charge,
            overtime_blocks=overtime_blocks,
            subtotal=subtotal,
            taxable=taxable,
            hst_amount=hst_amount,
            total=subtotal + hst_amount,
        )
