from homecare.pricing.calculator import BookingPriceCalculator
from homecare.pricing.cancellation import check_cancellation_refund
from homecare.pricing.overtime import calculate_overtime_charges
from homecare.pricing.policy import PolicyLoader, get_applicable_surge_zone
from homecare.pricing.surge_schedule import SurgeScheduleEngine

__all__ = [
    "BookingPriceCalculator",
    "PolicyLoader",
    "SurgeScheduleEngine",
    "calculate_overtime_charges",
    "check_cancellation_refund",
    "get_applicable_surge_zone",
]
