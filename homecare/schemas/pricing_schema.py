"""Pricing policy, regional surge zone and surge schedule models."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from homecare.utils import minutes_of_day

DEFAULT_HOSPITAL_DISCHARGE_RATE = 75.0
DEFAULT_DOCTOR_APPOINTMENT_RATE = 55.0


class SurgeZone(BaseModel):
    """A region where clients pay extra per hour and PSWs earn a bonus.

    When several enabled zones match one address, the lowest ``priority``
    wins and equal priorities keep their list order.
    """
    id: str
    name: str
    enabled: bool = False
    client_surcharge: float = Field(default=0.0, ge=0)
    psw_bonus: float = Field(default=0.0, ge=0)
    psw_flat_bonus: float = Field(default=0.0, ge=0)
    postal_code_prefixes: list[str] = Field(default_factory=list)
    cities: list[str] = Field(default_factory=list)
    priority: int = 0


class SurgeScheduleRule(BaseModel):
    """Time-window surge rule. Unset bounds are unconstrained."""
    id: str
    name: str
    enabled: bool = True
    multiplier: float = Field(default=1.0, gt=0)
    start_date: Optional[str] = None  # YYYY-MM-DD
    end_date: Optional[str] = None
    start_time: Optional[str] = None  # HH:MM
    end_time: Optional[str] = None
    days_of_week: Optional[list[int]] = None  # 0 = Sunday
    stackable: bool = False

    @field_validator("days_of_week")
    @classmethod
    def _check_days(cls, value: Optional[list[int]]) -> Optional[list[int]]:
        if value is not None and any(not 0 <= day <= 6 for day in value):
            raise ValueError("days_of_week entries must be between 0 (Sunday) and 6")
        return value

    @field_validator("start_time", "end_time")
    @classmethod
    def _normalize_time(cls, value: Optional[str]) -> Optional[str]:
        # Window bounds are compared as strings, so they must be zero-padded
        if value is None:
            return None
        minutes = minutes_of_day(value)
        return f"{minutes // 60:02d}:{minutes % 60:02d}"


DEFAULT_SURGE_ZONES: list[SurgeZone] = [
    SurgeZone(
        id="toronto-gta",
        name="Toronto / GTA",
        enabled=False,
        client_surcharge=10,
        psw_bonus=5,
        postal_code_prefixes=["M1", "M2", "M3", "M4", "M5", "M6", "M7", "M8", "M9"],
        cities=["Toronto", "North York", "Scarborough", "Etobicoke", "East York", "York"],
    ),
]


class PricingPolicy(BaseModel):
    """Admin-editable pricing policy.

    Hospital and doctor rates default to values derived from the task
    catalog; see PolicyLoader for how stored overrides are layered on top.
    """
    minimum_hours: float = Field(default=1.0, ge=0)
    doctor_escort_minimum_hours: float = Field(default=1.0, ge=0)
    base_hour_minutes: int = Field(default=60, gt=0)
    overtime_rate_percentage: float = Field(default=50.0, ge=0)
    overtime_grace_minutes: int = Field(default=14, ge=0)
    overtime_block_minutes: int = Field(default=15, gt=0)
    minimum_booking_fee: float = Field(default=25.0, ge=0)
    hospital_discharge_rate: float = Field(default=DEFAULT_HOSPITAL_DISCHARGE_RATE, ge=0)
    doctor_appointment_rate: float = Field(default=DEFAULT_DOCTOR_APPOINTMENT_RATE, ge=0)
    surge_multiplier: float = Field(default=1.0, ge=1.0)
    asap_enabled: bool = True
    asap_multiplier: float = Field(default=1.25, ge=1.0)
    hst_rate: float = Field(default=0.13, ge=0, le=1)
    regional_surge_enabled: bool = False
    surge_zones: list[SurgeZone] = Field(
        default_factory=lambda: [zone.model_copy(deep=True) for zone in DEFAULT_SURGE_ZONES]
    )
