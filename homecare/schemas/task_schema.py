"""Billable task definitions."""

import logging
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_ROW_MINUTES = 30
DEFAULT_ROW_COST = 35.0


class ServiceCategory(str, Enum):
    """Category of care, in ascending pricing priority."""
    STANDARD = "standard"
    DOCTOR_APPOINTMENT = "doctor-appointment"
    HOSPITAL_DISCHARGE = "hospital-discharge"


class Task(BaseModel):
    """A billable task an administrator has configured."""
    id: str
    name: str
    included_minutes: int = Field(ge=0)
    base_cost: float = Field(ge=0)
    is_hospital_doctor: bool = False
    service_category: ServiceCategory = ServiceCategory.STANDARD
    requires_discharge_upload: bool = False
    apply_hst: bool = False

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Optional["Task"]:
        """Build a Task from a backing-store row.

        Missing numeric fields fall back to the catalog defaults. Rows that
        still fail validation are logged and skipped.
        """
        try:
            category = ServiceCategory(row.get("service_category") or "standard")
        except ValueError:
            category = ServiceCategory.STANDARD

        minutes = _parse_number(row.get("included_minutes"))
        cost = _parse_number(row.get("base_cost"))

        try:
            return cls(
                id=str(row.get("id", "")),
                name=str(row.get("task_name") or ""),
                included_minutes=int(minutes) if minutes is not None else DEFAULT_ROW_MINUTES,
                base_cost=cost if cost is not None else DEFAULT_ROW_COST,
                is_hospital_doctor=bool(row.get("is_hospital_doctor")),
                service_category=category,
                requires_discharge_upload=bool(row.get("requires_discharge_upload")),
                apply_hst=bool(row.get("apply_hst")),
            )
        except ValidationError as exc:
            logger.warning("Skipping invalid task row %r: %s", row.get("id"), exc)
            return None

    def to_row(self) -> dict[str, Any]:
        """Inverse of from_row, in the backing-store column names."""
        return {
            "id": self.id,
            "task_name": self.name,
            "included_minutes": self.included_minutes,
            "base_cost": self.base_cost,
            "is_hospital_doctor": self.is_hospital_doctor,
            "service_category": self.service_category.value,
            "requires_discharge_upload": self.requires_discharge_upload,
            "apply_hst": self.apply_hst,
            "is_active": True,
        }


def _parse_number(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
