"""Shared test fixtures and helpers."""

from datetime import datetime
from typing import Any, Optional

import pytest

from homecare.catalog.tasks import TaskCatalog
from homecare.geo.proximity import ProximityVerifier
from homecare.pricing.calculator import BookingPriceCalculator
from homecare.pricing.policy import PolicyLoader
from homecare.pricing.surge_schedule import SurgeScheduleEngine
from homecare.schemas.pricing_schema import SurgeScheduleRule
from homecare.stores import InMemoryStore

# Monday 2 June 2025, 10:00
FIXED_NOW = datetime(2025, 6, 2, 10, 0)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def catalog():
    return TaskCatalog()


@pytest.fixture
def policy_loader(store, catalog):
    return PolicyLoader(store, catalog)


@pytest.fixture
def surge_engine(store):
    return SurgeScheduleEngine(store, clock=lambda: FIXED_NOW)


@pytest.fixture
def calculator(catalog, policy_loader, surge_engine):
    return BookingPriceCalculator(catalog, policy_loader, surge_engine)


@pytest.fixture
def verifier():
    return ProximityVerifier()


def make_rule(
    rule_id: str = "rule-1",
    multiplier: float = 1.2,
    stackable: bool = False,
    enabled: bool = True,
    days_of_week: Optional[list[int]] = None,
    **bounds: Any,
) -> SurgeScheduleRule:
    """Helper to create a SurgeScheduleRule with no window unless given."""
    return SurgeScheduleRule(
        id=rule_id,
        name=rule_id.replace("-", " ").title(),
        enabled=enabled,
        multiplier=multiplier,
        stackable=stackable,
        days_of_week=days_of_week,
        **bounds,
    )


def make_task_row(
    task_id: str,
    name: str,
    minutes: Any = 30,
    cost: Any = 35,
    **extra: Any,
) -> dict[str, Any]:
    """Helper to create a backing-store task row."""
    row = {
        "id": task_id,
        "task_name": name,
        "included_minutes": minutes,
        "base_cost": cost,
        "is_active": True,
    }
    row.update(extra)
    return row
