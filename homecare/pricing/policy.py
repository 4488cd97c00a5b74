"""
Pricing policy loading, saving and regional surge zone lookup.

Defaults are derived from the task catalog (hospital and doctor rates) and
deployment settings. Administrator overrides are a JSON object in the
key-value store, merged field by field on top of those defaults: a field
the administrator never set keeps following the catalog.

Usage:
    loader = PolicyLoader(store, catalog)
    policy = loader.load_policy()
    loader.save_policy(policy.model_copy(update={"minimum_booking_fee": 30}))
"""

import json
import logging
from typing import Any, Optional

from pydantic import ValidationError

from homecare.catalog.tasks import TaskCatalog
from homecare.config import settings
from homecare.schemas.booking_schema import RegionalPrice
from homecare.schemas.pricing_schema import (
    DEFAULT_DOCTOR_APPOINTMENT_RATE,
    DEFAULT_HOSPITAL_DISCHARGE_RATE,
    PricingPolicy,
    SurgeZone,
)
from homecare.schemas.task_schema import ServiceCategory
from homecare.stores import ADMIN_PRICING_KEY, InMemoryStore, KeyValueStore
from homecare.utils import normalize_postal_code

logger = logging.getLogger(__name__)

# Share of the client price paid out to the PSW before regional bonuses
PSW_PAY_SHARE = 0.7


class PolicyLoader:
    """Reads and writes the pricing policy through an injected store."""

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        catalog: Optional[TaskCatalog] = None,
    ) -> None:
        self.store = store if store is not None else InMemoryStore()
        self.catalog = catalog if catalog is not None else TaskCatalog()

    def default_policy(self) -> PricingPolicy:
        """Policy with no overrides: catalog-derived rates plus settings."""
        tasks = self.catalog.get_tasks()
        hospital = [t.base_cost for t in tasks if t.service_category == ServiceCategory.HOSPITAL_DISCHARGE]
        doctor = [t.base_cost for t in tasks if t.service_category == ServiceCategory.DOCTOR_APPOINTMENT]
        return PricingPolicy(
            hospital_discharge_rate=max(hospital) if hospital else DEFAULT_HOSPITAL_DISCHARGE_RATE,
            doctor_appointment_rate=max(doctor) if doctor else DEFAULT_DOCTOR_APPOINTMENT_RATE,
            asap_multiplier=settings.pricing.asap_multiplier,
            hst_rate=settings.pricing.hst_rate,
        )

    def load_overrides(self) -> dict[str, Any]:
        """Stored override fields, or {} when absent or unreadable."""
        raw = self.store.get(ADMIN_PRICING_KEY)
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error("Stored pricing policy is not valid JSON: %s", exc)
            return {}
        if not isinstance(data, dict):
            logger.error("Stored pricing policy is not a JSON object; ignoring it")
            return {}

        unknown = sorted(set(data) - set(PricingPolicy.model_fields))
        if unknown:
            logger.warning("Ignoring unknown pricing policy fields: %s", ", ".join(unknown))
        return {key: value for key, value in data.items() if key in PricingPolicy.model_fields}

    def load_policy(self) -> PricingPolicy:
        defaults = self.default_policy()
        overrides = self.load_overrides()
        if not overrides:
            return defaults

        base = defaults.model_dump()
        merged = {**base, **overrides}
        try:
            return PricingPolicy.model_validate(merged)
        except ValidationError as exc:
            invalid = {str(err["loc"][0]) for err in exc.errors() if err["loc"]}
            logger.warning(
                "Invalid pricing policy overrides reverted to defaults: %s",
                ", ".join(sorted(invalid)),
            )
            for key in invalid:
                merged[key] = base[key]
            return PricingPolicy.model_validate(merged)

    def save_policy(self, policy: PricingPolicy) -> dict[str, Any]:
        """Persist only the fields that differ from the current defaults."""
        defaults = self.default_policy().model_dump(mode="json")
        current = policy.model_dump(mode="json")
        overrides = {key: value for key, value in current.items() if defaults.get(key) != value}
        self.store.set(ADMIN_PRICING_KEY, json.dumps(overrides))
        logger.info("Pricing policy saved (%d overridden fields)", len(overrides))
        return overrides

    def update_policy(self, **changes: Any) -> PricingPolicy:
        """Load, apply field changes, validate and save."""
        policy = PricingPolicy.model_validate({**self.load_policy().model_dump(), **changes})
        self.save_policy(policy)
        return policy


def _zone_matches(zone: SurgeZone, city: Optional[str], postal_code: Optional[str]) -> bool:
    if city and any(c.lower() == city.strip().lower() for c in zone.cities):
        return True
    if postal_code:
        prefix = normalize_postal_code(postal_code)[:2]
        return prefix in {p.upper() for p in zone.postal_code_prefixes}
    return False


def get_applicable_surge_zone(
    policy: PricingPolicy, city: Optional[str] = None, postal_code: Optional[str] = None
) -> Optional[SurgeZone]:
    """The single zone that applies to an address, if any.

    Lowest priority wins; equal priorities keep the policy's list order.
    """
    if not policy.regional_surge_enabled:
        return None

    ordered = sorted(enumerate(policy.surge_zones), key=lambda pair: (pair[1].priority, pair[0]))
    for _, zone in ordered:
        if zone.enabled and _zone_matches(zone, city, postal_code):
            return zone
    return None


def calculate_price_with_regional_surge(
    policy: PricingPolicy,
    base_price: float,
    city: Optional[str] = None,
    postal_code: Optional[str] = None,
) -> RegionalPrice:
    """Client total and PSW pay for a base price once the zone is applied."""
    zone = get_applicable_surge_zone(policy, city, postal_code)
    base_pay = base_price * PSW_PAY_SHARE

    if zone is None:
        return RegionalPrice(
            client_total=base_price,
            psw_pay=base_pay,
            surge_zone=None,
            client_surcharge=0.0,
            psw_bonus=0.0,
            psw_flat_bonus=0.0,
        )

    return RegionalPrice(
        client_total=base_price + zone.client_surcharge,
        psw_pay=base_pay + zone.psw_bonus + zone.psw_flat_bonus,
        surge_zone=zone,
        client_surcharge=zone.client_surcharge,
        psw_bonus=zone.psw_bonus,
        psw_flat_bonus=zone.psw_flat_bonus,
    )
