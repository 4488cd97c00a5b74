"""
Scheduled surge rules and their combined multiplier.

Rules are evaluated in two distinct ways: against the current instant for
operational views, and against a booking's scheduled date and time when
pricing it. Active stackable rules multiply together; the highest
non-stackable rule acts as a floor over that product.

Usage:
    engine = SurgeScheduleEngine(store)
    engine.calculate_active_surge_multiplier("2025-12-24", "18:30").multiplier
"""

import json
import logging
from datetime import date, datetime
from typing import Callable, Iterable, Optional

from pydantic import ValidationError

from homecare.schemas.booking_schema import CheckoutSurgeInfo, SurgeEvaluation
from homecare.schemas.pricing_schema import SurgeScheduleRule
from homecare.stores import SURGE_SCHEDULE_RULES_KEY, InMemoryStore, KeyValueStore
from homecare.utils import minutes_of_day

logger = logging.getLogger(__name__)


def _day_index(value: date) -> int:
    """Day of week with 0 = Sunday, as stored in rules."""
    return (value.weekday() + 1) % 7


def _within_bounds(rule: SurgeScheduleRule, date_str: str, time_str: str, day: int) -> bool:
    if rule.start_date and date_str < rule.start_date:
        return False
    if rule.end_date and date_str > rule.end_date:
        return False
    if rule.start_time and time_str < rule.start_time:
        return False
    if rule.end_time and time_str > rule.end_time:
        return False
    if rule.days_of_week and day not in rule.days_of_week:
        return False
    return True


def combine_multipliers(rules: Iterable[SurgeScheduleRule]) -> float:
    """Stackable rules multiply; a non-stackable rule can only raise the result."""
    stacked = 1.0
    highest_single: Optional[float] = None
    for rule in rules:
        if rule.stackable:
            stacked *= rule.multiplier
        elif highest_single is None or rule.multiplier > highest_single:
            highest_single = rule.multiplier
    if highest_single is None:
        return stacked
    return max(stacked, highest_single)


class SurgeScheduleEngine:
    """Evaluates surge schedule rules from the key-value store."""

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        rules: Optional[list[SurgeScheduleRule]] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store = store if store is not None else InMemoryStore()
        self._rules = rules
        self._clock = clock

    def load_rules(self) -> list[SurgeScheduleRule]:
        """Rules from the store; missing or malformed data means no rules."""
        if self._rules is not None:
            return list(self._rules)

        raw = self.store.get(SURGE_SCHEDULE_RULES_KEY)
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error("Stored surge schedule rules are not valid JSON: %s", exc)
            return []
        if not isinstance(data, list):
            logger.error("Stored surge schedule rules are not a JSON array; ignoring them")
            return []

        rules: list[SurgeScheduleRule] = []
        for entry in data:
            try:
                rules.append(SurgeScheduleRule.model_validate(entry))
            except ValidationError as exc:
                logger.warning("Skipping invalid surge rule %r: %s", entry, exc)
        return rules

    def save_rules(self, rules: list[SurgeScheduleRule]) -> None:
        payload = [rule.model_dump(mode="json", exclude_none=True) for rule in rules]
        self.store.set(SURGE_SCHEDULE_RULES_KEY, json.dumps(payload))
        self._rules = None
        logger.info("Saved %d surge schedule rules", len(rules))

    def is_rule_active(self, rule: SurgeScheduleRule, check_time: Optional[datetime] = None) -> bool:
        """Is the rule in effect at the given instant (default: now)?"""
        if not rule.enabled:
            return False
        now = check_time or self._clock()
        return _within_bounds(rule, now.date().isoformat(), now.strftime("%H:%M"), _day_index(now))

    def is_rule_active_for_booking(
        self, rule: SurgeScheduleRule, booking_date: str, booking_time: str
    ) -> bool:
        """Will the rule be in effect for a booking scheduled at this slot?"""
        if not rule.enabled:
            return False
        try:
            slot_date = date.fromisoformat(booking_date)
            minutes = minutes_of_day(booking_time)
        except ValueError:
            logger.warning("Cannot evaluate surge for booking slot %r %r", booking_date, booking_time)
            return False
        time_str = f"{minutes // 60:02d}:{minutes % 60:02d}"
        return _within_bounds(rule, slot_date.isoformat(), time_str, _day_index(slot_date))

    def calculate_active_surge_multiplier(
        self, booking_date: Optional[str] = None, booking_time: Optional[str] = None
    ) -> SurgeEvaluation:
        rules = self.load_rules()
        if booking_date and booking_time:
            active = [r for r in rules if self.is_rule_active_for_booking(r, booking_date, booking_time)]
        else:
            active = [r for r in rules if self.is_rule_active(r)]

        if not active:
            return SurgeEvaluation()

        multiplier = combine_multipliers(active)
        logger.debug(
            "Active surge rules: %s -> %.3fx", ", ".join(r.name for r in active), multiplier
        )
        return SurgeEvaluation(
            multiplier=multiplier,
            active_rules=active,
            surge_amount_percent=(multiplier - 1) * 100,
        )

    def get_surge_info_for_checkout(
        self, booking_date: str, booking_time: str, subtotal: float
    ) -> CheckoutSurgeInfo:
        evaluation = self.calculate_active_surge_multiplier(booking_date, booking_time)
        return CheckoutSurgeInfo(
            has_surge=evaluation.multiplier > 1,
            surge_percentage=evaluation.surge_amount_percent,
            surge_amount=subtotal * (evaluation.multiplier - 1),
            adjusted_total=subtotal * evaluation.multiplier,
            rule_names=evaluation.rule_names,
        )
