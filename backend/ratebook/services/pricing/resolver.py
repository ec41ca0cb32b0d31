"""Modifier resolver: which rules apply to one room type on one night.

The result is ordered by category specificity (event override, seasonal,
day of week, occupancy, rate plan), then ``priority`` ascending, then rule id
ascending, so the same inputs always produce the same list.
"""

import logging
from collections.abc import Collection
from dataclasses import dataclass, field
from datetime import date

from ratebook.enums import ModifierType, RuleCategory, RuleStatus
from ratebook.errors import InvalidRuleError, ResolutionError
from ratebook.services.pricing.modifiers import (
    DowRule,
    EventRule,
    Modifier,
    OccupancyRule,
    RatePlanRule,
    RuleSet,
    SeasonalRule,
)

logger = logging.getLogger(__name__)


@dataclass
class Resolution:
    modifiers: list[Modifier] = field(default_factory=list)
    skipped: list[ResolutionError] = field(default_factory=list)


def _modifier_type(rule, category: RuleCategory) -> ModifierType:
    try:
        return ModifierType(rule.modifier_type)
    except ValueError:
        raise InvalidRuleError(
            f"{category.value} rule {rule.id} has unknown modifier type {rule.modifier_type!r}",
            rule_id=rule.id,
            category=category.value,
        ) from None


def _check_range(rule, category: RuleCategory, start: date | None, end: date | None) -> None:
    if start is not None and end is not None and start > end:
        raise InvalidRuleError(
            f"{category.value} rule {rule.id} starts after it ends ({start} > {end})",
            rule_id=rule.id,
            category=category.value,
        )


def _validate(rules: RuleSet) -> None:
    for plan in rules.rate_plans:
        _modifier_type(plan, RuleCategory.RATE_PLAN)
        _check_range(plan, RuleCategory.RATE_PLAN, plan.valid_from, plan.valid_to)
    for rule in rules.seasonal:
        _modifier_type(rule, RuleCategory.SEASONAL)
        _check_range(rule, RuleCategory.SEASONAL, rule.start_date, rule.end_date)
        bad = [d for d in rule.days_of_week if not 1 <= d <= 7]
        if bad:
            raise InvalidRuleError(
                f"seasonal rule {rule.id} has days_of_week outside 1..7: {bad}",
                rule_id=rule.id,
                category=RuleCategory.SEASONAL.value,
            )
    for rule in rules.day_of_week:
        _modifier_type(rule, RuleCategory.DAY_OF_WEEK)
        if not 0 <= rule.day_of_week <= 6:
            raise InvalidRuleError(
                f"day-of-week rule {rule.id} has day_of_week {rule.day_of_week} outside 0..6",
                rule_id=rule.id,
                category=RuleCategory.DAY_OF_WEEK.value,
            )
    for rule in rules.occupancy:
        _modifier_type(rule, RuleCategory.OCCUPANCY)
        if not 0 <= rule.threshold_percent <= 100:
            raise InvalidRuleError(
                f"occupancy rule {rule.id} has threshold {rule.threshold_percent} outside 0..100",
                rule_id=rule.id,
                category=RuleCategory.OCCUPANCY.value,
            )
    for rule in rules.events:
        _modifier_type(rule, RuleCategory.EVENT_OVERRIDE)
        _check_range(rule, RuleCategory.EVENT_OVERRIDE, rule.start_date, rule.end_date)


def _active(rule) -> bool:
    return rule.status == RuleStatus.ACTIVE.value


def _room_matches(rule, room_type_id: int) -> bool:
    return rule.room_type_id is None or rule.room_type_id == room_type_id


def _to_modifier(rule, category: RuleCategory, label: str, priority: int = 0) -> Modifier:
    return Modifier(
        category=category,
        rule_id=rule.id,
        modifier_type=ModifierType(rule.modifier_type),
        value=rule.modifier_value,
        priority=priority,
        label=label,
    )


def _plan_matches(plan: RatePlanRule, day: date) -> bool:
    if plan.valid_from is not None and day < plan.valid_from:
        return False
    if plan.valid_to is not None and day > plan.valid_to:
        return False
    return True


def _seasonal_matches(rule: SeasonalRule, day: date, nights: int | None, plan_ids: set[int]) -> bool:
    if not rule.start_date <= day <= rule.end_date:
        return False
    if rule.days_of_week and day.isoweekday() not in rule.days_of_week:
        return False
    if nights is not None and nights < rule.min_stay:
        return False
    if rule.rate_plan_id is not None and rule.rate_plan_id not in plan_ids:
        return False
    return True


def _dow_matches(rule: DowRule, day: date) -> bool:
    # Stored as 0=Sunday..6=Saturday
    return day.isoweekday() % 7 == rule.day_of_week


def _event_matches(rule: EventRule, day: date) -> bool:
    return rule.start_date <= day <= rule.end_date


def _best_occupancy(rules: list[OccupancyRule], occupancy_percent: float) -> OccupancyRule | None:
    matching = [r for r in rules if occupancy_percent >= r.threshold_percent]
    if not matching:
        return None
    return min(matching, key=lambda r: (-r.threshold_percent, r.priority, r.id))


def resolve_detailed(
    day: date,
    room_type_id: int,
    occupancy_percent: float,
    rules: RuleSet,
    *,
    nights: int | None = None,
    known_room_types: Collection[int] | None = None,
) -> Resolution:
    """Resolve the ordered modifiers for one night and report skipped rules."""
    _validate(rules)
    result = Resolution()

    def usable(rule, category: RuleCategory) -> bool:
        if not _active(rule):
            return False
        if (
            known_room_types is not None
            and rule.room_type_id is not None
            and rule.room_type_id not in known_room_types
        ):
            err = ResolutionError(
                f"{category.value} rule {rule.id} references missing room type {rule.room_type_id}",
                rule_id=rule.id,
                category=category.value,
            )
            logger.warning(f"Skipping rule: {err.message}")
            result.skipped.append(err)
            return False
        return _room_matches(rule, room_type_id)

    found: list[Modifier] = []

    for rule in rules.events:
        if usable(rule, RuleCategory.EVENT_OVERRIDE) and _event_matches(rule, day):
            found.append(_to_modifier(rule, RuleCategory.EVENT_OVERRIDE, rule.name, rule.priority))

    plan_ids = rules.rate_plan_ids
    for rule in rules.seasonal:
        if usable(rule, RuleCategory.SEASONAL) and _seasonal_matches(rule, day, nights, plan_ids):
            found.append(_to_modifier(rule, RuleCategory.SEASONAL, rule.name, rule.priority))

    for rule in rules.day_of_week:
        if usable(rule, RuleCategory.DAY_OF_WEEK) and _dow_matches(rule, day):
            found.append(_to_modifier(rule, RuleCategory.DAY_OF_WEEK, day.strftime("%A")))

    candidates = [r for r in rules.occupancy if usable(r, RuleCategory.OCCUPANCY)]
    best = _best_occupancy(candidates, occupancy_percent)
    if best is not None:
        found.append(
            _to_modifier(best, RuleCategory.OCCUPANCY, f"Occupancy >= {best.threshold_percent}%", best.priority)
        )

    for plan in rules.rate_plans:
        if usable(plan, RuleCategory.RATE_PLAN) and _plan_matches(plan, day):
            found.append(_to_modifier(plan, RuleCategory.RATE_PLAN, plan.code, plan.priority))

    result.modifiers = sorted(found, key=lambda m: m.sort_key)
    return result


def resolve(
    day: date,
    room_type_id: int,
    occupancy_percent: float,
    rules: RuleSet,
    *,
    nights: int | None = None,
    known_room_types: Collection[int] | None = None,
) -> list[Modifier]:
    return resolve_detailed(
        day,
        room_type_id,
        occupancy_percent,
        rules,
        nights=nights,
        known_room_types=known_room_types,
    ).modifiers
