"""Modifier value type and the immutable rule snapshots the resolver reads.

Snapshots are built from ORM rows once per request so the pricing core never
touches a session.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from ratebook.enums import ModifierType, RuleCategory, RuleStatus


def _dec(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class Modifier:
    """One price adjustment, already matched to a specific night."""

    category: RuleCategory
    rule_id: int
    modifier_type: ModifierType
    value: Decimal
    priority: int = 0
    label: str = ""

    @property
    def sort_key(self) -> tuple[int, int, int]:
        return (self.category.rank, self.priority, self.rule_id)

    def to_dict(self) -> dict:
        return {
            "category": self.category.value,
            "rule_id": self.rule_id,
            "modifier_type": self.modifier_type.value,
            "value": str(self.value),
            "priority": self.priority,
            "label": self.label,
        }


@dataclass(frozen=True)
class RatePlanRule:
    id: int
    code: str
    room_type_id: int | None
    modifier_type: str
    modifier_value: Decimal
    priority: int = 0
    min_stay: int = 1
    max_stay: int = 0
    valid_from: date | None = None
    valid_to: date | None = None
    status: str = RuleStatus.ACTIVE.value

    @classmethod
    def from_model(cls, row) -> "RatePlanRule":
        return cls(
            id=row.id,
            code=row.code,
            room_type_id=row.room_type_id,
            modifier_type=row.modifier_type,
            modifier_value=_dec(row.modifier_value),
            priority=row.priority or 0,
            min_stay=row.min_stay or 1,
            max_stay=row.max_stay or 0,
            valid_from=row.valid_from,
            valid_to=row.valid_to,
            status=row.status,
        )


@dataclass(frozen=True)
class SeasonalRule:
    id: int
    name: str
    room_type_id: int | None
    start_date: date
    end_date: date
    modifier_type: str
    modifier_value: Decimal
    priority: int = 0
    min_stay: int = 1
    days_of_week: tuple[int, ...] = ()  # ISO weekday numbers, empty means every day
    rate_plan_id: int | None = None
    status: str = RuleStatus.ACTIVE.value

    @classmethod
    def from_model(cls, row) -> "SeasonalRule":
        return cls(
            id=row.id,
            name=row.name,
            room_type_id=row.room_type_id,
            start_date=row.start_date,
            end_date=row.end_date,
            modifier_type=row.modifier_type,
            modifier_value=_dec(row.modifier_value),
            priority=row.priority or 0,
            min_stay=row.min_stay or 1,
            days_of_week=tuple(int(d) for d in (row.days_of_week or [])),
            rate_plan_id=row.rate_plan_id,
            status=row.status,
        )


@dataclass(frozen=True)
class DowRule:
    id: int
    day_of_week: int  # 0 = Sunday
    room_type_id: int | None
    modifier_type: str
    modifier_value: Decimal
    status: str = RuleStatus.ACTIVE.value

    @classmethod
    def from_model(cls, row) -> "DowRule":
        return cls(
            id=row.id,
            day_of_week=row.day_of_week,
            room_type_id=row.room_type_id,
            modifier_type=row.modifier_type,
            modifier_value=_dec(row.modifier_value),
            status=row.status,
        )


@dataclass(frozen=True)
class OccupancyRule:
    id: int
    threshold_percent: int
    room_type_id: int | None
    modifier_type: str
    modifier_value: Decimal
    priority: int = 0
    status: str = RuleStatus.ACTIVE.value

    @classmethod
    def from_model(cls, row) -> "OccupancyRule":
        return cls(
            id=row.id,
            threshold_percent=row.threshold_percent,
            room_type_id=row.room_type_id,
            modifier_type=row.modifier_type,
            modifier_value=_dec(row.modifier_value),
            priority=row.priority or 0,
            status=row.status,
        )


@dataclass(frozen=True)
class EventRule:
    id: int
    name: str
    room_type_id: int | None
    start_date: date
    end_date: date
    modifier_type: str
    modifier_value: Decimal
    priority: int = 0
    status: str = RuleStatus.ACTIVE.value

    @classmethod
    def from_model(cls, row) -> "EventRule":
        return cls(
            id=row.id,
            name=row.name,
            room_type_id=row.room_type_id,
            start_date=row.start_date,
            end_date=row.end_date,
            modifier_type=row.modifier_type,
            modifier_value=_dec(row.modifier_value),
            priority=row.priority or 0,
            status=row.status,
        )


@dataclass(frozen=True)
class RuleSet:
    """Every rule that may apply to one room type for one stay."""

    rate_plans: tuple[RatePlanRule, ...] = ()
    seasonal: tuple[SeasonalRule, ...] = ()
    day_of_week: tuple[DowRule, ...] = ()
    occupancy: tuple[OccupancyRule, ...] = ()
    events: tuple[EventRule, ...] = ()

    @property
    def rate_plan_ids(self) -> set[int]:
        return {plan.id for plan in self.rate_plans}
