"""Booking restrictions: stop-sell, closed to arrival/departure and stay length.

A restriction covers a date when the date is inside ``[date_from, date_to]``
and, if ``days_of_week`` is set, falls on one of those ISO weekdays. For a
stay ``[check_in, check_out)``:

- ``stop_sell`` fails when it covers any night,
- ``cta`` fails when it covers ``check_in``,
- ``ctd`` fails when it covers ``check_out``,
- ``min_stay`` / ``max_stay`` fail when they cover any night and the stay is
  shorter / longer than ``value``.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta

from ratebook.enums import RestrictionType, RuleStatus
from ratebook.errors import InvalidRuleError, PricingError

# Order the checks run in; the first failure is reported
_CHECK_ORDER = (
    RestrictionType.STOP_SELL,
    RestrictionType.CLOSED_TO_ARRIVAL,
    RestrictionType.CLOSED_TO_DEPARTURE,
    RestrictionType.MIN_STAY,
    RestrictionType.MAX_STAY,
)


@dataclass(frozen=True)
class Restriction:
    id: int
    room_type_id: int
    restriction_type: str
    date_from: date
    date_to: date
    value: int | None = None
    rate_plan_id: int | None = None
    channel: str | None = None
    days_of_week: tuple[int, ...] = ()
    status: str = RuleStatus.ACTIVE.value

    @classmethod
    def from_model(cls, row) -> "Restriction":
        return cls(
            id=row.id,
            room_type_id=row.room_type_id,
            restriction_type=row.restriction_type,
            date_from=row.date_from,
            date_to=row.date_to,
            value=row.value,
            rate_plan_id=row.rate_plan_id,
            channel=row.channel or None,
            days_of_week=tuple(int(d) for d in (row.days_of_week or [])),
            status=row.status,
        )

    @property
    def kind(self) -> RestrictionType:
        try:
            return RestrictionType(self.restriction_type)
        except ValueError:
            raise InvalidRuleError(
                f"restriction {self.id} has unknown type {self.restriction_type!r}",
                rule_id=self.id,
                category="restriction",
            ) from None

    def covers(self, day: date) -> bool:
        if day < self.date_from or day > self.date_to:
            return False
        return not self.days_of_week or day.isoweekday() in self.days_of_week

    def applies_to(self, room_type_id: int, rate_plan_id: int | None, channel: str | None) -> bool:
        if self.status != RuleStatus.ACTIVE.value or self.room_type_id != room_type_id:
            return False
        if self.rate_plan_id is not None and self.rate_plan_id != rate_plan_id:
            return False
        return self.channel is None or self.channel == channel


def validate_restriction(restriction: Restriction) -> None:
    kind = restriction.kind
    if restriction.date_from > restriction.date_to:
        raise InvalidRuleError(
            f"restriction {restriction.id} starts after it ends ({restriction.date_from} > {restriction.date_to})",
            rule_id=restriction.id,
            category="restriction",
        )
    if kind.needs_value and (restriction.value is None or restriction.value < 1):
        raise InvalidRuleError(
            f"{kind.value} restriction {restriction.id} needs a number of nights",
            rule_id=restriction.id,
            category="restriction",
        )
    bad = [d for d in restriction.days_of_week if not 1 <= d <= 7]
    if bad:
        raise InvalidRuleError(
            f"restriction {restriction.id} has days_of_week outside 1..7: {bad}",
            rule_id=restriction.id,
            category="restriction",
        )


def _failure(restriction: Restriction, check_in: date, check_out: date) -> tuple[date, str] | None:
    nights = (check_out - check_in).days
    stay = [check_in + timedelta(days=i) for i in range(nights)]
    kind = restriction.kind

    if kind is RestrictionType.CLOSED_TO_ARRIVAL:
        if restriction.covers(check_in):
            return check_in, f"Arrivals are closed on {check_in.isoformat()}"
        return None
    if kind is RestrictionType.CLOSED_TO_DEPARTURE:
        if restriction.covers(check_out):
            return check_out, f"Departures are closed on {check_out.isoformat()}"
        return None

    night = next((d for d in stay if restriction.covers(d)), None)
    if night is None:
        return None
    if kind is RestrictionType.STOP_SELL:
        return night, f"Sales are stopped for {night.isoformat()}"
    if kind is RestrictionType.MIN_STAY and nights < restriction.value:
        return night, f"Stays including {night.isoformat()} require at least {restriction.value} night(s)"
    if kind is RestrictionType.MAX_STAY and nights > restriction.value:
        return night, f"Stays including {night.isoformat()} allow at most {restriction.value} night(s)"
    return None


def check_restrictions(
    restrictions: Iterable[Restriction],
    room_type_id: int,
    check_in: date,
    check_out: date,
    rate_plan_id: int | None = None,
    channel: str | None = None,
) -> None:
    """Raise ``PricingError`` for the first restriction the stay breaks."""
    relevant = []
    for restriction in restrictions:
        validate_restriction(restriction)
        if restriction.applies_to(room_type_id, rate_plan_id, channel):
            relevant.append(restriction)
    relevant.sort(key=lambda r: (_CHECK_ORDER.index(r.kind), r.id))

    for restriction in relevant:
        failure = _failure(restriction, check_in, check_out)
        if failure is None:
            continue
        on_date, message = failure
        raise PricingError(
            message,
            reason=restriction.kind.value,
            restriction_id=restriction.id,
            date=on_date.isoformat(),
            room_type_id=room_type_id,
        )
