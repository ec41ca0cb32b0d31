"""Stay quote orchestration.

Checks occupancy and booking restrictions, loads the rules for a room type and
prices every night of the stay through the pricing core. Fees (service and
extra person) are added, the promo code and the loyalty tier discount are
taken off, room-charge taxes are applied, then the display currency.
A quote never records promo usage.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ratebook.config import settings
from ratebook.enums import RuleStatus, TaxScope
from ratebook.errors import NotFoundError, PricingError, UnknownCurrencyError
from ratebook.models.pricing import (
    DowRule,
    EventOverride,
    OccupancyRule,
    RatePlan,
    RateRestriction,
    RoomType,
    SeasonalRate,
)
from ratebook.services.currency_service import currency_service
from ratebook.services.loyalty_service import loyalty_service
from ratebook.services.pricing import modifiers
from ratebook.services.pricing.composer import ZERO, Composition, compose_detailed
from ratebook.services.pricing.fees import extra_person_charge, service_fee
from ratebook.services.pricing.parity import ParityResult, compare_rates
from ratebook.services.pricing.promotions import tier_discount
from ratebook.services.pricing.resolver import Resolution, resolve_detailed
from ratebook.services.pricing.restrictions import Restriction, check_restrictions
from ratebook.services.promo_service import promo_service
from ratebook.services.tax_service import tax_service

logger = logging.getLogger(__name__)

ACTIVE = RuleStatus.ACTIVE.value


@dataclass
class NightlyRate:
    night: date
    base_rate: Decimal
    rate: Decimal
    modifiers: list[dict] = field(default_factory=list)
    clamped: bool = False


@dataclass
class StayQuote:
    room_type_id: int
    rate_plan_id: int | None
    check_in: date
    check_out: date
    nights: int
    nightly_rates: list[NightlyRate]
    room_subtotal: Decimal
    service_fee: Decimal
    discount: Decimal
    promo_code: str | None
    taxable_amount: Decimal
    taxes: list[dict]
    tax_total: Decimal
    grand_total: Decimal
    currency: str
    converted_total: Decimal
    currency_fallback: bool = False
    adults: int = 1
    children: int = 0
    extra_person_fee: Decimal = ZERO
    member_discount: Decimal = ZERO
    loyalty_tier: str | None = None
    skipped_rules: list[dict] = field(default_factory=list)
    quoted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class PricingService:
    async def get_room_type(self, db: AsyncSession, room_type_id: int) -> RoomType:
        room = await db.get(RoomType, room_type_id)
        if room is None:
            raise NotFoundError(f"Room type {room_type_id} not found", room_type_id=room_type_id)
        return room

    async def resolve_rate_plan(
        self,
        db: AsyncSession,
        room_type_id: int,
        rate_plan_id: int | None = None,
    ) -> RatePlan:
        """The requested plan, or the room type's default plan."""
        if rate_plan_id is not None:
            plan = await db.get(RatePlan, rate_plan_id)
            if plan is None:
                raise NotFoundError(f"Rate plan {rate_plan_id} not found", rate_plan_id=rate_plan_id)
            if plan.status != ACTIVE:
                raise PricingError(f"Rate plan {plan.code} is not active", rate_plan_id=plan.id)
            if plan.room_type_id is not None and plan.room_type_id != room_type_id:
                raise PricingError(
                    f"Rate plan {plan.code} does not apply to room type {room_type_id}",
                    rate_plan_id=plan.id,
                    room_type_id=room_type_id,
                )
            return plan

        result = await db.execute(
            select(RatePlan).where(
                RatePlan.status == ACTIVE,
                RatePlan.is_default.is_(True),
                (RatePlan.room_type_id == room_type_id) | RatePlan.room_type_id.is_(None),
            )
        )
        # Room-specific default beats the property-wide one
        plans = sorted(result.scalars().all(), key=lambda p: (p.room_type_id is None, p.priority, p.id))
        if not plans:
            raise PricingError(f"No default rate plan for room type {room_type_id}", room_type_id=room_type_id)
        return plans[0]

    async def load_rules(self, db: AsyncSession, plan: RatePlan | None) -> modifiers.RuleSet:
        """Every active rule, as snapshots. Room-type filtering is the resolver's job."""

        async def active(model):
            result = await db.execute(select(model).where(model.status == ACTIVE).order_by(model.id))
            return result.scalars().all()

        return modifiers.RuleSet(
            rate_plans=(modifiers.RatePlanRule.from_model(plan),) if plan is not None else (),
            seasonal=tuple(modifiers.SeasonalRule.from_model(r) for r in await active(SeasonalRate)),
            day_of_week=tuple(modifiers.DowRule.from_model(r) for r in await active(DowRule)),
            occupancy=tuple(modifiers.OccupancyRule.from_model(r) for r in await active(OccupancyRule)),
            events=tuple(modifiers.EventRule.from_model(r) for r in await active(EventOverride)),
        )

    async def known_room_types(self, db: AsyncSession) -> set[int]:
        result = await db.execute(select(RoomType.id))
        return set(result.scalars().all())

    async def load_restrictions(
        self,
        db: AsyncSession,
        room_type_id: int,
        check_in: date,
        check_out: date,
    ) -> list[Restriction]:
        # check_out is included so closed-to-departure rows are seen
        result = await db.execute(
            select(RateRestriction)
            .where(
                RateRestriction.room_type_id == room_type_id,
                RateRestriction.status == ACTIVE,
                RateRestriction.date_from <= check_out,
                RateRestriction.date_to >= check_in,
            )
            .order_by(RateRestriction.id)
        )
        return [Restriction.from_model(r) for r in result.scalars().all()]

    def extra_person_fee(self, room: RoomType, adults: int, children: int, nights: int) -> Decimal:
        """Room-type prices win when set above zero, else the configured charges."""
        adult_rate = room.extra_adult_price
        if not adult_rate or adult_rate <= 0:
            adult_rate = Decimal(str(settings.extra_adult_charge))
        child_rate = room.extra_child_price
        if not child_rate or child_rate <= 0:
            child_rate = Decimal(str(settings.extra_child_charge))
        base_occupancy = room.base_occupancy if room.base_occupancy is not None else 2
        return extra_person_charge(
            adults, children, nights, base_occupancy, Decimal(str(adult_rate)), Decimal(str(child_rate))
        )

    async def preview(
        self,
        db: AsyncSession,
        room_type_id: int,
        night: date,
        occupancy_percent: float = 0,
        rate_plan_id: int | None = None,
        nights: int | None = None,
    ) -> tuple[RoomType, Resolution, Composition]:
        """Resolve and compose a single night without any of the stay steps."""
        room = await self.get_room_type(db, room_type_id)
        plan = await self.resolve_rate_plan(db, room_type_id, rate_plan_id)
        rules = await self.load_rules(db, plan)
        resolution = resolve_detailed(
            night,
            room_type_id,
            occupancy_percent,
            rules,
            nights=nights,
            known_room_types=await self.known_room_types(db),
        )
        return room, resolution, compose_detailed(room.base_price, resolution.modifiers)

    async def quote_stay(
        self,
        db: AsyncSession,
        room_type_id: int,
        check_in: date,
        check_out: date,
        *,
        occupancy_percent: float = 0,
        rate_plan_id: int | None = None,
        promo_code: str | None = None,
        guest_id: int | None = None,
        currency: str | None = None,
        adults: int = 1,
        children: int = 0,
        loyalty_member_id: int | None = None,
        channel: str | None = None,
    ) -> StayQuote:
        room = await self.get_room_type(db, room_type_id)
        if room.status != ACTIVE:
            raise PricingError(f"Room type {room.name} is not bookable", room_type_id=room.id)
        if adults < 1 or children < 0:
            raise PricingError("A stay needs at least one adult", adults=adults, children=children)
        if room.max_occupancy and adults + children > room.max_occupancy:
            raise PricingError(
                f"Room type {room.name} sleeps at most {room.max_occupancy}",
                room_type_id=room.id,
                adults=adults,
                children=children,
            )

        nights = (check_out - check_in).days
        if nights <= 0:
            raise PricingError(
                "Check-out must be after check-in",
                check_in=check_in.isoformat(),
                check_out=check_out.isoformat(),
            )

        plan = await self.resolve_rate_plan(db, room_type_id, rate_plan_id)
        if nights < plan.min_stay:
            raise PricingError(
                f"Rate plan {plan.code} requires at least {plan.min_stay} night(s)",
                rate_plan_id=plan.id,
                nights=nights,
            )
        if plan.max_stay and nights > plan.max_stay:
            raise PricingError(
                f"Rate plan {plan.code} allows at most {plan.max_stay} night(s)",
                rate_plan_id=plan.id,
                nights=nights,
            )
        check_restrictions(
            await self.load_restrictions(db, room_type_id, check_in, check_out),
            room_type_id,
            check_in,
            check_out,
            rate_plan_id=plan.id,
            channel=channel,
        )

        rules = await self.load_rules(db, plan)
        known = await self.known_room_types(db)
        base_rate = Decimal(str(room.base_price))

        nightly: list[NightlyRate] = []
        skipped: dict[tuple[str, int], dict] = {}
        for offset in range(nights):
            night = check_in + timedelta(days=offset)
            resolution = resolve_detailed(
                night, room_type_id, occupancy_percent, rules, nights=nights, known_room_types=known
            )
            for err in resolution.skipped:
                skipped.setdefault((err.extra["category"], err.extra["rule_id"]), err.to_dict())
            composed = compose_detailed(base_rate, resolution.modifiers)
            nightly.append(
                NightlyRate(
                    night=night,
                    base_rate=base_rate,
                    rate=composed.subtotal,
                    modifiers=[m.to_dict() for m in composed.applied],
                    clamped=composed.clamped,
                )
            )

        room_subtotal = sum((n.rate for n in nightly), ZERO)
        fee = service_fee(room_subtotal, Decimal(str(settings.service_fee_rate)))
        extra_fee = self.extra_person_fee(room, adults, children, nights)

        discount = ZERO
        applied_code = None
        if promo_code:
            application = await promo_service.validate(
                db,
                promo_code,
                room_subtotal,
                nights=nights,
                guest_id=guest_id,
                room_type_id=room_type_id,
            )
            discount = application.discount
            applied_code = application.code

        member_discount = ZERO
        tier_name = None
        if loyalty_member_id is not None:
            member = await loyalty_service.get_member(db, loyalty_member_id)
            if member.tier is not None:
                tier_name = member.tier.name
                member_discount = tier_discount(room_subtotal - discount, member.tier.discount_percent)

        taxable = max(room_subtotal + fee + extra_fee - discount - member_discount, ZERO)
        taxed = await tax_service.calculate(db, taxable, TaxScope.ROOM_CHARGE)

        base_code = await currency_service.base_code(db)
        target = (currency or base_code).upper()
        converted = taxed.grand_total
        fallback = False
        if target != base_code:
            try:
                converted = await currency_service.convert(db, taxed.grand_total, base_code, target)
            except UnknownCurrencyError as e:
                logger.warning(f"Quote currency fallback to {base_code}: {e.message}")
                target = base_code
                fallback = True

        logger.info(
            f"Quote room_type={room_type_id} plan={plan.code} {check_in}..{check_out} "
            f"nights={nights} total={taxed.grand_total} {base_code}"
        )
        return StayQuote(
            room_type_id=room_type_id,
            rate_plan_id=plan.id,
            check_in=check_in,
            check_out=check_out,
            nights=nights,
            nightly_rates=nightly,
            room_subtotal=room_subtotal,
            service_fee=fee,
            discount=discount,
            promo_code=applied_code,
            taxable_amount=taxable,
            taxes=[line.to_dict() for line in taxed.breakdown],
            tax_total=taxed.tax_total,
            grand_total=taxed.grand_total,
            currency=target,
            converted_total=converted,
            currency_fallback=fallback,
            adults=adults,
            children=children,
            extra_person_fee=extra_fee,
            member_discount=member_discount,
            loyalty_tier=tier_name,
            skipped_rules=list(skipped.values()),
        )

    def check_parity(
        self,
        our_rate: Decimal,
        their_rate: Decimal,
        threshold_percent: float | None = None,
        channel: str | None = None,
    ) -> ParityResult:
        threshold = settings.parity_threshold_percent if threshold_percent is None else threshold_percent
        result = compare_rates(our_rate, their_rate, threshold)
        if result.is_violation:
            logger.warning(
                f"Rate parity {result.status.value}: channel={channel or 'unknown'} "
                f"ours={our_rate} theirs={their_rate} ({result.pct_difference}%)"
            )
        return result


pricing_service = PricingService()
