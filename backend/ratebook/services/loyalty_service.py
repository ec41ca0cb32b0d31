"""Loyalty service: members, tiers, rewards and the points ledger.

Balances only change through conditional UPDATEs, and every change appends a
ledger row carrying the balance it produced.
"""

import logging
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ratebook.config import settings
from ratebook.enums import LoyaltyTransactionType
from ratebook.errors import InsufficientPointsError, NotFoundError, ValidationError
from ratebook.models.loyalty import LoyaltyMember, LoyaltyReward, LoyaltyTier, LoyaltyTransaction
from ratebook.services.pricing.loyalty import Tier, points_for_amount, tier_for_points

logger = logging.getLogger(__name__)


class LoyaltyService:
    # Tiers and rewards

    async def list_tiers(self, db: AsyncSession) -> list[LoyaltyTier]:
        result = await db.execute(select(LoyaltyTier).order_by(LoyaltyTier.min_points, LoyaltyTier.id))
        return list(result.scalars().all())

    async def get_tier(self, db: AsyncSession, tier_id: int) -> LoyaltyTier:
        tier = await db.get(LoyaltyTier, tier_id)
        if tier is None:
            raise NotFoundError(f"Loyalty tier {tier_id} not found", tier_id=tier_id)
        return tier

    async def list_rewards(self, db: AsyncSession, active_only: bool = False) -> list[LoyaltyReward]:
        query = select(LoyaltyReward).order_by(LoyaltyReward.points_cost, LoyaltyReward.id)
        if active_only:
            query = query.where(LoyaltyReward.is_active.is_(True))
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_reward(self, db: AsyncSession, reward_id: int) -> LoyaltyReward:
        reward = await db.get(LoyaltyReward, reward_id)
        if reward is None:
            raise NotFoundError(f"Reward {reward_id} not found", reward_id=reward_id)
        return reward

    # Members

    async def get_member(self, db: AsyncSession, member_id: int) -> LoyaltyMember:
        result = await db.execute(
            select(LoyaltyMember)
            .options(selectinload(LoyaltyMember.tier))
            .where(LoyaltyMember.id == member_id)
            .execution_options(populate_existing=True)
        )
        member = result.scalar_one_or_none()
        if member is None:
            raise NotFoundError(f"Loyalty member {member_id} not found", member_id=member_id)
        return member

    async def enroll(self, db: AsyncSession, guest_id: int) -> LoyaltyMember:
        existing = await db.execute(select(LoyaltyMember.id).where(LoyaltyMember.guest_id == guest_id))
        if existing.scalar_one_or_none() is not None:
            raise ValidationError(f"Guest {guest_id} is already enrolled", guest_id=guest_id)

        tiers = await self.list_tiers(db)
        member = LoyaltyMember(
            guest_id=guest_id,
            tier_id=tiers[0].id if tiers else None,
            points_balance=0,
            lifetime_points=0,
        )
        db.add(member)
        await db.commit()
        logger.info(f"Loyalty member enrolled: guest={guest_id} member={member.id}")
        return await self.get_member(db, member.id)

    async def transactions(self, db: AsyncSession, member_id: int, limit: int = 100) -> list[LoyaltyTransaction]:
        await self.get_member(db, member_id)
        result = await db.execute(
            select(LoyaltyTransaction)
            .where(LoyaltyTransaction.member_id == member_id)
            .order_by(LoyaltyTransaction.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    # Ledger

    async def _post(
        self,
        db: AsyncSession,
        member_id: int,
        points: int,
        tx_type: LoyaltyTransactionType,
        *,
        booking_id: int | None = None,
        reward_id: int | None = None,
        description: str | None = None,
    ) -> LoyaltyTransaction:
        """Apply signed ``points`` atomically and append the ledger row."""
        values = {"points_balance": LoyaltyMember.points_balance + points}
        if points > 0:
            values["lifetime_points"] = LoyaltyMember.lifetime_points + points
        stmt = (
            update(LoyaltyMember)
            .where(LoyaltyMember.id == member_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if points < 0:
            stmt = stmt.where(LoyaltyMember.points_balance >= -points)

        result = await db.execute(stmt)
        if result.rowcount == 0:
            await db.rollback()
            member = await self.get_member(db, member_id)
            raise InsufficientPointsError(required=-points, balance=member.points_balance, member_id=member_id)

        balance = (
            await db.execute(select(LoyaltyMember.points_balance).where(LoyaltyMember.id == member_id))
        ).scalar_one()
        tx = LoyaltyTransaction(
            member_id=member_id,
            type=tx_type.value,
            points=points,
            balance_after=balance,
            booking_id=booking_id,
            reward_id=reward_id,
            description=description,
        )
        db.add(tx)
        await db.flush()
        return tx

    async def _maybe_upgrade(self, db: AsyncSession, member: LoyaltyMember) -> None:
        tiers = [Tier.from_model(t) for t in await self.list_tiers(db)]
        target = tier_for_points(member.lifetime_points, tiers)
        if target is None:
            return
        current_min = member.tier.min_points if member.tier else -1
        if target.min_points > current_min:
            previous = member.tier.name if member.tier else None
            member.tier_id = target.id
            await db.flush()
            logger.info(f"Loyalty tier upgrade: member={member.id} {previous} -> {target.name}")

    async def award_points(
        self,
        db: AsyncSession,
        member_id: int,
        amount: Decimal,
        *,
        booking_id: int | None = None,
        description: str | None = None,
    ) -> LoyaltyTransaction:
        """Credit points for ``amount`` spent at the configured earn rate."""
        await self.get_member(db, member_id)
        points = points_for_amount(amount, settings.loyalty_points_rate)
        if points <= 0:
            raise ValidationError(f"Amount {amount} earns no points", amount=str(amount))
        tx = await self._post(
            db,
            member_id,
            points,
            LoyaltyTransactionType.EARN,
            booking_id=booking_id,
            description=description or f"Earned for spend of {amount}",
        )
        member = await self.get_member(db, member_id)
        await self._maybe_upgrade(db, member)
        await db.commit()
        await db.refresh(tx)
        logger.info(f"Points awarded: member={member_id} +{points} balance={tx.balance_after}")
        return tx

    async def redeem_reward(self, db: AsyncSession, member_id: int, reward_id: int) -> LoyaltyTransaction:
        await self.get_member(db, member_id)
        reward = await self.get_reward(db, reward_id)
        if not reward.is_active:
            raise ValidationError(f"Reward {reward.name} is not available", reward_id=reward_id)

        tx = await self._post(
            db,
            member_id,
            -reward.points_cost,
            LoyaltyTransactionType.REDEEM,
            reward_id=reward.id,
            description=f"Redeemed: {reward.name}",
        )
        await db.commit()
        await db.refresh(tx)
        logger.info(f"Points redeemed: member={member_id} reward={reward.name} -{reward.points_cost} balance={tx.balance_after}")
        return tx

    async def adjust_points(self, db: AsyncSession, member_id: int, points: int, description: str) -> LoyaltyTransaction:
        if points == 0:
            raise ValidationError("Adjustment must be non-zero")
        await self.get_member(db, member_id)
        tx = await self._post(db, member_id, points, LoyaltyTransactionType.ADJUST, description=description)
        if points > 0:
            member = await self.get_member(db, member_id)
            await self._maybe_upgrade(db, member)
        await db.commit()
        await db.refresh(tx)
        logger.info(f"Points adjusted: member={member_id} {points:+d} balance={tx.balance_after} ({description})")
        return tx


loyalty_service = LoyaltyService()
