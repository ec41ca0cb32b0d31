"""Loyalty router: tiers, rewards, members and their points ledger."""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ratebook.database import get_db
from ratebook.models.loyalty import LoyaltyMember, LoyaltyReward, LoyaltyTier
from ratebook.schemas.loyalty import (
    AdjustRequest,
    EarnRequest,
    EnrollRequest,
    MemberResponse,
    RedeemRequest,
    RewardCreate,
    RewardResponse,
    RewardUpdate,
    TierCreate,
    TierResponse,
    TierUpdate,
    TransactionResponse,
)
from ratebook.services.loyalty_service import loyalty_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _member(member: LoyaltyMember) -> MemberResponse:
    return MemberResponse(
        id=member.id,
        guest_id=member.guest_id,
        tier_id=member.tier_id,
        tier_name=member.tier.name if member.tier else None,
        points_balance=member.points_balance,
        lifetime_points=member.lifetime_points,
        joined_at=member.joined_at,
    )


# Tiers

@router.get("/tiers", response_model=list[TierResponse])
async def list_tiers(db: AsyncSession = Depends(get_db)):
    return await loyalty_service.list_tiers(db)


@router.post("/tiers", response_model=TierResponse, status_code=201)
async def create_tier(req: TierCreate, db: AsyncSession = Depends(get_db)):
    tier = LoyaltyTier(**req.model_dump())
    db.add(tier)
    await db.commit()
    await db.refresh(tier)
    logger.info(f"Loyalty tier created: {tier.id} {tier.name} min_points={tier.min_points}")
    return tier


@router.put("/tiers/{tier_id}", response_model=TierResponse)
async def update_tier(tier_id: int, req: TierUpdate, db: AsyncSession = Depends(get_db)):
    tier = await loyalty_service.get_tier(db, tier_id)
    update_data = req.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(tier, field, value)
    await db.commit()
    await db.refresh(tier)
    logger.info(f"Loyalty tier updated: {tier.id} fields={sorted(update_data)}")
    return tier


@router.delete("/tiers/{tier_id}", status_code=204)
async def delete_tier(tier_id: int, db: AsyncSession = Depends(get_db)):
    tier = await loyalty_service.get_tier(db, tier_id)
    await db.delete(tier)
    await db.commit()
    logger.info(f"Loyalty tier deleted: {tier_id}")


# Rewards

@router.get("/rewards", response_model=list[RewardResponse])
async def list_rewards(active_only: bool = False, db: AsyncSession = Depends(get_db)):
    return await loyalty_service.list_rewards(db, active_only=active_only)


@router.post("/rewards", response_model=RewardResponse, status_code=201)
async def create_reward(req: RewardCreate, db: AsyncSession = Depends(get_db)):
    reward = LoyaltyReward(**req.model_dump())
    db.add(reward)
    await db.commit()
    await db.refresh(reward)
    logger.info(f"Loyalty reward created: {reward.id} {reward.name} cost={reward.points_cost}")
    return reward


@router.put("/rewards/{reward_id}", response_model=RewardResponse)
async def update_reward(reward_id: int, req: RewardUpdate, db: AsyncSession = Depends(get_db)):
    reward = await loyalty_service.get_reward(db, reward_id)
    update_data = req.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(reward, field, value)
    await db.commit()
    await db.refresh(reward)
    logger.info(f"Loyalty reward updated: {reward.id} fields={sorted(update_data)}")
    return reward


@router.delete("/rewards/{reward_id}", status_code=204)
async def delete_reward(reward_id: int, db: AsyncSession = Depends(get_db)):
    """Rewards referenced by the ledger are deactivated rather than removed."""
    reward = await loyalty_service.get_reward(db, reward_id)
    reward.is_active = False
    await db.commit()
    logger.info(f"Loyalty reward deactivated: {reward_id}")


# Members

@router.post("/members", response_model=MemberResponse, status_code=201)
async def enroll_member(req: EnrollRequest, db: AsyncSession = Depends(get_db)):
    return _member(await loyalty_service.enroll(db, req.guest_id))


@router.get("/members/{member_id}", response_model=MemberResponse)
async def get_member(member_id: int, db: AsyncSession = Depends(get_db)):
    return _member(await loyalty_service.get_member(db, member_id))


@router.get("/members/{member_id}/transactions", response_model=list[TransactionResponse])
async def list_transactions(
    member_id: int,
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
):
    return await loyalty_service.transactions(db, member_id, limit)


@router.post("/members/{member_id}/earn", response_model=TransactionResponse, status_code=201)
async def earn_points(member_id: int, req: EarnRequest, db: AsyncSession = Depends(get_db)):
    return await loyalty_service.award_points(
        db, member_id, req.amount, booking_id=req.booking_id, description=req.description
    )


@router.post("/members/{member_id}/redeem", response_model=TransactionResponse, status_code=201)
async def redeem_reward(member_id: int, req: RedeemRequest, db: AsyncSession = Depends(get_db)):
    return await loyalty_service.redeem_reward(db, member_id, req.reward_id)


@router.post("/members/{member_id}/adjust", response_model=TransactionResponse, status_code=201)
async def adjust_points(member_id: int, req: AdjustRequest, db: AsyncSession = Depends(get_db)):
    return await loyalty_service.adjust_points(db, member_id, req.points, req.description)
