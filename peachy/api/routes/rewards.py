from typing import List, Literal, Optional

from fastapi import APIRouter, Depends

from ...models.reward import RedeemedReward, RewardCategory
from ...schemas.reward import RewardCreate, RewardOut, RedemptionOut
from ...services.reward_service import RewardCatalog
from ..deps import Caller, get_caller, get_rewards

router = APIRouter()


def _out(rewards: RewardCatalog, red: RedeemedReward, remaining: int | None = None) -> RedemptionOut:
    return RedemptionOut.model_validate(red).model_copy(
        update={"expired": red.is_expired(rewards.clock()), "remaining_points": remaining}
    )


@router.post("", response_model=RewardOut, status_code=201)
def create_reward(
    payload: RewardCreate,
    rewards: RewardCatalog = Depends(get_rewards),
    current: Caller = Depends(get_caller),
):
    return rewards.create_reward(
        created_by=current.user_id,
        is_admin=current.is_admin,
        title=payload.title,
        description=payload.description,
        point_cost=payload.point_cost,
        category=payload.category,
        validity_days=payload.validity_days,
        max_redemptions_per_week=payload.max_redemptions_per_week,
    )


@router.get("", response_model=List[RewardOut])
def list_rewards(
    category: Optional[RewardCategory] = None,
    rewards: RewardCatalog = Depends(get_rewards),
    current: Caller = Depends(get_caller),
):
    return rewards.list_rewards(category)


@router.get("/redemptions/me", response_model=List[RedemptionOut])
def my_redemptions(
    status: Literal["all", "valid", "inactive"] = "all",
    rewards: RewardCatalog = Depends(get_rewards),
    current: Caller = Depends(get_caller),
):
    return [_out(rewards, r) for r in rewards.list_redemptions(current.user_id, status)]


@router.post("/redemptions/{redemption_id}/use", response_model=RedemptionOut)
def use_redemption(
    redemption_id: str,
    rewards: RewardCatalog = Depends(get_rewards),
    current: Caller = Depends(get_caller),
):
    return _out(rewards, rewards.use(redemption_id, current.user_id))


@router.post("/{reward_id}/redeem", response_model=RedemptionOut)
def redeem_now(
    reward_id: str,
    rewards: RewardCatalog = Depends(get_rewards),
    current: Caller = Depends(get_caller),
):
    red = rewards.redeem(current.user_id, reward_id)
    return _out(rewards, red, rewards.ledger.balance(current.user_id))


@router.post("/{reward_id}/deactivate", response_model=RewardOut)
def deactivate_reward(
    reward_id: str,
    rewards: RewardCatalog = Depends(get_rewards),
    current: Caller = Depends(get_caller),
):
    return rewards.deactivate(reward_id, is_admin=current.is_admin)
