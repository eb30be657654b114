from pydantic import BaseModel, Field
from datetime import datetime
from .common import ORMModel
from ..models.reward import RewardCategory


class RewardCreate(BaseModel):
    title: str
    description: str = ""
    point_cost: int
    category: RewardCategory = RewardCategory.OTHER
    validity_days: int | None = Field(default=None, gt=0)
    max_redemptions_per_week: int | None = Field(default=None, gt=0)


class RewardOut(ORMModel):
    id: str
    title: str
    description: str
    point_cost: int
    category: str
    validity_days: int | None = None
    max_redemptions_per_week: int | None = None
    created_by: str
    is_active: bool
    total_redemptions: int


class RedemptionOut(ORMModel):
    id: str
    reward_id: str
    user_id: str
    reward_snapshot: dict
    redeemed_at: datetime
    expires_at: datetime | None
    used_at: datetime | None
    is_used: bool
    expired: bool = False
    remaining_points: int | None = None
