import logging
from datetime import datetime, timedelta
from typing import Callable, Literal

from sqlalchemy import select, func, update
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.errors import (
    ErrorReason, NotFound, PermissionDenied, ResourceExhausted, StateConflict, ValidationError, require_admin,
)
from ..models import utcnow
from ..models.points import PointSource
from ..models.reward import RewardCard, RedeemedReward, RewardCategory
from .points_service import PointsLedger, require_positive

logger = logging.getLogger(__name__)

RedemptionFilter = Literal["all", "valid", "inactive"]


def _optional_positive(value: int | None, what: str) -> None:
    if value is not None and (isinstance(value, bool) or not isinstance(value, int) or value <= 0):
        raise ValidationError(ErrorReason.INVALID_REWARD, f"{what} must be a positive integer when set")


class RewardCatalog:
    def __init__(
        self,
        db: Session,
        ledger: PointsLedger,
        *,
        clock: Callable[[], datetime] = utcnow,
        window_days: int = settings.REDEMPTION_WINDOW_DAYS,
    ) -> None:
        self.db = db
        self.ledger = ledger
        self.clock = clock
        self.window = timedelta(days=window_days)

    def create_reward(
        self,
        *,
        created_by: str,
        is_admin: bool,
        title: str,
        point_cost: int,
        description: str = "",
        category: RewardCategory = RewardCategory.OTHER,
        validity_days: int | None = None,
        max_redemptions_per_week: int | None = None,
    ) -> RewardCard:
        require_admin(is_admin, "create rewards")
        if not title or not title.strip():
            raise ValidationError(ErrorReason.INVALID_REWARD, "Reward title is required")
        require_positive(point_cost, "Reward cost")
        _optional_positive(validity_days, "validity_days")
        _optional_positive(max_redemptions_per_week, "max_redemptions_per_week")

        r = RewardCard(
            title=title.strip(),
            description=description or "",
            point_cost=point_cost,
            category=RewardCategory(category),
            validity_days=validity_days,
            max_redemptions_per_week=max_redemptions_per_week,
            created_by=created_by,
            created_at=self.clock(),
        )
        with self.ledger.transaction():
            self.db.add(r)
            self.db.flush()
            self.ledger.notify("reward.created", created_by, reward_id=r.id)
        logger.info(f"Reward created: id={r.id}, title={r.title!r}, cost={r.point_cost}")
        return r

    def get_reward(self, reward_id: str) -> RewardCard:
        r = self.db.get(RewardCard, reward_id, populate_existing=True)
        if not r:
            raise NotFound(ErrorReason.REWARD_NOT_FOUND, f"Reward {reward_id} not found")
        return r

    def deactivate(self, reward_id: str, *, is_admin: bool) -> RewardCard:
        require_admin(is_admin, "remove rewards")
        with self.ledger.transaction():
            r = self.get_reward(reward_id)
            r.is_active = False
        logger.info(f"Reward {reward_id} deactivated")
        return r

    def list_rewards(self, category: RewardCategory | None = None, *, include_inactive: bool = False) -> list[RewardCard]:
        stmt = select(RewardCard)
        if not include_inactive:
            stmt = stmt.where(RewardCard.is_active.is_(True))
        if category is not None:
            stmt = stmt.where(RewardCard.category == RewardCategory(category))
        return list(self.db.execute(stmt.order_by(RewardCard.point_cost, RewardCard.created_at)).scalars())

    def _recent_redemptions(self, user_id: str, reward_id: str, now: datetime) -> int:
        # used and expired redemptions still count toward the weekly cap
        stmt = select(func.count()).select_from(RedeemedReward).where(
            RedeemedReward.user_id == user_id,
            RedeemedReward.reward_id == reward_id,
            RedeemedReward.redeemed_at >= now - self.window,
        )
        return self.db.execute(stmt).scalar_one()

    def redeem(self, user_id: str, reward_id: str) -> RedeemedReward:
        with self.ledger.transaction(user_id):
            reward = self.get_reward(reward_id)
            if not reward.is_active:
                raise StateConflict(ErrorReason.REWARD_INACTIVE, "This reward is no longer available")

            now = self.clock()
            cap = reward.max_redemptions_per_week
            if cap is not None and self._recent_redemptions(user_id, reward_id, now) >= cap:
                logger.warning(f"Weekly limit hit: user={user_id}, reward={reward_id}, cap={cap}")
                raise ResourceExhausted(ErrorReason.WEEKLY_LIMIT_EXCEEDED, "Weekly redemption limit reached")

            if not self.ledger.spend(user_id, reward.point_cost, source=PointSource.REWARD,
                                     reason=f"Redeemed: {reward.title}", reference_id=reward.id):
                raise ResourceExhausted(ErrorReason.INSUFFICIENT_POINTS, "Not enough points")

            expires_at = now + timedelta(days=reward.validity_days) if reward.validity_days is not None else None
            red = RedeemedReward(
                reward_id=reward.id,
                user_id=user_id,
                reward_snapshot=reward.snapshot(),
                redeemed_at=now,
                expires_at=expires_at,
                is_used=False,
            )
            self.db.add(red)
            # counted in SQL; redeemers of one reward do not share a lock
            self.db.execute(
                update(RewardCard)
                .where(RewardCard.id == reward.id)
                .values(total_redemptions=RewardCard.total_redemptions + 1)
                .execution_options(synchronize_session=False)
            )
            self.db.flush()
            self.ledger.notify("reward.redeemed", user_id, reward_id=reward.id, redemption_id=red.id)
        logger.info(f"User {user_id} redeemed reward {reward_id} (redemption={red.id})")
        return red

    def get_redemption(self, redemption_id: str) -> RedeemedReward:
        red = self.db.get(RedeemedReward, redemption_id, populate_existing=True)
        if not red:
            raise NotFound(ErrorReason.REDEMPTION_NOT_FOUND, f"Redemption {redemption_id} not found")
        return red

    def use(self, redemption_id: str, user_id: str) -> RedeemedReward:
        with self.ledger.transaction(user_id):
            red = self.get_redemption(redemption_id)
            if red.user_id != user_id:
                raise PermissionDenied(ErrorReason.NOT_OWNER, "This reward belongs to someone else")
            if red.is_used:
                raise StateConflict(ErrorReason.ALREADY_USED, "Reward has already been used")
            now = self.clock()
            if red.is_expired(now):
                raise ResourceExhausted(ErrorReason.EXPIRED, "Reward has expired")
            red.is_used = True
            red.used_at = now
            self.ledger.notify("reward.used", user_id, redemption_id=red.id)
        logger.info(f"Redemption {redemption_id} used by {user_id}")
        return red

    def list_redemptions(self, user_id: str, status: RedemptionFilter = "all") -> list[RedeemedReward]:
        stmt = (
            select(RedeemedReward)
            .where(RedeemedReward.user_id == user_id)
            .order_by(RedeemedReward.redeemed_at.desc())
        )
        rows = list(self.db.execute(stmt).scalars())
        now = self.clock()
        if status == "valid":
            return [r for r in rows if r.is_valid(now)]
        if status == "inactive":
            return [r for r in rows if r.is_inactive(now)]
        return rows
