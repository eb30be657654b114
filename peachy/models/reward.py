from datetime import datetime
from enum import StrEnum
from uuid import uuid4

from sqlalchemy import String, ForeignKey, Integer, Text, Boolean, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..db.base_class import Base
from ..db.types import UTCDateTime
from . import utcnow


class RewardCategory(StrEnum):
    SCREEN_TIME = "Screen Time"
    PRIVILEGES = "Privileges"
    MONEY = "Money"
    EXPERIENCES = "Experiences"
    FOOD = "Food & Treats"
    OTHER = "Other"


class RewardCard(Base):
    __tablename__ = "rewardcard"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid4())
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    point_cost: Mapped[int] = mapped_column(Integer, nullable=False)
    category: Mapped[RewardCategory] = mapped_column(default=RewardCategory.OTHER)
    validity_days: Mapped[int | None] = mapped_column(Integer)
    max_redemptions_per_week: Mapped[int | None] = mapped_column(Integer)
    created_by: Mapped[str] = mapped_column(String(64), nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    total_redemptions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utcnow,
        nullable=False,
    )

    redemptions: Mapped[list["RedeemedReward"]] = relationship(
        back_populates="reward",
    )

    def snapshot(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "point_cost": self.point_cost,
            "category": str(self.category),
            "validity_days": self.validity_days,
        }


def is_expired(now: datetime, expires_at: datetime | None, is_used: bool) -> bool:
    """Derived on read; never stored."""
    return expires_at is not None and now > expires_at and not is_used


class RedeemedReward(Base):
    __tablename__ = "redeemedreward"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid4())
    )

    reward_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("rewardcard.id", ondelete="CASCADE"),
        index=True,
    )

    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)

    # catalog entry as it was at redemption time
    reward_snapshot: Mapped[dict] = mapped_column(JSON, nullable=False)

    redeemed_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utcnow,
        nullable=False,
        index=True,
    )

    expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    used_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    is_used: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    reward: Mapped["RewardCard"] = relationship(back_populates="redemptions")

    def is_expired(self, now: datetime) -> bool:
        return is_expired(now, self.expires_at, self.is_used)

    def is_valid(self, now: datetime) -> bool:
        return not self.is_used and not self.is_expired(now)

    def is_inactive(self, now: datetime) -> bool:
        return self.is_used or self.is_expired(now)
