from datetime import datetime
from enum import StrEnum
from sqlalchemy import String, Integer, Text, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from uuid import uuid4

from ..db.base_class import Base
from ..db.types import UTCDateTime
from . import utcnow


class PointsAccount(Base):
    __table_args__ = (CheckConstraint("balance >= 0", name="ck_pointsaccount_balance_non_negative"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    balance: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_updated: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)


class TransactionType(StrEnum):
    EARN = "EARN"
    SPEND = "SPEND"
    GIFT = "GIFT"
    BONUS = "BONUS"
    ADJUST = "ADJUST"


class PointSource(StrEnum):
    TASK = "TASK"
    MOOD = "MOOD"
    HOBBY = "HOBBY"
    QUIZ = "QUIZ"
    REWARD = "REWARD"
    TREE = "TREE"
    GIFT = "GIFT"
    MANUAL = "MANUAL"


class PointTransaction(Base):
    # insertion order; breaks ties between rows written at the same instant
    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False, default=lambda: str(uuid4()))
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    # signed: positive for credits, negative for debits
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    balance_after: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[TransactionType] = mapped_column()
    source: Mapped[PointSource] = mapped_column(default=PointSource.MANUAL)
    reason: Mapped[str | None] = mapped_column(Text)
    reference_id: Mapped[str | None] = mapped_column(String(36))
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False, index=True)
