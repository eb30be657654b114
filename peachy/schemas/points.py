from datetime import datetime
from pydantic import BaseModel, Field
from .common import ORMModel


class BalanceOut(BaseModel):
    user_id: str
    balance: int


class TransactionOut(ORMModel):
    id: str
    user_id: str
    amount: int
    balance_after: int
    type: str
    source: str
    reason: str | None
    reference_id: str | None
    created_at: datetime


class GiftIn(BaseModel):
    to_user_id: str
    amount: int = Field(gt=0)
    reason: str | None = None


class BonusIn(BaseModel):
    user_id: str
    amount: int = Field(gt=0)
    reason: str | None = None
