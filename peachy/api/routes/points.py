from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from ...schemas.points import BalanceOut, TransactionOut, GiftIn, BonusIn
from ...services.points_service import PointsLedger
from ..deps import Caller, get_caller, get_ledger

router = APIRouter()


@router.get("/me", response_model=BalanceOut)
def my_balance(
    ledger: PointsLedger = Depends(get_ledger),
    current: Caller = Depends(get_caller),
):
    return BalanceOut(user_id=current.user_id, balance=ledger.balance(current.user_id))


@router.get("/me/history", response_model=List[TransactionOut])
def my_history(
    request: Request,
    limit: Optional[int] = None,
    ledger: PointsLedger = Depends(get_ledger),
    current: Caller = Depends(get_caller),
):
    if limit is not None and limit <= 0:
        raise HTTPException(400, "limit must be positive")
    return ledger.history(current.user_id, limit or request.app.state.settings.HISTORY_LIMIT)


@router.post("/gift", response_model=BalanceOut)
def gift_points(
    payload: GiftIn,
    ledger: PointsLedger = Depends(get_ledger),
    current: Caller = Depends(get_caller),
):
    remaining = ledger.gift(current.user_id, payload.to_user_id, payload.amount, reason=payload.reason)
    return BalanceOut(user_id=current.user_id, balance=remaining)


@router.post("/bonus", response_model=BalanceOut)
def grant_bonus(
    payload: BonusIn,
    ledger: PointsLedger = Depends(get_ledger),
    current: Caller = Depends(get_caller),
):
    balance = ledger.bonus(payload.user_id, payload.amount, is_admin=current.is_admin, reason=payload.reason)
    return BalanceOut(user_id=payload.user_id, balance=balance)
