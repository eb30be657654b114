from fastapi import APIRouter, Depends

from ...schemas.points import BalanceOut
from ...services.activity_service import ActivityAwards
from ..deps import Caller, get_caller, get_activities

router = APIRouter()


@router.post("/mood", response_model=BalanceOut)
def log_mood(
    awards: ActivityAwards = Depends(get_activities),
    current: Caller = Depends(get_caller),
):
    return BalanceOut(user_id=current.user_id, balance=awards.mood_update(current.user_id))


@router.post("/hobby-share", response_model=BalanceOut)
def share_hobby(
    awards: ActivityAwards = Depends(get_activities),
    current: Caller = Depends(get_caller),
):
    return BalanceOut(user_id=current.user_id, balance=awards.hobby_share(current.user_id))


@router.post("/quiz-correct", response_model=BalanceOut)
def quiz_correct(
    awards: ActivityAwards = Depends(get_activities),
    current: Caller = Depends(get_caller),
):
    return BalanceOut(user_id=current.user_id, balance=awards.quiz_correct(current.user_id))
