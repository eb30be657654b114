from dataclasses import dataclass
from typing import Generator, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
import jwt

from ..services.security import decode_access_token
from ..services.points_service import PointsLedger
from ..services.activity_service import ActivityAwards
from ..services.task_service import TaskLifecycle
from ..services.reward_service import RewardCatalog
from ..services.tree_service import TreeProgression

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")


@dataclass(frozen=True)
class Caller:
    user_id: str
    is_admin: bool = False


def get_db(request: Request) -> Generator[Session, None, None]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_caller(request: Request, token: str = Depends(oauth2_scheme)) -> Caller:
    try:
        payload = decode_access_token(token, request.app.state.settings)
    except jwt.PyJWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    user_id: Optional[str] = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token payload")
    return Caller(user_id=user_id, is_admin=bool(payload.get("admin", False)))


def get_ledger(request: Request, db: Session = Depends(get_db)) -> PointsLedger:
    state = request.app.state
    return PointsLedger(db, locks=state.locks, events=state.events, clock=state.clock)


def get_activities(request: Request, ledger: PointsLedger = Depends(get_ledger)) -> ActivityAwards:
    return ActivityAwards(ledger, request.app.state.settings)


def get_tasks(request: Request, ledger: PointsLedger = Depends(get_ledger)) -> TaskLifecycle:
    return TaskLifecycle(ledger.db, ledger, clock=request.app.state.clock)


def get_rewards(request: Request, ledger: PointsLedger = Depends(get_ledger)) -> RewardCatalog:
    state = request.app.state
    return RewardCatalog(ledger.db, ledger, clock=state.clock, window_days=state.settings.REDEMPTION_WINDOW_DAYS)


def get_trees(request: Request, ledger: PointsLedger = Depends(get_ledger)) -> TreeProgression:
    state = request.app.state
    return TreeProgression(ledger.db, ledger, catalog=state.tree_catalog, clock=state.clock)
