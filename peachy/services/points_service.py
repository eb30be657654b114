"""The points ledger: the only component that mutates balances.

A ``PointsLedger`` is bound to one SQLAlchemy session. Task, reward and tree
services share that session and open their composite operations through
``PointsLedger.transaction`` so the ledger step and their own writes commit
(or roll back) together.
"""
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterator

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.errors import EngineError, ErrorReason, ValidationError, ResourceExhausted, require_admin
from ..core.events import EventHub
from ..core.locks import LockRegistry
from ..models import utcnow
from ..models.points import PointsAccount, PointTransaction, TransactionType, PointSource

logger = logging.getLogger(__name__)


def require_positive(value: int, what: str) -> None:
    # bool is an int subclass; True is not a point amount
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(ErrorReason.INVALID_AMOUNT, f"{what} must be a positive integer, got {value!r}")


class PointsLedger:
    def __init__(
        self,
        db: Session,
        *,
        locks: LockRegistry | None = None,
        events: EventHub | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.db = db
        self.locks = locks or LockRegistry()
        self.events = events or EventHub()
        self.clock = clock
        self._depth = 0
        self._pending: list[tuple[str, str | None, dict]] = []

    # ------------------------------------------------------------------
    # Unit of work
    # ------------------------------------------------------------------
    @contextmanager
    def transaction(self, *lock_keys: str) -> Iterator[Session]:
        """Hold ``lock_keys`` and commit once when the outermost block exits.

        Nested blocks join the outer one. Any exception rolls the whole
        session back and drops queued events.
        """
        with self.locks.hold(*lock_keys):
            self._depth += 1
            try:
                yield self.db
            except Exception as e:
                self._depth -= 1
                if self._depth == 0:
                    self._rollback(e)
                raise
            self._depth -= 1
            if self._depth == 0:
                self._commit()

    def notify(self, name: str, user_id: str | None = None, **data) -> None:
        """Queue an event; it is published only if the transaction commits."""
        self._pending.append((name, user_id, data))

    def _commit(self) -> None:
        self.db.commit()
        pending, self._pending = self._pending, []
        for name, user_id, data in pending:
            self.events.publish(name, user_id, **data)

    def _rollback(self, exc: Exception) -> None:
        self.db.rollback()
        self._pending.clear()
        if not isinstance(exc, EngineError):
            logger.error(f"Rolled back ledger transaction: {exc}", exc_info=True)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def _load(self, user_id: str) -> PointsAccount | None:
        stmt = (
            select(PointsAccount)
            .where(PointsAccount.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def account(self, user_id: str) -> PointsAccount | None:
        return self._load(user_id)

    def balance(self, user_id: str) -> int:
        acct = self._load(user_id)
        return acct.balance if acct else 0

    def history(self, user_id: str, limit: int = 50) -> list[PointTransaction]:
        stmt = (
            select(PointTransaction)
            .where(PointTransaction.user_id == user_id)
            .order_by(PointTransaction.created_at.desc(), PointTransaction.seq.desc())
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def _record(self, acct: PointsAccount, amount: int, type_: TransactionType, source: PointSource,
                reason: str | None, reference_id: str | None) -> None:
        now = self.clock()
        acct.balance += amount
        acct.last_updated = now
        self.db.add(PointTransaction(
            user_id=acct.user_id,
            amount=amount,
            balance_after=acct.balance,
            type=type_,
            source=source,
            reason=reason,
            reference_id=reference_id,
            created_at=now,
        ))
        self.db.flush()

    def award(
        self,
        user_id: str,
        delta: int,
        *,
        source: PointSource = PointSource.MANUAL,
        reason: str | None = None,
        reference_id: str | None = None,
        type_: TransactionType = TransactionType.EARN,
    ) -> int:
        """Credit ``delta`` points, creating the account on first award."""
        require_positive(delta, "Award")
        with self.transaction(user_id):
            acct = self._load(user_id)
            if acct is None:
                acct = PointsAccount(user_id=user_id, balance=0, last_updated=self.clock())
                self.db.add(acct)
                logger.info(f"Opened points account for user={user_id}")
            self._record(acct, delta, type_, source, reason, reference_id)
            new_balance = acct.balance
            self.notify("points.awarded", user_id, amount=delta, balance=new_balance, source=str(source))
        logger.info(f"Awarded {delta} points to user={user_id} source={source} balance={new_balance}")
        return new_balance

    def spend(
        self,
        user_id: str,
        amount: int,
        *,
        source: PointSource = PointSource.MANUAL,
        reason: str | None = None,
        reference_id: str | None = None,
        type_: TransactionType = TransactionType.SPEND,
    ) -> bool:
        """Debit ``amount`` if the balance covers it; otherwise change nothing."""
        require_positive(amount, "Spend")
        with self.transaction(user_id):
            acct = self._load(user_id)
            if acct is None or acct.balance < amount:
                have = acct.balance if acct else 0
                logger.warning(f"Refused spend of {amount} for user={user_id}: balance={have}")
                return False
            self._record(acct, -amount, type_, source, reason, reference_id)
            new_balance = acct.balance
            self.notify("points.spent", user_id, amount=amount, balance=new_balance, source=str(source))
        logger.info(f"Spent {amount} points for user={user_id} source={source} balance={new_balance}")
        return True

    def bonus(self, user_id: str, amount: int, *, is_admin: bool, reason: str | None = None) -> int:
        require_admin(is_admin, "grant bonus points")
        return self.award(user_id, amount, reason=reason or "Bonus", type_=TransactionType.BONUS)

    def gift(self, from_user_id: str, to_user_id: str, amount: int, *, reason: str | None = None) -> int:
        """Move points between users; returns the sender's new balance."""
        require_positive(amount, "Gift")
        if from_user_id == to_user_id:
            raise ValidationError(ErrorReason.INVALID_AMOUNT, "Cannot gift points to yourself")
        with self.transaction(from_user_id, to_user_id):
            if not self.spend(from_user_id, amount, source=PointSource.GIFT, type_=TransactionType.GIFT,
                              reason=reason or f"Gifted to {to_user_id}"):
                raise ResourceExhausted(ErrorReason.INSUFFICIENT_POINTS, "Not enough points to gift")
            self.award(to_user_id, amount, source=PointSource.GIFT, type_=TransactionType.GIFT,
                       reason=reason or f"Received from {from_user_id}")
            remaining = self.balance(from_user_id)
        logger.info(f"User {from_user_id} gifted {amount} points to {to_user_id}")
        return remaining
