"""Error taxonomy for the points engine.

Services raise these; the HTTP layer maps them to status codes in one place
(see ``peachy.main``). Every error carries a machine-readable ``reason``.
"""
from enum import StrEnum


class ErrorReason(StrEnum):
    # validation
    INVALID_AMOUNT = "InvalidAmount"
    PROOF_REQUIRED = "ProofRequired"
    INVALID_TASK = "InvalidTask"
    INVALID_REWARD = "InvalidReward"
    # state conflicts
    ALREADY_CLAIMED = "AlreadyClaimed"
    INVALID_TRANSITION = "InvalidTransition"
    ALREADY_COMPLETED = "AlreadyCompleted"
    ALREADY_USED = "AlreadyUsed"
    TREE_TYPE_LOCKED = "TreeTypeLocked"
    ACTIVE_TREE_EXISTS = "ActiveTreeExists"
    REWARD_INACTIVE = "RewardInactive"
    # exhausted resources
    INSUFFICIENT_POINTS = "InsufficientPoints"
    WEEKLY_LIMIT_EXCEEDED = "WeeklyLimitExceeded"
    TREE_ALREADY_FULLY_GROWN = "TreeAlreadyFullyGrown"
    EXPIRED = "Expired"
    # lookups
    TASK_NOT_FOUND = "TaskNotFound"
    REWARD_NOT_FOUND = "RewardNotFound"
    REDEMPTION_NOT_FOUND = "RedemptionNotFound"
    UNKNOWN_TREE_TYPE = "UnknownTreeType"
    # permissions
    ADMIN_REQUIRED = "AdminRequired"
    NOT_ASSIGNEE = "NotAssignee"
    NOT_OWNER = "NotOwner"


class EngineError(Exception):
    status_code = 400

    def __init__(self, reason: ErrorReason, message: str | None = None) -> None:
        self.reason = reason
        self.message = message or str(reason)
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.reason!s}, {self.message!r})"


class ValidationError(EngineError):
    status_code = 400


class StateConflict(EngineError):
    status_code = 409


class ResourceExhausted(EngineError):
    status_code = 400


class NotFound(EngineError):
    status_code = 404


class PermissionDenied(EngineError):
    status_code = 403


def require_admin(is_admin: bool, action: str) -> None:
    if not is_admin:
        raise PermissionDenied(ErrorReason.ADMIN_REQUIRED, f"Only admins can {action}")
