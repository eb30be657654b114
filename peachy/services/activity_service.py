from ..core.config import Settings, settings as default_settings
from ..models.points import PointSource
from .points_service import PointsLedger


class ActivityAwards:
    """Fixed point awards for everyday app activities."""

    def __init__(self, ledger: PointsLedger, config: Settings = default_settings) -> None:
        self.ledger = ledger
        self.config = config

    def mood_update(self, user_id: str) -> int:
        return self.ledger.award(user_id, self.config.MOOD_UPDATE_POINTS,
                                 source=PointSource.MOOD, reason="Mood status update")

    def hobby_share(self, user_id: str) -> int:
        return self.ledger.award(user_id, self.config.HOBBY_SHARE_POINTS,
                                 source=PointSource.HOBBY, reason="Shared a hobby")

    def quiz_correct(self, user_id: str) -> int:
        return self.ledger.award(user_id, self.config.QUIZ_CORRECT_POINTS,
                                 source=PointSource.QUIZ, reason="Correct quiz answer")
