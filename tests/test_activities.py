from peachy.core.config import Settings
from peachy.models.points import PointSource
from peachy.services.activity_service import ActivityAwards


def test_fixed_awards(activities, ledger):
    assert activities.mood_update("kid") == 5
    assert activities.hobby_share("kid") == 10
    assert activities.quiz_correct("kid") == 12

    sources = sorted(t.source for t in ledger.history("kid"))
    assert sources == sorted([PointSource.MOOD, PointSource.HOBBY, PointSource.QUIZ])


def test_award_sizes_come_from_settings(ledger):
    awards = ActivityAwards(ledger, Settings(MOOD_UPDATE_POINTS=1, QUIZ_CORRECT_POINTS=7))
    awards.mood_update("kid")
    awards.quiz_correct("kid")
    assert ledger.balance("kid") == 8


def test_awards_accumulate_per_user(activities, ledger):
    for _ in range(3):
        activities.quiz_correct("kid")
    activities.mood_update("sibling")
    assert ledger.balance("kid") == 6
    assert ledger.balance("sibling") == 5
