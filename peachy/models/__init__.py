from datetime import datetime, timezone
def utcnow():
    return datetime.now(timezone.utc)
from .points import PointsAccount, PointTransaction
from .task import FamilyTask
from .reward import RewardCard, RedeemedReward
from .tree import Tree, TreeCollection, CollectedTree
