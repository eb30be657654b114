from ..models.points import PointsAccount, PointTransaction, TransactionType, PointSource
from ..models.task import FamilyTask, TaskStatus, TaskFrequency
from ..models.reward import RewardCard, RedeemedReward, RewardCategory
from ..models.tree import Tree, TreeCollection, CollectedTree
from ..db.base_class import Base
