from dataclasses import dataclass
from enum import StrEnum


@dataclass(frozen=True)
class TreeType:
    name: str
    display_name: str
    emoji: str
    water_required: int
    unlock_level: int


DEFAULT_TREE_TYPES: tuple[TreeType, ...] = (
    TreeType("oak", "Oak Tree", "🌳", 100, 1),
    TreeType("cherry", "Cherry Blossom", "🌸", 150, 2),
    TreeType("maple", "Maple Tree", "🍁", 200, 3),
    TreeType("pine", "Pine Tree", "🌲", 250, 4),
    TreeType("willow", "Willow Tree", "🌿", 300, 5),
    TreeType("bamboo", "Bamboo", "🎋", 400, 6),
)


class GrowthStage(StrEnum):
    SEED = "seed"
    SPROUT = "sprout"
    SAPLING = "sapling"
    YOUNG_TREE = "young_tree"
    FULL_GROWN = "full_grown"


def growth_progress(current_water: int, water_required: int) -> float:
    return min(current_water / water_required, 1.0)


def growth_stage(progress: float) -> GrowthStage:
    if progress < 0.25:
        return GrowthStage.SEED
    if progress < 0.5:
        return GrowthStage.SPROUT
    if progress < 0.75:
        return GrowthStage.SAPLING
    if progress < 1.0:
        return GrowthStage.YOUNG_TREE
    return GrowthStage.FULL_GROWN
