from datetime import datetime
from pydantic import BaseModel, Field
from .common import ORMModel


class TreeTypeOut(ORMModel):
    name: str
    display_name: str
    emoji: str
    water_required: int
    unlock_level: int


class TreeOut(ORMModel):
    id: str
    user_id: str
    type: str
    current_water: int
    water_required: int
    is_fully_grown: bool
    planted_at: datetime
    grown_at: datetime | None = None
    growth_progress: float
    growth_stage: str


class WaterIn(BaseModel):
    points: int = Field(gt=0)


class PlantIn(BaseModel):
    type: str


class WaterOut(BaseModel):
    tree: TreeOut
    points_used: int
    did_grow_fully: bool
    newly_unlocked_type: TreeTypeOut | None = None
    leveled_up: bool = False
    remaining_points: int


class CollectionOut(BaseModel):
    user_id: str
    current_level: int
    total_trees_grown: int
    collected_trees: dict[str, int]
