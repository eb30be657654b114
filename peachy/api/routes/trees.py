from typing import List, Optional

from fastapi import APIRouter, Depends

from ...models.tree import Tree
from ...schemas.tree import TreeOut, TreeTypeOut, WaterIn, WaterOut, PlantIn, CollectionOut
from ...services.tree_service import TreeProgression
from ..deps import Caller, get_caller, get_trees

router = APIRouter()


def _tree_out(trees: TreeProgression, tree: Tree) -> TreeOut:
    progress, stage = trees.progress(tree)
    return TreeOut(
        id=tree.id,
        user_id=tree.user_id,
        type=tree.type,
        current_water=tree.current_water,
        water_required=trees.tree_type(tree.type).water_required,
        is_fully_grown=tree.is_fully_grown,
        planted_at=tree.planted_at,
        grown_at=tree.grown_at,
        growth_progress=progress,
        growth_stage=str(stage),
    )


@router.post("/water", response_model=WaterOut)
def water_tree(
    payload: WaterIn,
    trees: TreeProgression = Depends(get_trees),
    current: Caller = Depends(get_caller),
):
    result = trees.water(current.user_id, payload.points)
    unlocked = result.newly_unlocked_type
    return WaterOut(
        tree=_tree_out(trees, result.tree),
        points_used=result.points_used,
        did_grow_fully=result.did_grow_fully,
        newly_unlocked_type=TreeTypeOut.model_validate(unlocked) if unlocked else None,
        leveled_up=result.leveled_up,
        remaining_points=trees.ledger.balance(current.user_id),
    )


@router.post("/plant", response_model=TreeOut, status_code=201)
def plant_tree(
    payload: PlantIn,
    trees: TreeProgression = Depends(get_trees),
    current: Caller = Depends(get_caller),
):
    return _tree_out(trees, trees.plant_new_tree(current.user_id, payload.type))


@router.get("/current", response_model=Optional[TreeOut])
def current_tree(
    trees: TreeProgression = Depends(get_trees),
    current: Caller = Depends(get_caller),
):
    tree = trees.current_tree(current.user_id)
    return _tree_out(trees, tree) if tree else None


@router.get("/grown", response_model=List[TreeOut])
def grown_trees(
    trees: TreeProgression = Depends(get_trees),
    current: Caller = Depends(get_caller),
):
    return [_tree_out(trees, t) for t in trees.grown_trees(current.user_id)]


@router.get("/collection", response_model=CollectionOut)
def my_collection(
    trees: TreeProgression = Depends(get_trees),
    current: Caller = Depends(get_caller),
):
    coll = trees.collection(current.user_id)
    return CollectionOut(
        user_id=coll.user_id,
        current_level=coll.current_level,
        total_trees_grown=coll.total_trees_grown,
        collected_trees=coll.times_grown(),
    )


@router.get("/available", response_model=List[TreeTypeOut])
def available_types(
    trees: TreeProgression = Depends(get_trees),
    current: Caller = Depends(get_caller),
):
    return trees.available_tree_types(current.user_id)
