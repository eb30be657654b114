"""Tree watering and the per-user collection that gates new tree types.

Per tree: Planted -> Growing -> FullyGrown. Watering spends ledger points
one-for-one as water; the spend and the tree/collection update commit as a
single transaction.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.errors import ErrorReason, NotFound, ResourceExhausted, StateConflict
from ..models import utcnow
from ..models.points import PointSource
from ..models.tree import Tree, TreeCollection, CollectedTree
from .points_service import PointsLedger, require_positive
from .tree_catalog import DEFAULT_TREE_TYPES, GrowthStage, TreeType, growth_progress, growth_stage

logger = logging.getLogger(__name__)


@dataclass
class WaterResult:
    tree: Tree
    points_used: int
    did_grow_fully: bool
    newly_unlocked_type: TreeType | None = None
    leveled_up: bool = False


class TreeProgression:
    def __init__(
        self,
        db: Session,
        ledger: PointsLedger,
        *,
        catalog: Iterable[TreeType] = DEFAULT_TREE_TYPES,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.db = db
        self.ledger = ledger
        self.clock = clock
        # stable sort keeps catalog order within a level
        self.catalog: tuple[TreeType, ...] = tuple(sorted(catalog, key=lambda t: t.unlock_level))
        self._by_name = {t.name: t for t in self.catalog}

    # --- catalog ---
    def tree_type(self, name: str) -> TreeType:
        try:
            return self._by_name[name]
        except KeyError:
            raise NotFound(ErrorReason.UNKNOWN_TREE_TYPE, f"Unknown tree type {name!r}") from None

    def progress(self, tree: Tree) -> tuple[float, GrowthStage]:
        p = growth_progress(tree.current_water, self.tree_type(tree.type).water_required)
        return p, growth_stage(p)

    def _unlocked(self, coll: TreeCollection) -> list[TreeType]:
        return [t for t in self.catalog if t.unlock_level <= coll.current_level]

    def _next_unlock(self, coll: TreeCollection) -> TreeType | None:
        return next((t for t in self._unlocked(coll) if not coll.has_collected(t.name)), None)

    # --- reads ---
    def _collection(self, user_id: str) -> TreeCollection:
        stmt = (
            select(TreeCollection)
            .where(TreeCollection.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        coll = self.db.execute(stmt).scalar_one_or_none()
        if coll is None:
            coll = TreeCollection(user_id=user_id, current_level=1, total_trees_grown=0)
            self.db.add(coll)
            self.db.flush()
        return coll

    def collection(self, user_id: str) -> TreeCollection:
        with self.ledger.transaction(user_id):
            return self._collection(user_id)

    def current_tree(self, user_id: str) -> Tree | None:
        stmt = (
            select(Tree)
            .where(Tree.user_id == user_id, Tree.is_fully_grown.is_(False))
            .order_by(Tree.planted_at.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def grown_trees(self, user_id: str) -> list[Tree]:
        stmt = (
            select(Tree)
            .where(Tree.user_id == user_id, Tree.is_fully_grown.is_(True))
            .order_by(Tree.grown_at)
        )
        return list(self.db.execute(stmt).scalars())

    def available_tree_types(self, user_id: str) -> list[TreeType]:
        return self._unlocked(self.collection(user_id))

    # --- writes ---
    def _plant(self, user_id: str, ttype: TreeType) -> Tree:
        tree = Tree(user_id=user_id, type=ttype.name, current_water=0, is_fully_grown=False, planted_at=self.clock())
        self.db.add(tree)
        self.db.flush()
        logger.info(f"Planted {ttype.name} for user={user_id} (tree={tree.id})")
        return tree

    def plant_new_tree(self, user_id: str, type_name: str) -> Tree:
        ttype = self.tree_type(type_name)
        with self.ledger.transaction(user_id):
            coll = self._collection(user_id)
            if ttype.unlock_level > coll.current_level:
                raise StateConflict(ErrorReason.TREE_TYPE_LOCKED,
                                    f"{ttype.display_name} unlocks at level {ttype.unlock_level}")
            if self.current_tree(user_id) is not None:
                raise StateConflict(ErrorReason.ACTIVE_TREE_EXISTS, "You already have an active tree to grow")
            return self._plant(user_id, ttype)

    def water(self, user_id: str, requested_points: int) -> WaterResult:
        require_positive(requested_points, "Water amount")
        with self.ledger.transaction(user_id):
            coll = self._collection(user_id)
            tree = self.current_tree(user_id)
            if tree is None:
                unlocked = self._unlocked(coll)
                if not unlocked:
                    raise StateConflict(ErrorReason.TREE_TYPE_LOCKED, "No tree type is unlocked yet")
                tree = self._plant(user_id, unlocked[0])
            ttype = self.tree_type(tree.type)

            capacity = ttype.water_required - tree.current_water
            used = min(requested_points, self.ledger.balance(user_id), capacity)
            if used <= 0:
                if capacity <= 0:
                    raise ResourceExhausted(ErrorReason.TREE_ALREADY_FULLY_GROWN, "This tree is already fully grown")
                raise ResourceExhausted(ErrorReason.INSUFFICIENT_POINTS, "Not enough points to water the tree")

            if not self.ledger.spend(user_id, used, source=PointSource.TREE,
                                     reason=f"Watered {ttype.display_name}", reference_id=tree.id):
                raise ResourceExhausted(ErrorReason.INSUFFICIENT_POINTS, "Not enough points to water the tree")

            tree.current_water += used
            grew = tree.current_water >= ttype.water_required
            leveled_up = False
            if grew:
                tree.is_fully_grown = True
                tree.grown_at = self.clock()
                leveled_up = self._record_growth(coll, ttype)
            self.db.flush()
            unlocked_type = self._next_unlock(coll)

            self.ledger.notify("tree.watered", user_id, tree_id=tree.id, water=used)
            if grew:
                self.ledger.notify("tree.grown", user_id, tree_id=tree.id, tree_type=ttype.name)
            if leveled_up:
                self.ledger.notify("collection.level_up", user_id, level=coll.current_level)

        logger.info(f"User {user_id} watered tree {tree.id} with {used} (requested {requested_points}), "
                    f"water={tree.current_water}/{ttype.water_required}")
        return WaterResult(
            tree=tree,
            points_used=used,
            did_grow_fully=grew,
            newly_unlocked_type=unlocked_type,
            leveled_up=leveled_up,
        )

    def _record_growth(self, coll: TreeCollection, ttype: TreeType) -> bool:
        """Add the grown tree to the collection; returns True on level up."""
        coll.total_trees_grown += 1
        entry = next((c for c in coll.collected_trees if c.tree_type == ttype.name), None)
        if entry is not None:
            entry.times_grown += 1
        else:
            coll.collected_trees.append(CollectedTree(tree_type=ttype.name, times_grown=1, collected_at=self.clock()))

        collected = {c.tree_type for c in coll.collected_trees}
        level_complete = all(t.name in collected for t in self._unlocked(coll))
        # no levelling past the last level anything unlocks at
        has_next_level = any(t.unlock_level > coll.current_level for t in self.catalog)
        if level_complete and has_next_level:
            coll.current_level += 1
            logger.info(f"User {coll.user_id} reached tree level {coll.current_level}")
            return True
        return False
