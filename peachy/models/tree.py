from datetime import datetime
from uuid import uuid4

from sqlalchemy import String, ForeignKey, Integer, Boolean, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..db.base_class import Base
from ..db.types import UTCDateTime
from . import utcnow


class Tree(Base):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    # name of an entry in the tree catalog
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    current_water: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_fully_grown: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    planted_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    grown_at: Mapped[datetime | None] = mapped_column(UTCDateTime)


class TreeCollection(Base):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    current_level: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    total_trees_grown: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    collected_trees: Mapped[list["CollectedTree"]] = relationship(
        back_populates="collection", cascade="all,delete-orphan", order_by="CollectedTree.collected_at"
    )

    def times_grown(self) -> dict[str, int]:
        return {c.tree_type: c.times_grown for c in self.collected_trees}

    def has_collected(self, tree_type: str) -> bool:
        return any(c.tree_type == tree_type for c in self.collected_trees)


class CollectedTree(Base):
    __table_args__ = (UniqueConstraint("collection_id", "tree_type", name="uq_collected_tree_type"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    collection_id: Mapped[str] = mapped_column(String(36), ForeignKey("treecollection.id", ondelete="CASCADE"), index=True)
    tree_type: Mapped[str] = mapped_column(String(32), nullable=False)
    times_grown: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    collected_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)

    collection: Mapped["TreeCollection"] = relationship(back_populates="collected_trees")
