"""
Spec Domain ORM Models.

============================================================
PURPOSE
============================================================
Canonical definitions registered with the registry: entities,
features, feature groups and storage targets.

============================================================
DATA LIFECYCLE ROLE
============================================================
- Mutability: REPLACE-IN-PLACE (re-registration overwrites)
- Source: Registration calls, job tracking placeholders
- Consumers: Query facade, job tracker
- Never deleted by the registry

============================================================
MODELS
============================================================
- EntityInfo: keyed by name
- FeatureInfo: keyed by "<entity>.<name>"
- FeatureGroupInfo: keyed by id
- StorageInfo: keyed by id

============================================================
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storage.models.base import Base, JSONType, SpecRecordMixin


class EntityInfo(Base, SpecRecordMixin):
    """
    A named conceptual key, e.g. "driver".

    ============================================================
    TRACEABILITY
    ============================================================
    - name: Primary identifier
    - Referenced by FeatureInfo.entity_name and job_entities
    ============================================================
    """

    __tablename__ = "entities"

    name: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        comment="Entity name"
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        comment="Entity description"
    )

    tags: Mapped[List[str]] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
        comment="Free-form tags"
    )

    def __repr__(self) -> str:
        return f"<EntityInfo name={self.name!r} registered={self.registered}>"


class FeatureGroupInfo(Base, SpecRecordMixin):
    """Tags, options and data stores shared by grouped features."""

    __tablename__ = "feature_groups"

    id: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        comment="Feature group id"
    )

    tags: Mapped[List[str]] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
    )

    options: Mapped[Dict[str, Any]] = mapped_column(
        JSONType,
        nullable=False,
        default=dict,
    )

    serving_store_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Default serving storage id"
    )

    warehouse_store_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Default warehouse storage id"
    )

    def __repr__(self) -> str:
        return f"<FeatureGroupInfo id={self.id!r}>"


class FeatureInfo(Base, SpecRecordMixin):
    """
    A typed value owned by one entity.

    ============================================================
    TRACEABILITY
    ============================================================
    - id: "<entity>.<name>"
    - entity_name: owning entity (always present, placeholder or not)
    - group_id: optional feature group
    ============================================================
    """

    __tablename__ = "features"

    id: Mapped[str] = mapped_column(
        String(511),
        primary_key=True,
        comment="Feature id, <entity>.<name>"
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Feature name within the entity"
    )

    entity_name: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("entities.name", ondelete="RESTRICT"),
        nullable=False,
        comment="Owning entity"
    )

    owner: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    uri: Mapped[str] = mapped_column(Text, nullable=False, default="")

    value_type: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default="UNKNOWN",
        comment="Value type name"
    )

    group_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        ForeignKey("feature_groups.id", ondelete="SET NULL"),
        nullable=True,
    )

    serving_store_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    warehouse_store_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    tags: Mapped[List[str]] = mapped_column(JSONType, nullable=False, default=list)

    options: Mapped[Dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)

    entity: Mapped[EntityInfo] = relationship(lazy="joined")

    __table_args__ = (
        Index("idx_features_entity", "entity_name"),
        Index("idx_features_group", "group_id"),
    )

    def __repr__(self) -> str:
        return f"<FeatureInfo id={self.id!r} registered={self.registered}>"


class StorageInfo(Base, SpecRecordMixin):
    """A target/source system where feature values live."""

    __tablename__ = "storage"

    id: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        comment="Storage id"
    )

    type: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Storage type, e.g. REDIS"
    )

    options: Mapped[Dict[str, Any]] = mapped_column(
        JSONType,
        nullable=False,
        default=dict,
        comment="Connection options"
    )

    def __repr__(self) -> str:
        return f"<StorageInfo id={self.id!r} type={self.type!r}>"
