"""
Base ORM Model and Mixins.

============================================================
PURPOSE
============================================================
Provides the declarative base and common mixins used by all
ORM models of the feature registry.

============================================================
COMPONENTS
============================================================
- Base: SQLAlchemy declarative base for all models
- JSONType: JSON column, JSONB on PostgreSQL
- TimestampMixin: created_at / last_updated columns
- SpecRecordMixin: stored spec payload + registration flag

============================================================
"""

from datetime import datetime
from typing import Any, Dict

from sqlalchemy import JSON, Boolean, DateTime
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """
    Declarative base for all ORM models.

    All registry tables inherit from this base so that a single
    metadata.create_all() builds the complete schema.
    """

    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }


class TimestampMixin:
    """
    Mixin providing the created / last-updated pair.

    Both columns are written explicitly by the repositories from
    the injected clock: created_at on insert, last_updated on insert
    and on every overwrite. No database defaults are involved.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="Record creation timestamp (UTC)"
    )

    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="Last overwrite timestamp (UTC)"
    )


class SpecRecordMixin(TimestampMixin):
    """
    Mixin for spec-backed records.

    spec holds the full registered document exactly as submitted;
    the flattened columns on each model exist for lookup only.
    Rows created only to anchor a job association carry
    registered=False and an empty spec.
    """

    spec: Mapped[Dict[str, Any]] = mapped_column(
        JSONType,
        nullable=False,
        default=dict,
        comment="Full spec payload as registered"
    )

    registered: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="False for placeholders created by job tracking"
    )
