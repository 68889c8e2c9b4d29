"""SQLAlchemy ORM schema for Hookwatch.

Defines all database tables: hooks, auth_data, _hookwatch_meta.

IMPORTANT: HookStatus is imported from the domain models -- it is NOT
redefined here. The ORM uses the same Python enum.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from hookwatch.models.hook import HookStatus


class Base(DeclarativeBase):
    """Base class for all Hookwatch ORM models."""

    pass


class HookRow(Base):
    """One webhook per repository, keyed by ``host/owner/name``.

    ``version`` is bumped on every write; atomic updates compare-and-swap
    on it.
    """

    __tablename__ = "hooks"

    repo_id: Mapped[str] = mapped_column(String(512), primary_key=True)
    host: Mapped[str] = mapped_column(String(255), nullable=False)
    owner: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    hook_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    callback_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[HookStatus] = mapped_column(nullable=False, default=HookStatus.OK)
    correct: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # Stored as naive UTC
    last_used: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    last_branch_revisions: Mapped[Optional[dict]] = mapped_column(
        JSON(none_as_null=True), nullable=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (Index("ix_hooks_correct", "correct"),)


class AuthDataRow(Base):
    """Per-hook credentials, looked up by the public key in callback urls."""

    __tablename__ = "auth_data"

    public_key: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    secret: Mapped[str] = mapped_column(String(128), nullable=False)
    repo_id: Mapped[str] = mapped_column(String(512), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class HookwatchMetaRow(Base):
    """Key-value metadata table. Holds schema_version."""

    __tablename__ = "_hookwatch_meta"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
