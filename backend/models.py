from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from extensions import db


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(db.Model):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    nickname: Mapped[str] = mapped_column(db.String(40), nullable=False, default="")
    is_in_void: Mapped[bool] = mapped_column(
        db.Boolean, nullable=False, default=False, server_default=sa.false()
    )
    # Present exactly when is_in_void is true; written only by users_repo transitions.
    current_void_started_at: Mapped[Optional[datetime]] = mapped_column(
        db.DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        db.DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        db.DateTime(timezone=True), nullable=False, default=_utcnow
    )

    activities: Mapped[List["Activity"]] = relationship(
        back_populates="user",
        passive_deletes=True,
    )
    void_sessions: Mapped[List["VoidSession"]] = relationship(
        back_populates="user",
        passive_deletes=True,
    )

    def __repr__(self) -> str:  # pragma: no cover - convenience
        state = "in void" if self.is_in_void else "idle"
        return f"<User {self.id} {self.nickname} ({state})>"


class Activity(db.Model):
    __tablename__ = "activities"
    __table_args__ = (
        db.UniqueConstraint("user_id", "name", name="uq_activities_user_name"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(db.String(40), nullable=False)
    usage_count: Mapped[int] = mapped_column(
        db.Integer, nullable=False, default=0, server_default="0"
    )
    last_used_at: Mapped[Optional[datetime]] = mapped_column(
        db.DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        db.DateTime(timezone=True), nullable=False, default=_utcnow
    )

    user: Mapped["User"] = relationship(back_populates="activities")

    def __repr__(self) -> str:  # pragma: no cover - convenience
        return f"<Activity {self.name} used={self.usage_count}>"


class VoidSession(db.Model):
    __tablename__ = "void_sessions"
    __table_args__ = (
        db.Index("idx_void_sessions_user_day", "user_id", "target_day"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    started_at: Mapped[datetime] = mapped_column(db.DateTime(timezone=True), nullable=False)
    ended_at: Mapped[datetime] = mapped_column(db.DateTime(timezone=True), nullable=False)
    duration_sec: Mapped[int] = mapped_column(db.Integer, nullable=False)
    target_day: Mapped[str] = mapped_column(db.String(10), nullable=False, index=True)
    activities: Mapped[List[str]] = mapped_column(db.JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        db.DateTime(timezone=True), nullable=False, default=_utcnow
    )

    user: Mapped["User"] = relationship(back_populates="void_sessions")

    def __repr__(self) -> str:  # pragma: no cover - convenience
        return f"<VoidSession user={self.user_id} {self.target_day} {self.duration_sec}s>"


class VoidStatCache(db.Model):
    __tablename__ = "void_stats_cache"
    __table_args__ = (
        db.UniqueConstraint("target_day", "bucket", name="uq_void_stats_cache_day_bucket"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    target_day: Mapped[str] = mapped_column(db.String(10), nullable=False, index=True)
    bucket: Mapped[str] = mapped_column(db.String(16), nullable=False)
    count: Mapped[int] = mapped_column(db.Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        db.DateTime(timezone=True), nullable=False, default=_utcnow
    )

    def __repr__(self) -> str:  # pragma: no cover - convenience
        return f"<VoidStatCache {self.target_day} {self.bucket}={self.count}>"
