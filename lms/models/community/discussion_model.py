from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lms.db.base_class import Base

if TYPE_CHECKING:
    from ..user.user_model import User


class Discussion(Base):
    __tablename__ = "discussions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    course_id: Mapped[int] = mapped_column(Integer, ForeignKey("courses.id"), index=True)
    author_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_resolved: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    author: Mapped["User"] = relationship()
    replies: Mapped[List["DiscussionReply"]] = relationship(
        back_populates="discussion",
        cascade="all, delete-orphan",
        order_by="DiscussionReply.id",
    )
    upvotes: Mapped[List["DiscussionUpvote"]] = relationship(
        back_populates="discussion",
        cascade="all, delete-orphan",
    )

    @property
    def upvote_count(self) -> int:
        return len(self.upvotes)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Discussion(id={self.id}, title='{self.title}')>"


class DiscussionReply(Base):
    __tablename__ = "discussion_replies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    discussion_id: Mapped[int] = mapped_column(Integer, ForeignKey("discussions.id"), index=True)
    author_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_instructor: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    discussion: Mapped[Discussion] = relationship(back_populates="replies")
    author: Mapped["User"] = relationship()


class DiscussionUpvote(Base):
    __tablename__ = "discussion_upvotes"
    __table_args__ = (
        UniqueConstraint("discussion_id", "user_id", name="uq_upvote_discussion_user"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    discussion_id: Mapped[int] = mapped_column(Integer, ForeignKey("discussions.id"), index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)

    discussion: Mapped[Discussion] = relationship(back_populates="upvotes")
