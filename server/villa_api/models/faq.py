"""FAQ and FAQ vote model definitions."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base


class Faq(Base):
    """Frequently asked question shown on the public site."""

    __tablename__ = "faqs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False, default="general", index=True)
    tags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    view_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Derived from faq_votes on every vote
    helpful_votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    not_helpful_votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("view_count >= 0", name="ck_faq_view_count_non_negative"),
        CheckConstraint("helpful_votes >= 0", name="ck_faq_helpful_votes_non_negative"),
        CheckConstraint("not_helpful_votes >= 0", name="ck_faq_not_helpful_votes_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Faq(id={self.id}, category='{self.category}', is_active={self.is_active})>"


class FaqVote(Base):
    """A user's helpful / not-helpful feedback on a FAQ."""

    __tablename__ = "faq_votes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    faq_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("faqs.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )
    is_helpful: Mapped[bool] = mapped_column(Boolean, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("faq_id", "user_id", name="uq_faq_vote_faq_user"),
    )

    def __repr__(self) -> str:
        return f"<FaqVote(faq_id={self.faq_id}, user_id={self.user_id}, is_helpful={self.is_helpful})>"
