from __future__ import annotations

from datetime import date, datetime
from uuid import UUID, uuid4

from sqlalchemy import Date, DateTime, ForeignKey, Index, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID as PG_UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class Diary(Base):
    __tablename__ = "diaries"

    diary_id: Mapped[str] = mapped_column(Text, primary_key=True)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    members: Mapped[list[str]] = mapped_column(ARRAY(Text), nullable=False)
    # member name -> digest of the join secret
    member_secrets: Mapped[dict[str, str]] = mapped_column(JSONB, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class Entry(Base):
    __tablename__ = "entries"

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    diary_id: Mapped[str] = mapped_column(
        Text, ForeignKey("diaries.diary_id", ondelete="CASCADE"), nullable=False
    )
    user_name: Mapped[str] = mapped_column(Text, nullable=False)
    entry_date: Mapped[date] = mapped_column("date", Date, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    password_hash: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("entries_diary_date_idx", "diary_id", "date", "created_at"),
        UniqueConstraint("diary_id", "user_name", "date", name="entries_diary_user_date_key"),
    )
