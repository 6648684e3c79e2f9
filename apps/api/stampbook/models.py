from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum as SqlEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from stampbook.db.base import Base


class StampCategory(str, Enum):
    HELP = "help"
    LIFESTYLE = "lifestyle"
    BEHAVIOR = "behavior"
    CUSTOM = "custom"


class PokemonRarity(str, Enum):
    COMMON = "common"
    LEGENDARY = "legendary"
    MYTHICAL = "mythical"


class GoalPeriodType(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class Family(Base):
    __tablename__ = "families"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class Admin(Base):
    __tablename__ = "admins"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    family_id: Mapped[int] = mapped_column(ForeignKey("families.id", ondelete="CASCADE"), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class Child(Base):
    __tablename__ = "children"
    __table_args__ = (
        CheckConstraint("target_stamps > 0", name="ck_children_target_stamps_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    family_id: Mapped[int] = mapped_column(ForeignKey("families.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    birth_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    target_stamps: Mapped[int] = mapped_column(Integer, nullable=False, server_default="10")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class StampType(Base):
    __tablename__ = "stamp_types"
    __table_args__ = (
        UniqueConstraint("family_id", "name", name="uq_stamp_types_family_id_name"),
        CheckConstraint(
            "(is_system_default AND family_id IS NULL) OR (NOT is_system_default AND family_id IS NOT NULL)",
            name="ck_stamp_types_owner",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    icon: Mapped[str] = mapped_column(String(32), nullable=False)
    color: Mapped[str] = mapped_column(String(7), nullable=False)
    category: Mapped[StampCategory] = mapped_column(
        SqlEnum(StampCategory, name="stamp_category", values_callable=lambda items: [item.value for item in items]),
        nullable=False,
    )
    is_custom: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_system_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    family_id: Mapped[int | None] = mapped_column(ForeignKey("families.id", ondelete="CASCADE"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class Pokemon(Base):
    __tablename__ = "pokemons"
    __table_args__ = (
        CheckConstraint("NOT (is_legendary AND is_mythical)", name="ck_pokemons_single_rarity"),
    )

    # National Pokédex number, assigned by the seed source.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type1: Mapped[str | None] = mapped_column(String(50), nullable=True)
    type2: Mapped[str | None] = mapped_column(String(50), nullable=True)
    genus: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_legendary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    is_mythical: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)


class StampCard(Base):
    __tablename__ = "stamp_cards"
    __table_args__ = (
        UniqueConstraint("child_id", "card_number", name="uq_stamp_cards_child_id_card_number"),
        Index("ix_stamp_cards_child_id_is_completed", "child_id", "is_completed"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    child_id: Mapped[int] = mapped_column(ForeignKey("children.id", ondelete="CASCADE"), nullable=False)
    card_number: Mapped[int] = mapped_column(Integer, nullable=False)
    target_stamps: Mapped[int] = mapped_column(Integer, nullable=False)
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class Stamp(Base):
    __tablename__ = "stamps"
    __table_args__ = (
        Index("ix_stamps_child_id_stamped_at", "child_id", "stamped_at"),
        Index("ix_stamps_stamp_card_id", "stamp_card_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    child_id: Mapped[int] = mapped_column(ForeignKey("children.id", ondelete="CASCADE"), nullable=False)
    stamp_type_id: Mapped[int] = mapped_column(ForeignKey("stamp_types.id"), nullable=False)
    pokemon_id: Mapped[int] = mapped_column(ForeignKey("pokemons.id"), nullable=False)
    stamp_card_id: Mapped[int | None] = mapped_column(
        ForeignKey("stamp_cards.id", ondelete="SET NULL"),
        nullable=True,
    )
    # Local wall-clock time in settings.timezone.
    stamped_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    opened_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class Goal(Base):
    __tablename__ = "goals"
    __table_args__ = (
        Index("ix_goals_child_id_stamp_type_id", "child_id", "stamp_type_id"),
        CheckConstraint("target_count > 0", name="ck_goals_target_count_positive"),
        CheckConstraint("end_date >= start_date", name="ck_goals_window"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    child_id: Mapped[int] = mapped_column(ForeignKey("children.id", ondelete="CASCADE"), nullable=False)
    stamp_type_id: Mapped[int] = mapped_column(ForeignKey("stamp_types.id"), nullable=False)
    target_count: Mapped[int] = mapped_column(Integer, nullable=False)
    period_type: Mapped[GoalPeriodType] = mapped_column(
        SqlEnum(GoalPeriodType, name="goal_period_type", values_callable=lambda items: [item.value for item in items]),
        nullable=False,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    reward_text: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_achieved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    achieved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
