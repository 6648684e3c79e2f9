"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


stamp_category_enum = sa.Enum("help", "lifestyle", "behavior", "custom", name="stamp_category")
goal_period_type_enum = sa.Enum("weekly", "monthly", name="goal_period_type")


def upgrade() -> None:
    bind = op.get_bind()
    stamp_category_enum.create(bind, checkfirst=True)
    goal_period_type_enum.create(bind, checkfirst=True)

    op.create_table(
        "families",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "admins",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("family_id", sa.Integer(), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["family_id"], ["families.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "children",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("family_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("target_stamps", sa.Integer(), server_default="10", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("target_stamps > 0", name="ck_children_target_stamps_positive"),
        sa.ForeignKeyConstraint(["family_id"], ["families.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_children_family_id", "children", ["family_id"])

    op.create_table(
        "stamp_types",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("icon", sa.String(length=32), nullable=False),
        sa.Column("color", sa.String(length=7), nullable=False),
        sa.Column("category", stamp_category_enum, nullable=False),
        sa.Column("is_custom", sa.Boolean(), nullable=False),
        sa.Column("is_system_default", sa.Boolean(), nullable=False),
        sa.Column("family_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "(is_system_default AND family_id IS NULL) OR (NOT is_system_default AND family_id IS NOT NULL)",
            name="ck_stamp_types_owner",
        ),
        sa.ForeignKeyConstraint(["family_id"], ["families.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("family_id", "name", name="uq_stamp_types_family_id_name"),
    )

    op.create_table(
        "pokemons",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("type1", sa.String(length=50), nullable=True),
        sa.Column("type2", sa.String(length=50), nullable=True),
        sa.Column("genus", sa.String(length=100), nullable=True),
        sa.Column("is_legendary", sa.Boolean(), nullable=False),
        sa.Column("is_mythical", sa.Boolean(), nullable=False),
        sa.CheckConstraint("NOT (is_legendary AND is_mythical)", name="ck_pokemons_single_rarity"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_pokemons_is_legendary", "pokemons", ["is_legendary"])
    op.create_index("ix_pokemons_is_mythical", "pokemons", ["is_mythical"])

    op.create_table(
        "stamp_cards",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("child_id", sa.Integer(), nullable=False),
        sa.Column("card_number", sa.Integer(), nullable=False),
        sa.Column("target_stamps", sa.Integer(), nullable=False),
        sa.Column("is_completed", sa.Boolean(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["child_id"], ["children.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("child_id", "card_number", name="uq_stamp_cards_child_id_card_number"),
    )
    op.create_index("ix_stamp_cards_child_id_is_completed", "stamp_cards", ["child_id", "is_completed"])

    op.create_table(
        "stamps",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("child_id", sa.Integer(), nullable=False),
        sa.Column("stamp_type_id", sa.Integer(), nullable=False),
        sa.Column("pokemon_id", sa.Integer(), nullable=False),
        sa.Column("stamp_card_id", sa.Integer(), nullable=True),
        sa.Column("stamped_at", sa.DateTime(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("opened_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["child_id"], ["children.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["stamp_type_id"], ["stamp_types.id"]),
        sa.ForeignKeyConstraint(["pokemon_id"], ["pokemons.id"]),
        sa.ForeignKeyConstraint(["stamp_card_id"], ["stamp_cards.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_stamps_child_id_stamped_at", "stamps", ["child_id", "stamped_at"])
    op.create_index("ix_stamps_stamp_card_id", "stamps", ["stamp_card_id"])

    op.create_table(
        "goals",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("child_id", sa.Integer(), nullable=False),
        sa.Column("stamp_type_id", sa.Integer(), nullable=False),
        sa.Column("target_count", sa.Integer(), nullable=False),
        sa.Column("period_type", goal_period_type_enum, nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("reward_text", sa.String(length=255), nullable=True),
        sa.Column("is_achieved", sa.Boolean(), nullable=False),
        sa.Column("achieved_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("target_count > 0", name="ck_goals_target_count_positive"),
        sa.CheckConstraint("end_date >= start_date", name="ck_goals_window"),
        sa.ForeignKeyConstraint(["child_id"], ["children.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["stamp_type_id"], ["stamp_types.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_goals_child_id_stamp_type_id", "goals", ["child_id", "stamp_type_id"])


def downgrade() -> None:
    op.drop_index("ix_goals_child_id_stamp_type_id", table_name="goals")
    op.drop_table("goals")
    op.drop_index("ix_stamps_stamp_card_id", table_name="stamps")
    op.drop_index("ix_stamps_child_id_stamped_at", table_name="stamps")
    op.drop_table("stamps")
    op.drop_index("ix_stamp_cards_child_id_is_completed", table_name="stamp_cards")
    op.drop_table("stamp_cards")
    op.drop_index("ix_pokemons_is_mythical", table_name="pokemons")
    op.drop_index("ix_pokemons_is_legendary", table_name="pokemons")
    op.drop_table("pokemons")
    op.drop_table("stamp_types")
    op.drop_index("ix_children_family_id", table_name="children")
    op.drop_table("children")
    op.drop_table("admins")
    op.drop_table("families")

    bind = op.get_bind()
    goal_period_type_enum.drop(bind, checkfirst=True)
    stamp_category_enum.drop(bind, checkfirst=True)
