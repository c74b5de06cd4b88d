"""initial lottery schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from honorlottery.models.column_types import ID_TYPE, TokenAmount

revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "lotteries",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("internal_name", sa.String(length=100), nullable=False),
        sa.Column("owner", sa.String(length=255), nullable=False),
        sa.Column("keeper", sa.String(length=255), nullable=True),
        sa.Column("custody_account", sa.String(length=255), nullable=False),
        sa.Column("draw_count", sa.Integer(), nullable=False),
        sa.Column("total_unclaimed_rewards", TokenAmount(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_lotteries")),
    )
    op.create_index(
        op.f("ix_lotteries_internal_name"), "lotteries", ["internal_name"], unique=True
    )

    op.create_table(
        "honor_collections",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("internal_name", sa.String(length=100), nullable=False),
        sa.Column("owner", sa.String(length=255), nullable=False),
        sa.Column("lottery_id", ID_TYPE, nullable=True),
        sa.Column("minted_count", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["lottery_id"],
            ["lotteries.id"],
            name=op.f("fk_honor_collections_lottery_id_lotteries"),
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_honor_collections")),
    )
    op.create_index(
        op.f("ix_honor_collections_internal_name"),
        "honor_collections",
        ["internal_name"],
        unique=True,
    )
    op.create_index(
        op.f("ix_honor_collections_lottery_id"),
        "honor_collections",
        ["lottery_id"],
        unique=False,
    )

    op.create_table(
        "honor_entitlements",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("collection_id", ID_TYPE, nullable=False),
        sa.Column("account", sa.String(length=255), nullable=False),
        sa.Column("max_level", sa.Integer(), nullable=False),
        sa.Column("realized_level", sa.Integer(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("realized_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "max_level BETWEEN 1 AND 9",
            name=op.f("ck_honor_entitlements_max_level_range"),
        ),
        sa.ForeignKeyConstraint(
            ["collection_id"],
            ["honor_collections.id"],
            name=op.f("fk_honor_entitlements_collection_id_honor_collections"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_honor_entitlements")),
        sa.UniqueConstraint("collection_id", "account", name="uq_entitlement_account"),
    )
    op.create_index(
        op.f("ix_honor_entitlements_account"),
        "honor_entitlements",
        ["account"],
        unique=False,
    )

    op.create_table(
        "honor_tokens",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("collection_id", ID_TYPE, nullable=False),
        sa.Column("token_id", sa.Integer(), nullable=False),
        sa.Column("owner", sa.String(length=255), nullable=False),
        sa.Column("level", sa.Integer(), nullable=False),
        sa.Column("minted_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["collection_id"],
            ["honor_collections.id"],
            name=op.f("fk_honor_tokens_collection_id_honor_collections"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_honor_tokens")),
        sa.UniqueConstraint("collection_id", "token_id", name="uq_honor_token_id"),
    )
    op.create_index(
        "ix_honor_tokens_owner", "honor_tokens", ["collection_id", "owner"], unique=False
    )

    op.create_table(
        "prize_config_versions",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("lottery_id", ID_TYPE, nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("weights", sa.JSON(), nullable=False),
        sa.Column("winner_counts", sa.JSON(), nullable=False),
        sa.Column("prize_amounts", sa.JSON(), nullable=False),
        sa.Column("participation_threshold", sa.Integer(), nullable=False),
        sa.Column("total_prize_threshold", TokenAmount(), nullable=False),
        sa.Column("created_by", sa.String(length=255), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ["lottery_id"],
            ["lotteries.id"],
            name=op.f("fk_prize_config_versions_lottery_id_lotteries"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_prize_config_versions")),
        sa.UniqueConstraint("lottery_id", "version", name="uq_prize_config_version"),
    )
    op.create_index(
        op.f("ix_prize_config_versions_lottery_id"),
        "prize_config_versions",
        ["lottery_id"],
        unique=False,
    )

    op.create_table(
        "unclaimed_rewards",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("lottery_id", ID_TYPE, nullable=False),
        sa.Column("account", sa.String(length=255), nullable=False),
        sa.Column("amount", TokenAmount(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["lottery_id"],
            ["lotteries.id"],
            name=op.f("fk_unclaimed_rewards_lottery_id_lotteries"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_unclaimed_rewards")),
        sa.UniqueConstraint(
            "lottery_id", "account", name="uq_unclaimed_reward_account"
        ),
    )

    op.create_table(
        "prize_draws",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("lottery_id", ID_TYPE, nullable=False),
        sa.Column("round", sa.Integer(), nullable=False),
        sa.Column("config_version_id", ID_TYPE, nullable=True),
        sa.Column("seed_hex", sa.String(length=255), nullable=False),
        sa.Column("opened_by", sa.String(length=255), nullable=False),
        sa.Column("participants", sa.JSON(), nullable=False),
        sa.Column("total_awarded", TokenAmount(), nullable=False),
        sa.Column("drawn_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["config_version_id"],
            ["prize_config_versions.id"],
            name=op.f("fk_prize_draws_config_version_id_prize_config_versions"),
            ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(
            ["lottery_id"],
            ["lotteries.id"],
            name=op.f("fk_prize_draws_lottery_id_lotteries"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_prize_draws")),
        sa.UniqueConstraint("lottery_id", "round", name="uq_prize_draw_round"),
    )
    op.create_index(
        op.f("ix_prize_draws_lottery_id"), "prize_draws", ["lottery_id"], unique=False
    )

    op.create_table(
        "prize_wins",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("draw_id", ID_TYPE, nullable=False),
        sa.Column("lottery_id", ID_TYPE, nullable=False),
        sa.Column("account", sa.String(length=255), nullable=False),
        sa.Column("slot", sa.Integer(), nullable=False),
        sa.Column("tier_index", sa.Integer(), nullable=False),
        sa.Column("prize_amount", TokenAmount(), nullable=False),
        sa.ForeignKeyConstraint(
            ["draw_id"],
            ["prize_draws.id"],
            name=op.f("fk_prize_wins_draw_id_prize_draws"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["lottery_id"],
            ["lotteries.id"],
            name=op.f("fk_prize_wins_lottery_id_lotteries"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_prize_wins")),
        sa.UniqueConstraint("draw_id", "slot", name="uq_prize_win_slot"),
    )
    op.create_index(
        "ix_prize_wins_account", "prize_wins", ["lottery_id", "account"], unique=False
    )

    op.create_table(
        "reward_claims",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("lottery_id", ID_TYPE, nullable=False),
        sa.Column("account", sa.String(length=255), nullable=False),
        sa.Column("amount", TokenAmount(), nullable=False),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["lottery_id"],
            ["lotteries.id"],
            name=op.f("fk_reward_claims_lottery_id_lotteries"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_reward_claims")),
    )
    op.create_index(
        op.f("ix_reward_claims_lottery_id"), "reward_claims", ["lottery_id"], unique=False
    )
    op.create_index(
        op.f("ix_reward_claims_account"), "reward_claims", ["account"], unique=False
    )


def downgrade() -> None:
    op.drop_table("reward_claims")
    op.drop_table("prize_wins")
    op.drop_table("prize_draws")
    op.drop_table("unclaimed_rewards")
    op.drop_table("prize_config_versions")
    op.drop_table("honor_tokens")
    op.drop_table("honor_entitlements")
    op.drop_table("honor_collections")
    op.drop_table("lotteries")
