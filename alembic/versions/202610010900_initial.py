"""initial ledger schema

Revision ID: 202610010900
Revises:
Create Date: 2026-10-01 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


revision = "202610010900"
down_revision = None
branch_labels = None
depends_on = None

TIMESTAMPS = (
    ("created_at", sa.DateTime()),
    ("updated_at", sa.DateTime()),
)


def _timestamps():
    return [sa.Column(name, type_, nullable=False) for name, type_ in TIMESTAMPS]


def upgrade():
    op.create_table(
        "accounts",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("icon", sa.String(length=16)),
        sa.Column("color", sa.String(length=9)),
        sa.Column(
            "opening_balance_cents", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )

    op.create_table(
        "categories",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column(
            "kind", sa.Enum("expense", "income", name="categorykind"), nullable=False
        ),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("icon", sa.String(length=16)),
        sa.Column("color", sa.String(length=9)),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_categories_kind_order", "categories", ["kind", "order"])

    op.create_table(
        "sub_categories",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column(
            "category_id",
            sa.String(length=32),
            sa.ForeignKey("categories.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )

    op.create_table(
        "transactions",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column(
            "type",
            sa.Enum("income", "expense", "transfer", name="transactiontype"),
            nullable=False,
        ),
        sa.Column("account_id", sa.String(length=32), nullable=False),
        sa.Column("to_account_id", sa.String(length=32)),
        sa.Column("category_id", sa.String(length=32)),
        sa.Column("sub_category_id", sa.String(length=32)),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("note", sa.Text()),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.CheckConstraint("amount_cents > 0", name="ck_transactions_amount_positive"),
        sa.CheckConstraint(
            "type != 'transfer' OR "
            "(to_account_id IS NOT NULL AND to_account_id != account_id)",
            name="ck_transactions_transfer_accounts",
        ),
    )
    op.create_index("ix_transactions_date", "transactions", ["date"])
    op.create_index("ix_transactions_account", "transactions", ["account_id"])
    op.create_index("ix_transactions_to_account", "transactions", ["to_account_id"])
    op.create_index("ix_transactions_category", "transactions", ["category_id"])
    op.create_index(
        "ix_transactions_sub_category", "transactions", ["sub_category_id"]
    )

    op.create_table(
        "app_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("app_name", sa.String(length=60), nullable=False),
        sa.Column(
            "ui_mode",
            sa.Enum(
                "auto",
                "dark",
                "light",
                "ocean",
                "forest",
                "sunset",
                "midnight",
                "rose",
                name="uimode",
            ),
            nullable=False,
        ),
        sa.Column("notifications", sa.Boolean(), nullable=False),
        sa.Column("reminder_times_json", sa.Text()),
        sa.Column("sms_detection", sa.Boolean(), nullable=False),
        sa.Column("carry_forward", sa.Boolean(), nullable=False),
        *_timestamps(),
    )


def downgrade():
    op.drop_table("app_settings")
    op.drop_index("ix_transactions_sub_category", table_name="transactions")
    op.drop_index("ix_transactions_category", table_name="transactions")
    op.drop_index("ix_transactions_to_account", table_name="transactions")
    op.drop_index("ix_transactions_account", table_name="transactions")
    op.drop_index("ix_transactions_date", table_name="transactions")
    op.drop_table("transactions")
    op.drop_table("sub_categories")
    op.drop_index("ix_categories_kind_order", table_name="categories")
    op.drop_table("categories")
    op.drop_table("accounts")
