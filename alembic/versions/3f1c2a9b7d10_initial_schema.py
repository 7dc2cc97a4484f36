"""initial schema

Revision ID: 3f1c2a9b7d10
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

revision: str = "3f1c2a9b7d10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "projects",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("uuid", sa.String(26), nullable=False, unique=True),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="planning"),
        sa.Column("contractor_name", sa.Text, nullable=False, server_default=""),
        sa.Column("contract_amount", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.current_timestamp()),
    )

    op.create_table(
        "contract_line_items",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "project_id",
            sa.Integer,
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("category", sa.Text, nullable=False, server_default=""),
        sa.Column("budgeted_amount", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
        sa.CheckConstraint("budgeted_amount >= 0", name="ck_contract_line_items_budget"),
    )
    op.create_index("ix_contract_line_items_project_id", "contract_line_items", ["project_id"])

    op.create_table(
        "bills",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("uuid", sa.String(26), nullable=False, unique=True),
        sa.Column(
            "project_id",
            sa.Integer,
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("bill_number", sa.Text),
        sa.Column("contractor_name", sa.Text, nullable=False, server_default=""),
        sa.Column("issue_date", sa.String(10)),
        sa.Column("due_date", sa.String(10)),
        sa.Column("total_amount", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("notes", sa.Text, nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index("ix_bills_project_id", "bills", ["project_id"])

    op.create_table(
        "bill_line_items",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "bill_id",
            sa.Integer,
            sa.ForeignKey("bills.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "contract_line_item_id",
            sa.Integer,
            sa.ForeignKey("contract_line_items.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("amount", sa.BigInteger, nullable=False),
        sa.Column("is_deviation", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("deviation_reason", sa.Text),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
    )
    op.create_index("ix_bill_line_items_bill_id", "bill_line_items", ["bill_id"])

    op.create_table(
        "mortgages",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("property_name", sa.Text, nullable=False, server_default="Our Home"),
        sa.Column("purchase_price", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("principal", sa.BigInteger, nullable=False),
        sa.Column("annual_interest_rate_pct", sa.Float, nullable=False),
        sa.Column("term_months", sa.Integer, nullable=False),
        sa.Column("start_date", sa.String(10)),
        sa.Column("monthly_payment", sa.BigInteger, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.current_timestamp()),
    )

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("uuid", sa.String(26), nullable=False, unique=True),
        sa.Column(
            "project_id",
            sa.Integer,
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "mortgage_id",
            sa.Integer,
            sa.ForeignKey("mortgages.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("paid_by", sa.String(255), nullable=False),
        sa.Column("amount", sa.BigInteger, nullable=False),
        sa.Column("payment_date", sa.String(10), nullable=False),
        sa.Column("payment_method", sa.String(50), nullable=False, server_default=""),
        sa.Column("notes", sa.Text, nullable=False, server_default=""),
        sa.Column("proof_file_id", sa.Text),
        sa.Column("proof_url", sa.Text),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.current_timestamp()),
        sa.CheckConstraint("amount > 0", name="ck_payments_amount"),
    )
    op.create_index("ix_payments_project_id", "payments", ["project_id"])
    op.create_index("ix_payments_mortgage_id", "payments", ["mortgage_id"])


def downgrade() -> None:
    op.drop_index("ix_payments_mortgage_id", table_name="payments")
    op.drop_index("ix_payments_project_id", table_name="payments")
    op.drop_table("payments")
    op.drop_table("mortgages")
    op.drop_index("ix_bill_line_items_bill_id", table_name="bill_line_items")
    op.drop_table("bill_line_items")
    op.drop_index("ix_bills_project_id", table_name="bills")
    op.drop_table("bills")
    op.drop_index("ix_contract_line_items_project_id", table_name="contract_line_items")
    op.drop_table("contract_line_items")
    op.drop_table("projects")
