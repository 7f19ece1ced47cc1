"""create categorization tables

Revision ID: 001
Revises: 
Create Date: 2026-10-18 09:00:00
"""

from alembic import op
import sqlalchemy as sa

revision = "001"
down_revision = None
branch_labels = None
depends_on = None

CATEGORY = sa.Enum(
    "revenue", "meals_entertainment", "operations", "marketing", "utilities", "travel",
    "professional_services", "payroll", "rent", "insurance", "taxes", "inventory",
    "office_supplies", "other",
    name="category"
)
METHOD = sa.Enum("learned_pattern", "rule_based", "ai_fallback", name="categorizationmethod")
JOB_STATUS = sa.Enum("pending", "running", "completed", "failed", "cancelled", name="jobstatus")


def upgrade() -> None:
    op.create_table(
        "transactions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("hash", sa.String(64), nullable=False),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("raw_description", sa.Text, nullable=False),
        sa.Column("merchant_name", sa.String(255), nullable=True),
        sa.Column("category", CATEGORY, nullable=True),
        sa.Column("categorization_method", METHOD, nullable=True),
        sa.Column("confidence", sa.Float, nullable=False, server_default="0"),
        sa.Column("needs_review", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("categorized_at", sa.DateTime, nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False),
    )
    op.create_index("ix_transactions_user_id", "transactions", ["user_id"])
    op.create_index("ix_transactions_hash", "transactions", ["hash"], unique=True)
    op.create_index("ix_transactions_date", "transactions", ["date"])
    op.create_index("idx_transaction_user_date", "transactions", ["user_id", "date"])
    op.create_index("idx_transaction_user_review", "transactions", ["user_id", "needs_review"])

    op.create_table(
        "learned_patterns",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("merchant_token", sa.String(64), nullable=False),
        sa.Column("category", CATEGORY, nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("transaction_id", sa.String(36), nullable=True),
        sa.Column("corrected_at", sa.DateTime, nullable=False),
        sa.UniqueConstraint("user_id", "merchant_token", name="uq_learned_pattern_user_token"),
    )
    op.create_index("idx_learned_pattern_user_category", "learned_patterns", ["user_id", "category"])

    op.create_table(
        "recategorization_jobs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("status", JOB_STATUS, nullable=False),
        sa.Column("start_date", sa.Date, nullable=True),
        sa.Column("end_date", sa.Date, nullable=True),
        sa.Column("last_transaction_id", sa.String(36), nullable=True),
        sa.Column("processed", sa.Integer, nullable=False, server_default="0"),
        sa.Column("changed", sa.Integer, nullable=False, server_default="0"),
        sa.Column("cancel_requested", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("error_message", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False),
        sa.Column("finished_at", sa.DateTime, nullable=True),
    )
    op.create_index("ix_recategorization_jobs_user_id", "recategorization_jobs", ["user_id"])


def downgrade() -> None:
    op.drop_table("recategorization_jobs")
    op.drop_table("learned_patterns")
    op.drop_table("transactions")
    CATEGORY.drop(op.get_bind(), checkfirst=True)
    METHOD.drop(op.get_bind(), checkfirst=True)
    JOB_STATUS.drop(op.get_bind(), checkfirst=True)
