"""create customer, transaction and import session tables

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def _scope() -> list[sa.Column]:
    return [
        sa.Column("tenant_id", sa.Integer(), nullable=False),
        sa.Column("is_live", sa.Boolean(), server_default=sa.text("true"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "transaction_types",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("txn_code", sa.String(length=32), nullable=False),
        sa.Column("txn_name", sa.String(length=120), nullable=False),
        sa.Column("txn_direction", sa.String(length=16), server_default="addition", nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("txn_code", name="uq_transaction_types_txn_code"),
    )

    op.create_table(
        "customers",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        *_scope(),
        sa.Column("prefix", sa.String(length=16), server_default="Sri", nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("mobile", sa.String(length=20), nullable=True),
        sa.Column("whatsapp", sa.String(length=20), nullable=True),
        sa.Column("pan", sa.String(length=10), nullable=True),
        sa.Column("iwell_code", sa.String(length=64), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("anniversary_date", sa.Date(), nullable=True),
        sa.Column("family_head_name", sa.String(length=255), nullable=True),
        sa.Column("family_head_iwell_code", sa.String(length=64), nullable=True),
        sa.Column("referred_by_name", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_customers_scope_iwell_code", "customers", ["tenant_id", "is_live", "iwell_code"])
    op.create_index("ix_customers_scope_pan", "customers", ["tenant_id", "is_live", "pan"])

    op.create_table(
        "customer_addresses",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("customer_id", sa.BigInteger(), nullable=False),
        sa.Column("address_type", sa.String(length=32), server_default="residential", nullable=False),
        sa.Column("address_line1", sa.String(length=255), nullable=True),
        sa.Column("address_line2", sa.String(length=255), nullable=True),
        sa.Column("city", sa.String(length=120), nullable=True),
        sa.Column("state", sa.String(length=120), nullable=True),
        sa.Column("pincode", sa.String(length=6), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_customer_addresses_customer_id", "customer_addresses", ["customer_id"])

    op.create_table(
        "customer_portfolios",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        *_scope(),
        sa.Column("customer_id", sa.BigInteger(), nullable=False),
        sa.Column("scheme_code", sa.String(length=64), nullable=False),
        sa.Column("scheme_name", sa.String(length=255), nullable=True),
        sa.Column("folio_no", sa.String(length=64), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "customer_id",
            "scheme_code",
            "tenant_id",
            "is_live",
            name="uq_customer_portfolios_customer_scheme_scope",
        ),
    )

    op.create_table(
        "transactions",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        *_scope(),
        sa.Column("customer_id", sa.BigInteger(), nullable=False),
        sa.Column("scheme_code", sa.String(length=64), nullable=False),
        sa.Column("scheme_name", sa.String(length=255), nullable=True),
        sa.Column("folio_no", sa.String(length=64), nullable=True),
        sa.Column("txn_type_id", sa.Integer(), nullable=False),
        sa.Column("txn_date", sa.Date(), nullable=False),
        sa.Column("total_amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("units", sa.Numeric(18, 4), nullable=False),
        sa.Column("nav", sa.Numeric(18, 4), nullable=False),
        sa.Column("stamp_duty", sa.Numeric(18, 2), nullable=True),
        sa.Column("duplicate_key", sa.String(length=255), nullable=False),
        sa.Column("is_potential_duplicate", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("duplicate_reason", sa.Text(), nullable=True),
        sa.Column("portfolio_flag", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("import_session_id", sa.String(length=36), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.ForeignKeyConstraint(["txn_type_id"], ["transaction_types.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_transactions_scope_duplicate_key",
        "transactions",
        ["tenant_id", "is_live", "duplicate_key", "is_active"],
    )
    op.create_index("ix_transactions_customer_scheme", "transactions", ["customer_id", "scheme_code"])
    op.create_index("ix_transactions_txn_date", "transactions", ["txn_date"])

    op.create_table(
        "import_sessions",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        *_scope(),
        sa.Column("record_kind", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=True),
        sa.Column("file_size", sa.BigInteger(), nullable=True),
        sa.Column("request_payload", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("result_payload", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_import_sessions_tenant_status", "import_sessions", ["tenant_id", "is_live", "status"])
    op.create_index("ix_import_sessions_created_at", "import_sessions", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_import_sessions_created_at", table_name="import_sessions")
    op.drop_index("ix_import_sessions_tenant_status", table_name="import_sessions")
    op.drop_table("import_sessions")
    op.drop_index("ix_transactions_txn_date", table_name="transactions")
    op.drop_index("ix_transactions_customer_scheme", table_name="transactions")
    op.drop_index("ix_transactions_scope_duplicate_key", table_name="transactions")
    op.drop_table("transactions")
    op.drop_table("customer_portfolios")
    op.drop_index("ix_customer_addresses_customer_id", table_name="customer_addresses")
    op.drop_table("customer_addresses")
    op.drop_index("ix_customers_scope_pan", table_name="customers")
    op.drop_index("ix_customers_scope_iwell_code", table_name="customers")
    op.drop_table("customers")
    op.drop_table("transaction_types")
