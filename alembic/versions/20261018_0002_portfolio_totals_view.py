"""create customer_portfolio_totals view and seed transaction types

Revision ID: 20261018_0002
Revises: 20261018_0001
Create Date: 2026-10-18 09:30:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261018_0002"
down_revision = "20261018_0001"
branch_labels = None
depends_on = None

_TRANSACTION_TYPES = (
    ("PURCHASE", "Purchase", "addition"),
    ("SIP", "Systematic Investment", "addition"),
    ("REDEMPTION", "Redemption", "deduction"),
    ("SWITCH_IN", "Switch In", "addition"),
    ("SWITCH_OUT", "Switch Out", "deduction"),
    ("DIVIDEND_REINVEST", "Dividend Reinvestment", "addition"),
)


def upgrade() -> None:
    transaction_types = sa.table(
        "transaction_types",
        sa.column("txn_code", sa.String),
        sa.column("txn_name", sa.String),
        sa.column("txn_direction", sa.String),
    )
    op.bulk_insert(
        transaction_types,
        [
            {"txn_code": code, "txn_name": name, "txn_direction": direction}
            for code, name, direction in _TRANSACTION_TYPES
        ],
    )

    # Deductions subtract units and amount from the running totals.
    op.execute(
        """
        CREATE MATERIALIZED VIEW customer_portfolio_totals AS
        SELECT
            t.tenant_id,
            t.is_live,
            t.customer_id,
            t.scheme_code,
            SUM(CASE WHEN tt.txn_direction = 'deduction' THEN -t.units ELSE t.units END) AS total_units,
            SUM(CASE WHEN tt.txn_direction = 'deduction' THEN -t.total_amount ELSE t.total_amount END)
                AS invested_amount,
            COUNT(*) AS transaction_count,
            MAX(t.txn_date) AS last_txn_date
        FROM transactions AS t
        JOIN transaction_types AS tt ON tt.id = t.txn_type_id
        WHERE t.is_active AND t.portfolio_flag
        GROUP BY t.tenant_id, t.is_live, t.customer_id, t.scheme_code
        """
    )
    op.execute(
        "CREATE UNIQUE INDEX ux_customer_portfolio_totals_scope "
        "ON customer_portfolio_totals (tenant_id, is_live, customer_id, scheme_code)"
    )


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS ux_customer_portfolio_totals_scope")
    op.execute("DROP MATERIALIZED VIEW IF EXISTS customer_portfolio_totals")
    op.execute(
        "DELETE FROM transaction_types WHERE txn_code IN ("
        + ", ".join(f"'{code}'" for code, _, _ in _TRANSACTION_TYPES)
        + ")"
    )
