"""
db/models/portfolio.py

Denormalized per-customer scheme holdings kept current by transaction imports.
"""

from __future__ import annotations

from sqlalchemy import BigInteger, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TenantScopedMixin, TimestampMixin

PORTFOLIO_TOTALS_VIEW = "customer_portfolio_totals"


class CustomerPortfolio(Base, TenantScopedMixin, TimestampMixin):
    __tablename__ = "customer_portfolios"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    customer_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("customers.id"), nullable=False)
    scheme_code: Mapped[str] = mapped_column(String(64), nullable=False)
    scheme_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    folio_no: Mapped[str | None] = mapped_column(String(64), nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "customer_id",
            "scheme_code",
            "tenant_id",
            "is_live",
            name="uq_customer_portfolios_customer_scheme_scope",
        ),
    )
