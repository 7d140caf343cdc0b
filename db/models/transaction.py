"""
db/models/transaction.py

Transaction ledger and transaction type master.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import BigInteger, Boolean, Date, ForeignKey, Index, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TenantScopedMixin, TimestampMixin


class TransactionType(Base, TimestampMixin):
    __tablename__ = "transaction_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    txn_code: Mapped[str] = mapped_column(String(32), nullable=False)
    txn_name: Mapped[str] = mapped_column(String(120), nullable=False)
    txn_direction: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default="addition",
        comment="addition or deduction",
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (UniqueConstraint("txn_code", name="uq_transaction_types_txn_code"),)


class Transaction(Base, TenantScopedMixin, TimestampMixin):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    customer_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("customers.id"), nullable=False)
    scheme_code: Mapped[str] = mapped_column(String(64), nullable=False)
    scheme_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    folio_no: Mapped[str | None] = mapped_column(String(64), nullable=True)
    txn_type_id: Mapped[int] = mapped_column(Integer, ForeignKey("transaction_types.id"), nullable=False)
    txn_date: Mapped[date] = mapped_column(Date, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    units: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False)
    nav: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False)
    stamp_duty: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    duplicate_key: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="customer|scheme|date|amount|type identity used for duplicate checks",
    )
    is_potential_duplicate: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    duplicate_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    portfolio_flag: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    import_session_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_by: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        Index("ix_transactions_scope_duplicate_key", "tenant_id", "is_live", "duplicate_key", "is_active"),
        Index("ix_transactions_customer_scheme", "customer_id", "scheme_code"),
        Index("ix_transactions_txn_date", "txn_date"),
    )
