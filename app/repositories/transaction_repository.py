"""
app/repositories/transaction_repository.py

Persistence helpers for imported transactions and portfolio entries.
"""

from __future__ import annotations

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from app.domain.imports import DuplicateCheck, ImportContext, TenantScope
from app.domain.records import TransactionRecord
from db.models.portfolio import CustomerPortfolio
from db.models.transaction import Transaction, TransactionType

_PORTFOLIO_CONSTRAINT = "uq_customer_portfolios_customer_scheme_scope"


class TransactionRepository:
    """
    Repository for transaction ledger writes and lookups.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def count_active_by_key(self, *, scope: TenantScope, duplicate_key: str) -> int:
        stmt = (
            select(func.count())
            .select_from(Transaction)
            .where(
                Transaction.tenant_id == scope.tenant_id,
                Transaction.is_live.is_(scope.is_live),
                Transaction.duplicate_key == duplicate_key,
                Transaction.is_active.is_(True),
            )
        )
        return int(self._session.scalar(stmt) or 0)

    def insert(
        self,
        *,
        context: ImportContext,
        record: TransactionRecord,
        duplicate: DuplicateCheck,
    ) -> int:
        transaction = Transaction(
            tenant_id=context.scope.tenant_id,
            is_live=context.scope.is_live,
            customer_id=record.customer_id,
            scheme_code=record.scheme_code,
            scheme_name=record.scheme_name,
            folio_no=record.folio_no,
            txn_type_id=record.txn_type_id,
            txn_date=record.txn_date,
            total_amount=record.total_amount,
            units=record.units,
            nav=record.nav,
            stamp_duty=record.stamp_duty,
            duplicate_key=duplicate.key,
            is_potential_duplicate=duplicate.is_duplicate,
            duplicate_reason=duplicate.reason,
            portfolio_flag=True,
            is_active=True,
            import_session_id=context.import_session_id,
            created_by=context.created_by,
        )
        self._session.add(transaction)
        self._session.flush()
        return transaction.id

    def upsert_portfolio_entry(
        self,
        *,
        scope: TenantScope,
        customer_id: int,
        scheme_code: str,
        scheme_name: str | None,
        folio_no: str | None,
    ) -> None:
        """
        Insert or refresh the (customer, scheme) portfolio entry.
        """

        stmt = insert(CustomerPortfolio).values(
            tenant_id=scope.tenant_id,
            is_live=scope.is_live,
            customer_id=customer_id,
            scheme_code=scheme_code,
            scheme_name=scheme_name,
            folio_no=folio_no,
        )
        stmt = stmt.on_conflict_do_update(
            constraint=_PORTFOLIO_CONSTRAINT,
            set_={
                "scheme_name": func.coalesce(stmt.excluded.scheme_name, CustomerPortfolio.scheme_name),
                "folio_no": func.coalesce(stmt.excluded.folio_no, CustomerPortfolio.folio_no),
                "updated_at": func.now(),
            },
        )
        self._session.execute(stmt)

    def deactivate(self, *, scope: TenantScope, transaction_id: int) -> bool:
        stmt = (
            update(Transaction)
            .where(
                Transaction.id == transaction_id,
                Transaction.tenant_id == scope.tenant_id,
                Transaction.is_live.is_(scope.is_live),
                Transaction.is_active.is_(True),
            )
            .values(is_active=False, updated_at=func.now())
        )
        result = self._session.execute(stmt)
        return bool(result.rowcount)

    def find_type_id(self, *, code: str) -> int | None:
        stmt = select(TransactionType.id).where(
            func.upper(TransactionType.txn_code) == code.strip().upper(),
            TransactionType.is_active.is_(True),
        )
        return self._session.scalar(stmt)
