"""
app/repositories/import_store.py

Store abstraction the import orchestrator commits through.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.orm import Session

from app.domain.imports import DuplicateCheck, ImportContext, TenantScope
from app.domain.records import CustomerRecord, TransactionRecord
from app.repositories.customer_repository import CustomerRepository
from app.repositories.transaction_repository import TransactionRepository


class ImportStore(ABC):
    """
    Persisted-store operations needed by one import batch.

    Each row runs inside `row_transaction()`: leaving the block normally
    commits, an exception rolls back that row only and propagates.
    """

    @abstractmethod
    @contextmanager
    def row_transaction(self) -> Iterator[None]:
        """Scope one row's reads and writes."""

    @abstractmethod
    def count_transactions_by_key(self, *, scope: TenantScope, duplicate_key: str) -> int:
        """Count active transactions carrying the duplicate key."""

    @abstractmethod
    def insert_transaction(
        self,
        *,
        context: ImportContext,
        record: TransactionRecord,
        duplicate: DuplicateCheck,
    ) -> int:
        """Insert one transaction and return its id."""

    @abstractmethod
    def upsert_portfolio_entry(
        self,
        *,
        scope: TenantScope,
        customer_id: int,
        scheme_code: str,
        scheme_name: str | None,
        folio_no: str | None,
    ) -> None:
        """Insert or refresh the (customer, scheme) portfolio entry."""

    @abstractmethod
    def deactivate_transaction(self, *, scope: TenantScope, transaction_id: int) -> bool:
        """Soft-delete a transaction; True when a row changed."""

    @abstractmethod
    def find_customer_id(
        self,
        *,
        scope: TenantScope,
        iwell_code: str | None = None,
        pan: str | None = None,
    ) -> int | None:
        """Resolve an active customer by IWELL code, then PAN."""

    @abstractmethod
    def find_transaction_type_id(self, *, code: str) -> int | None:
        """Resolve an active transaction type by its code."""

    @abstractmethod
    def create_customer(self, *, context: ImportContext, record: CustomerRecord) -> int:
        """Insert one customer and return its id."""

    @abstractmethod
    def update_customer(self, *, scope: TenantScope, customer_id: int, record: CustomerRecord) -> None:
        """Apply an imported row onto an existing customer."""


class SQLAlchemyImportStore(ImportStore):
    """
    Import store backed by one SQLAlchemy session.
    """

    def __init__(self, *, session: Session) -> None:
        self._session = session
        self._transactions = TransactionRepository(session)
        self._customers = CustomerRepository(session)

    @contextmanager
    def row_transaction(self) -> Iterator[None]:
        try:
            yield
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

    def count_transactions_by_key(self, *, scope: TenantScope, duplicate_key: str) -> int:
        return self._transactions.count_active_by_key(scope=scope, duplicate_key=duplicate_key)

    def insert_transaction(
        self,
        *,
        context: ImportContext,
        record: TransactionRecord,
        duplicate: DuplicateCheck,
    ) -> int:
        return self._transactions.insert(context=context, record=record, duplicate=duplicate)

    def upsert_portfolio_entry(
        self,
        *,
        scope: TenantScope,
        customer_id: int,
        scheme_code: str,
        scheme_name: str | None,
        folio_no: str | None,
    ) -> None:
        self._transactions.upsert_portfolio_entry(
            scope=scope,
            customer_id=customer_id,
            scheme_code=scheme_code,
            scheme_name=scheme_name,
            folio_no=folio_no,
        )

    def deactivate_transaction(self, *, scope: TenantScope, transaction_id: int) -> bool:
        with self.row_transaction():
            return self._transactions.deactivate(scope=scope, transaction_id=transaction_id)

    def find_customer_id(
        self,
        *,
        scope: TenantScope,
        iwell_code: str | None = None,
        pan: str | None = None,
    ) -> int | None:
        return self._customers.find_id(scope=scope, iwell_code=iwell_code, pan=pan)

    def find_transaction_type_id(self, *, code: str) -> int | None:
        return self._transactions.find_type_id(code=code)

    def create_customer(self, *, context: ImportContext, record: CustomerRecord) -> int:
        return self._customers.create(scope=context.scope, record=record, created_by=context.created_by)

    def update_customer(self, *, scope: TenantScope, customer_id: int, record: CustomerRecord) -> None:
        self._customers.update(scope=scope, customer_id=customer_id, record=record)
