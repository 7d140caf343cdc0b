"""
app/services/record_handlers.py

Per-record-kind steps of an import: mapping, validation, duplicate check
and commit.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Any, Mapping, Sequence

from app.config import get_import_settings
from app.domain.imports import (
    CandidateRecord,
    DuplicateCheck,
    ImportContext,
    RecordKind,
    ValidationResult,
)
from app.domain.records import CustomerRecord, TransactionRecord
from app.mappers.record_mapper import MappingResolution, RecordMapper
from app.mappers.record_schemas import CUSTOMER_SCHEMA, TRANSACTION_SCHEMA
from app.mappers.transforms import is_blank, to_int
from app.repositories.import_store import ImportStore
from app.services.duplicate_detection import DuplicateDetector, DuplicateKeyFields
from app.validators.record_validator import (
    CustomerRecordValidator,
    RecordValidator,
    TransactionRecordValidator,
)


class CommitOutcome:
    CREATED = "created"
    UPDATED = "updated"


class RecordHandler(ABC):
    """
    Import steps for one record kind.
    """

    kind: str = ""
    refreshes_portfolio: bool = False

    def __init__(self, *, mapper: RecordMapper, validator: RecordValidator) -> None:
        self._mapper = mapper
        self._validator = validator

    def resolve_mapping(self, headers: Sequence[str], *, context: ImportContext) -> MappingResolution:
        return self._mapper.resolve_mapping(
            headers,
            manual_overrides=context.field_overrides,
            transformations=context.transformations,
        )

    def build_candidate(
        self,
        raw_row: Mapping[str, Any],
        *,
        mapping: MappingResolution,
        store: ImportStore,
        context: ImportContext,
    ) -> CandidateRecord:
        return self._mapper.map_row(raw_row=raw_row, mapping=mapping)

    def validate(self, candidate: CandidateRecord) -> ValidationResult:
        return self._validator.validate(candidate)

    def check_duplicate(
        self,
        candidate: CandidateRecord,
        *,
        store: ImportStore,
        context: ImportContext,
    ) -> DuplicateCheck | None:
        return None

    @abstractmethod
    def commit(
        self,
        candidate: CandidateRecord,
        *,
        store: ImportStore,
        context: ImportContext,
        duplicate: DuplicateCheck | None,
    ) -> str:
        """Persist the candidate; return a CommitOutcome value."""


class TransactionImportHandler(RecordHandler):
    kind = RecordKind.TRANSACTION
    refreshes_portfolio = True

    def __init__(
        self,
        *,
        mapper: RecordMapper | None = None,
        validator: RecordValidator | None = None,
        detector: DuplicateDetector | None = None,
    ) -> None:
        super().__init__(
            mapper=mapper or RecordMapper(TRANSACTION_SCHEMA),
            validator=validator or TransactionRecordValidator(),
        )
        self._detector = detector or DuplicateDetector()

    def build_candidate(
        self,
        raw_row: Mapping[str, Any],
        *,
        mapping: MappingResolution,
        store: ImportStore,
        context: ImportContext,
    ) -> CandidateRecord:
        candidate = super().build_candidate(raw_row, mapping=mapping, store=store, context=context)
        fields = dict(candidate.fields)
        lookup_errors: list[str] = []

        iwell_code = fields.get("iwell_code")
        if is_blank(fields.get("customer_id")) and not is_blank(iwell_code):
            customer_id = store.find_customer_id(scope=context.scope, iwell_code=str(iwell_code))
            if customer_id is None:
                lookup_errors.append(f"No customer found for IWELL code '{iwell_code}'")
            fields["customer_id"] = customer_id

        type_code = fields.get("txn_type")
        type_ref = fields.get("txn_type_id")
        if not is_blank(type_ref) and not _is_integer(type_ref):
            # A code in the id column, e.g. "PURCHASE".
            type_code = str(type_ref).strip().upper()
            fields["txn_type_id"] = None
        if is_blank(fields.get("txn_type_id")) and not is_blank(type_code):
            txn_type_id = store.find_transaction_type_id(code=str(type_code))
            if txn_type_id is None:
                lookup_errors.append(f"Unknown transaction type '{type_code}'")
            fields["txn_type_id"] = txn_type_id

        return replace(candidate, fields=fields, lookup_errors=tuple(lookup_errors))

    def check_duplicate(
        self,
        candidate: CandidateRecord,
        *,
        store: ImportStore,
        context: ImportContext,
    ) -> DuplicateCheck | None:
        return self._detector.check(
            store=store,
            scope=context.scope,
            fields=DuplicateKeyFields.from_mapping(candidate.fields),
        )

    def commit(
        self,
        candidate: CandidateRecord,
        *,
        store: ImportStore,
        context: ImportContext,
        duplicate: DuplicateCheck | None,
    ) -> str:
        if duplicate is None:
            duplicate = self.check_duplicate(candidate, store=store, context=context)
        record = TransactionRecord.from_candidate(candidate)

        # Portfolio metadata stays current even when the row is a duplicate.
        store.upsert_portfolio_entry(
            scope=context.scope,
            customer_id=record.customer_id,
            scheme_code=record.scheme_code,
            scheme_name=record.scheme_name,
            folio_no=record.folio_no,
        )
        store.insert_transaction(context=context, record=record, duplicate=duplicate)
        return CommitOutcome.CREATED


class CustomerImportHandler(RecordHandler):
    """
    Customer rows upsert by IWELL code, or by PAN when the row has no IWELL code.
    """

    kind = RecordKind.CUSTOMER

    def __init__(
        self,
        *,
        mapper: RecordMapper | None = None,
        validator: RecordValidator | None = None,
        default_prefix: str | None = None,
    ) -> None:
        super().__init__(
            mapper=mapper or RecordMapper(CUSTOMER_SCHEMA),
            validator=validator or CustomerRecordValidator(),
        )
        self._default_prefix = default_prefix or get_import_settings().default_prefix

    def commit(
        self,
        candidate: CandidateRecord,
        *,
        store: ImportStore,
        context: ImportContext,
        duplicate: DuplicateCheck | None,
    ) -> str:
        record = CustomerRecord.from_candidate(candidate, default_prefix=self._default_prefix)
        # Identity is the IWELL code when present, else the PAN.
        existing_id = None
        if record.iwell_code:
            existing_id = store.find_customer_id(scope=context.scope, iwell_code=record.iwell_code)
        elif record.pan:
            existing_id = store.find_customer_id(scope=context.scope, pan=record.pan)

        if existing_id is not None:
            store.update_customer(scope=context.scope, customer_id=existing_id, record=record)
            return CommitOutcome.UPDATED

        store.create_customer(context=context, record=record)
        return CommitOutcome.CREATED


def _is_integer(value: Any) -> bool:
    try:
        return to_int(value) is not None
    except ValueError:
        return False


def default_record_handlers() -> list[RecordHandler]:
    return [TransactionImportHandler(), CustomerImportHandler()]
