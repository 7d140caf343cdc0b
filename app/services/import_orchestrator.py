"""
app/services/import_orchestrator.py

Drives parse -> map -> validate -> duplicate check -> commit for one batch.

Rows are processed strictly in order and each row commits in its own store
transaction, so the duplicate check of a row sees every row committed
before it in the same file. A failing row is rolled back and recorded; it
never aborts the batch. Only structural file problems (oversize,
unsupported or unreadable file) fail the whole import, and they surface
before any row is touched.

After a batch that committed transactions, a refresh of the portfolio
totals view is handed to the caller's executor. That refresh is
best-effort and never affects the returned result.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Mapping

from sqlalchemy.orm import Session

from app.config import ImportSettings, get_import_settings
from app.domain.imports import (
    DuplicateCheck,
    ImportContext,
    ImportResult,
    ImportRowError,
    ImportRowWarning,
    ParsedFile,
    ParseOptions,
)
from app.logging_utils import log_event
from app.mappers.record_mapper import MappingResolution
from app.parsing.tabular_parser import TabularParser, normalize_extension
from app.repositories.import_store import ImportStore
from app.services.portfolio_refresh import PortfolioTotalsRefresher
from app.services.record_handlers import CommitOutcome, RecordHandler, default_record_handlers
from app.services.task_executor import TaskExecutor

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ImportFileError(ValueError):
    """
    Raised when an uploaded file cannot be imported at all.
    """

    def __init__(self, message: str, *, errors: Iterable[str] = (), status_code: int = 400) -> None:
        super().__init__(message)
        self.errors = tuple(errors) or (message,)
        self.status_code = status_code


class UnknownRecordKindError(ValueError):
    """
    Raised when no handler is registered for the requested record kind.
    """


# ---------------------------------------------------------------------------
# Row outcome
# ---------------------------------------------------------------------------


_FAILED = "failed"


@dataclass
class _RowOutcome:
    status: str
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    duplicate: DuplicateCheck | None = None


@dataclass
class _BatchTally:
    max_rows_kept: int
    created: int = 0
    updated: int = 0
    failed: int = 0
    duplicates: int = 0
    errors: list[ImportRowError] = field(default_factory=list)
    warnings: list[ImportRowWarning] = field(default_factory=list)

    def add(self, row_number: int, raw_row: Mapping[str, Any], outcome: _RowOutcome) -> None:
        if outcome.status == _FAILED:
            self.failed += 1
            if len(self.errors) < self.max_rows_kept:
                self.errors.append(ImportRowError(row=row_number, errors=outcome.errors, data=dict(raw_row)))
            return

        if outcome.status == CommitOutcome.UPDATED:
            self.updated += 1
        else:
            self.created += 1

        is_duplicate = outcome.duplicate is not None and outcome.duplicate.is_duplicate
        if is_duplicate:
            self.duplicates += 1
        if (outcome.warnings or is_duplicate) and len(self.warnings) < self.max_rows_kept:
            self.warnings.append(
                ImportRowWarning(
                    row=row_number,
                    warnings=outcome.warnings,
                    is_duplicate=is_duplicate,
                    duplicate_reason=outcome.duplicate.reason if outcome.duplicate else None,
                )
            )


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class ImportOrchestrator:
    """
    Coordinates one import batch across parser, handler and store.
    """

    def __init__(
        self,
        *,
        settings: ImportSettings | None = None,
        parser: TabularParser | None = None,
        handlers: Iterable[RecordHandler] | None = None,
        session_factory: Callable[[], Session] | None = None,
    ) -> None:
        self._settings = settings or get_import_settings()
        self._parser = parser or TabularParser(max_format_check_bytes=self._settings.max_format_check_bytes)
        registered = list(handlers) if handlers is not None else default_record_handlers()
        self._handlers: dict[str, RecordHandler] = {handler.kind: handler for handler in registered}
        self._session_factory = session_factory

    @property
    def parser(self) -> TabularParser:
        return self._parser

    @property
    def record_kinds(self) -> tuple[str, ...]:
        return tuple(sorted(self._handlers))

    def handler_for(self, record_kind: str) -> RecordHandler:
        handler = self._handlers.get((record_kind or "").strip().lower())
        if handler is None:
            raise UnknownRecordKindError(
                f"Unsupported record kind '{record_kind}'. Expected one of: {', '.join(self.record_kinds)}."
            )
        return handler

    def resolve_mapping(self, *, parsed_file: ParsedFile, record_kind: str, context: ImportContext) -> MappingResolution:
        return self.handler_for(record_kind).resolve_mapping(parsed_file.headers, context=context)

    def parse_upload(self, *, file_bytes: bytes, file_name: str, max_rows: int | None = None) -> ParsedFile:
        """
        Enforce upload limits and parse; raise ImportFileError on structural problems.
        """

        if len(file_bytes) > self._settings.max_upload_bytes:
            limit_mb = self._settings.max_upload_bytes // (1024 * 1024)
            raise ImportFileError(f"File too large (max {limit_mb}MB)", status_code=413)
        if not file_bytes:
            raise ImportFileError("File is empty")

        extension = normalize_extension(os.path.splitext(file_name or "")[1])
        if extension not in self._parser.supported_extensions:
            raise ImportFileError(f"Unsupported file type: {extension or file_name}")

        parsed = self._parser.parse(file_bytes, extension, ParseOptions(max_rows=max_rows))
        if not parsed.headers:
            raise ImportFileError(parsed.errors[0] if parsed.errors else "File is empty", errors=parsed.errors)
        return parsed

    def import_file(
        self,
        *,
        file_bytes: bytes,
        file_name: str,
        record_kind: str,
        context: ImportContext,
        store: ImportStore,
        executor: TaskExecutor | None = None,
        cancel_event: threading.Event | None = None,
    ) -> ImportResult:
        self.handler_for(record_kind)
        parsed_file = self.parse_upload(file_bytes=file_bytes, file_name=file_name)
        return self.import_batch(
            parsed_file=parsed_file,
            record_kind=record_kind,
            context=context,
            store=store,
            executor=executor,
            cancel_event=cancel_event,
        )

    def import_batch(
        self,
        *,
        parsed_file: ParsedFile,
        record_kind: str,
        context: ImportContext,
        store: ImportStore,
        executor: TaskExecutor | None = None,
        cancel_event: threading.Event | None = None,
    ) -> ImportResult:
        """
        Import every parsed row sequentially and summarize per-row outcomes.
        """

        handler = self.handler_for(record_kind)
        mapping = handler.resolve_mapping(parsed_file.headers, context=context)
        tally = _BatchTally(max_rows_kept=self._settings.max_error_rows)
        cancelled = False

        log_event(
            logger,
            logging.INFO,
            "import_batch_started",
            record_kind=handler.kind,
            tenant_id=context.scope.tenant_id,
            is_live=context.scope.is_live,
            rows=len(parsed_file.rows),
            unmapped_fields=list(mapping.unmapped_fields),
        )

        for row_number, raw_row in enumerate(parsed_file.rows, start=1):
            if cancel_event is not None and cancel_event.is_set():
                cancelled = True
                logger.info("Import cancelled before row=%s kind=%s", row_number, handler.kind)
                break

            try:
                with store.row_transaction():
                    outcome = self._process_row(handler, raw_row, mapping=mapping, store=store, context=context)
            except Exception as exc:  # noqa: BLE001
                message = str(exc) or type(exc).__name__
                log_event(
                    logger,
                    logging.WARNING,
                    "import_row_commit_failed",
                    record_kind=handler.kind,
                    row=row_number,
                    error=message,
                )
                outcome = _RowOutcome(status=_FAILED, errors=[message])

            if outcome.status == _FAILED and self._settings.log_validation_errors:
                logger.info("Import row rejected kind=%s row=%s errors=%s", handler.kind, row_number, outcome.errors)
            tally.add(row_number, raw_row, outcome)

        if handler.refreshes_portfolio and tally.created + tally.updated > 0:
            self._schedule_portfolio_refresh(executor, record_kind=handler.kind)

        result = ImportResult(
            success=tally.failed == 0,
            total_rows=parsed_file.total_rows,
            processed=tally.created + tally.updated + tally.failed,
            created=tally.created,
            updated=tally.updated,
            failed=tally.failed,
            errors=tally.errors,
            file_id=context.file_id,
            duplicates=tally.duplicates,
            warnings=tally.warnings,
            cancelled=cancelled,
        )
        log_event(
            logger,
            logging.INFO,
            "import_batch_finished",
            record_kind=handler.kind,
            tenant_id=context.scope.tenant_id,
            processed=result.processed,
            created=result.created,
            updated=result.updated,
            failed=result.failed,
            duplicates=result.duplicates,
            cancelled=cancelled,
        )
        return result

    def _process_row(
        self,
        handler: RecordHandler,
        raw_row: Mapping[str, Any],
        *,
        mapping: MappingResolution,
        store: ImportStore,
        context: ImportContext,
    ) -> _RowOutcome:
        candidate = handler.build_candidate(raw_row, mapping=mapping, store=store, context=context)
        validation = handler.validate(candidate)
        if not validation.is_valid:
            return _RowOutcome(status=_FAILED, errors=list(validation.errors), warnings=list(validation.warnings))

        duplicate = handler.check_duplicate(candidate, store=store, context=context)
        status = handler.commit(candidate, store=store, context=context, duplicate=duplicate)
        return _RowOutcome(status=status, warnings=list(validation.warnings), duplicate=duplicate)

    def _schedule_portfolio_refresh(self, executor: TaskExecutor | None, *, record_kind: str) -> None:
        if executor is None or not self._settings.refresh_portfolio_totals:
            return
        refresher = PortfolioTotalsRefresher(executor=executor, session_factory=self._session_factory)
        refresher.schedule(reason=f"{record_kind}_import")


@lru_cache(maxsize=1)
def get_import_orchestrator() -> ImportOrchestrator:
    """
    Build and cache the orchestrator with env-driven settings.
    """

    return ImportOrchestrator(settings=get_import_settings())
