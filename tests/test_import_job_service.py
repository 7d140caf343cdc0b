"""
tests/test_import_job_service.py

Background import job lifecycle with the session repository and store faked out.
"""

from __future__ import annotations

import uuid
from datetime import date
from types import SimpleNamespace
from typing import Any

import pytest
from sqlalchemy.exc import OperationalError

from app.config import ImportSettings
from app.domain.imports import ImportContext, RecordKind, TenantScope
from app.parsing.tabular_parser import TabularParser
from app.services import import_job_service as job_module
from app.services.import_job_service import ImportJobService, ImportPersistenceError
from app.services.import_orchestrator import ImportFileError, ImportOrchestrator
from app.services.record_handlers import CustomerImportHandler, TransactionImportHandler
from app.services.task_executor import InlineTaskExecutor
from app.validators.record_validator import TransactionRecordValidator
from tests.fakes import FakeImportStore, RecordingExecutor

SCOPE = TenantScope(tenant_id=3, is_live=False)
CONTENT = b"customer_id,scheme_code,txn_type,txn_date,total_amount,units,nav\n7,INF001,PURCHASE,2024-01-15,1000,10,100\n"


class _FakeSession:
    def __init__(self) -> None:
        self.commits = 0
        self.rollbacks = 0

    def __enter__(self) -> _FakeSession:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        return None

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1


class _FakeSessionRepository:
    sessions: dict[uuid.UUID, SimpleNamespace] = {}
    fail_create = False

    def __init__(self, db: Any) -> None:
        self._db = db

    def create_session(self, **fields: Any) -> SimpleNamespace:
        if self.fail_create:
            raise OperationalError("INSERT", {}, Exception("connection lost"))
        import_session = SimpleNamespace(
            id=uuid.uuid4(),
            status="pending",
            result_payload=None,
            error_message=None,
            **fields,
        )
        self.sessions[import_session.id] = import_session
        return import_session

    def mark_running(self, *, session_id: uuid.UUID) -> SimpleNamespace | None:
        import_session = self.sessions.get(session_id)
        if import_session is not None:
            import_session.status = "running"
        return import_session

    def mark_completed(self, *, session_id: uuid.UUID, result_payload: dict[str, Any]) -> SimpleNamespace | None:
        import_session = self.sessions.get(session_id)
        if import_session is not None:
            import_session.status = "completed"
            import_session.result_payload = result_payload
        return import_session

    def mark_failed(self, *, session_id: uuid.UUID, error_message: str) -> SimpleNamespace | None:
        import_session = self.sessions.get(session_id)
        if import_session is not None:
            import_session.status = "failed"
            import_session.error_message = error_message
        return import_session


@pytest.fixture()
def store(monkeypatch: pytest.MonkeyPatch) -> FakeImportStore:
    fake_store = FakeImportStore()
    _FakeSessionRepository.sessions = {}
    _FakeSessionRepository.fail_create = False
    monkeypatch.setattr(job_module, "ImportSessionRepository", _FakeSessionRepository)
    monkeypatch.setattr(job_module, "SQLAlchemyImportStore", lambda *, session: fake_store)
    return fake_store


@pytest.fixture()
def service() -> ImportJobService:
    settings = ImportSettings(refresh_portfolio_totals=False)
    orchestrator = ImportOrchestrator(
        settings=settings,
        parser=TabularParser(max_format_check_bytes=settings.max_format_check_bytes),
        handlers=[
            TransactionImportHandler(
                validator=TransactionRecordValidator(today=lambda: date(2024, 6, 30), amount_tolerance=1.0)
            ),
            CustomerImportHandler(default_prefix="Sri"),
        ],
    )
    return ImportJobService(session_factory=_FakeSession, orchestrator=orchestrator)


class TestImportJobService:
    def test_inline_job_completes_and_stores_result(self, service: ImportJobService, store: FakeImportStore) -> None:
        import_session = service.trigger_import(
            db=_FakeSession(),
            executor=InlineTaskExecutor(),
            file_bytes=CONTENT,
            file_name="txns.csv",
            record_kind=RecordKind.TRANSACTION,
            context=ImportContext(scope=SCOPE, created_by=9),
        )

        assert import_session.status == "completed"
        assert import_session.result_payload["created"] == 1
        assert import_session.tenant_id == 3
        assert import_session.is_live is False
        assert store.transactions[0]["import_session_id"] == str(import_session.id)

    def test_job_is_pending_until_executor_runs(self, service: ImportJobService, store: FakeImportStore) -> None:
        executor = RecordingExecutor()

        import_session = service.trigger_import(
            db=_FakeSession(),
            executor=executor,
            file_bytes=CONTENT,
            file_name="txns.csv",
            record_kind=RecordKind.TRANSACTION,
            context=ImportContext(scope=SCOPE),
        )

        assert import_session.status == "pending"
        assert len(executor.submitted) == 1
        task, args, kwargs = executor.submitted[0]
        task(*args, **kwargs)
        assert import_session.status == "completed"

    def test_failed_job_records_error(self, service: ImportJobService, store: FakeImportStore) -> None:
        import_session = service.trigger_import(
            db=_FakeSession(),
            executor=InlineTaskExecutor(),
            file_bytes=CONTENT,
            file_name="txns.csv",
            record_kind=RecordKind.TRANSACTION,
            context=ImportContext(scope=SCOPE, field_overrides={"total_amount": "Gross"}),
        )

        assert import_session.status == "failed"
        assert import_session.error_message.startswith("SchemaMappingError:")
        assert store.transactions == []

    def test_structural_errors_raise_before_session_is_created(
        self,
        service: ImportJobService,
        store: FakeImportStore,
    ) -> None:
        with pytest.raises(ImportFileError):
            service.trigger_import(
                db=_FakeSession(),
                executor=InlineTaskExecutor(),
                file_bytes=b"%PDF",
                file_name="statement.pdf",
                record_kind=RecordKind.TRANSACTION,
                context=ImportContext(scope=SCOPE),
            )

        assert _FakeSessionRepository.sessions == {}

    def test_session_persistence_failure_is_wrapped(self, service: ImportJobService, store: FakeImportStore) -> None:
        _FakeSessionRepository.fail_create = True
        db = _FakeSession()

        with pytest.raises(ImportPersistenceError):
            service.trigger_import(
                db=db,
                executor=InlineTaskExecutor(),
                file_bytes=CONTENT,
                file_name="txns.csv",
                record_kind=RecordKind.TRANSACTION,
                context=ImportContext(scope=SCOPE),
            )

        assert db.rollbacks == 1
