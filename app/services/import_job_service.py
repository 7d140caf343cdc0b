"""
Background import jobs tracked in `import_sessions`.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import replace
from functools import lru_cache

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.imports import ImportContext
from app.repositories.import_store import SQLAlchemyImportStore
from app.services.import_orchestrator import ImportOrchestrator, get_import_orchestrator
from app.services.task_executor import InlineTaskExecutor, TaskExecutor
from db.models.import_session import ImportSession
from db.repositories.import_session_repository import ImportSessionRepository

logger = logging.getLogger(__name__)


class ImportPersistenceError(RuntimeError):
    """
    Raised when import session bookkeeping cannot be persisted.
    """


class ImportJobService:
    """
    Coordinates session creation, background execution, and status persistence.
    """

    def __init__(
        self,
        *,
        session_factory: Callable[[], Session] | None = None,
        orchestrator: ImportOrchestrator | None = None,
    ) -> None:
        if session_factory is None:
            from db.session import SessionLocal

            self._session_factory = SessionLocal
        else:
            self._session_factory = session_factory
        self._orchestrator = orchestrator or get_import_orchestrator()

    def trigger_import(
        self,
        *,
        db: Session,
        executor: TaskExecutor,
        file_bytes: bytes,
        file_name: str,
        record_kind: str,
        context: ImportContext,
    ) -> ImportSession:
        """
        Check the file structurally, record a pending session and schedule the run.
        """

        self._orchestrator.handler_for(record_kind)
        self._orchestrator.parse_upload(file_bytes=file_bytes, file_name=file_name, max_rows=0)

        repository = ImportSessionRepository(db)
        try:
            import_session = repository.create_session(
                tenant_id=context.scope.tenant_id,
                is_live=context.scope.is_live,
                record_kind=record_kind,
                file_name=file_name,
                file_size=len(file_bytes),
                request_payload={
                    "created_by": context.created_by,
                    "file_id": context.file_id,
                    "field_overrides": context.field_overrides,
                    "transformations": context.transformations,
                },
            )
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise ImportPersistenceError("Failed to create import session.") from exc

        job_context = replace(context, import_session_id=str(import_session.id))
        try:
            executor.submit(self._run_import_job, import_session.id, file_bytes, file_name, record_kind, job_context)
        except Exception:
            repository.mark_failed(session_id=import_session.id, error_message="Failed to schedule import job.")
            db.commit()
            raise

        return import_session

    def get_session_status(
        self,
        *,
        db: Session,
        session_id: uuid.UUID,
        tenant_id: int,
    ) -> ImportSession | None:
        return ImportSessionRepository(db).get_session(session_id, tenant_id=tenant_id)

    def list_sessions(
        self,
        *,
        db: Session,
        tenant_id: int,
        is_live: bool,
        limit: int = 50,
        status: str | None = None,
    ) -> list[ImportSession]:
        return ImportSessionRepository(db).list_sessions(
            tenant_id=tenant_id,
            is_live=is_live,
            limit=limit,
            status=status,
        )

    def _run_import_job(
        self,
        session_id: uuid.UUID,
        file_bytes: bytes,
        file_name: str,
        record_kind: str,
        context: ImportContext,
    ) -> None:
        with self._session_factory() as db:
            repository = ImportSessionRepository(db)
            try:
                running = repository.mark_running(session_id=session_id)
                if running is None:
                    raise RuntimeError(f"Import session not found: {session_id}")
                db.commit()

                result = self._orchestrator.import_file(
                    file_bytes=file_bytes,
                    file_name=file_name,
                    record_kind=record_kind,
                    context=context,
                    store=SQLAlchemyImportStore(session=db),
                    executor=InlineTaskExecutor(),
                )

                completed = repository.mark_completed(session_id=session_id, result_payload=result.to_dict())
                if completed is None:
                    raise RuntimeError(f"Import session not found: {session_id}")
                db.commit()
            except Exception as exc:
                self._mark_session_failed(db=db, session_id=session_id, exc=exc)

    def _mark_session_failed(self, *, db: Session, session_id: uuid.UUID, exc: Exception) -> None:
        repository = ImportSessionRepository(db)
        error_message = f"{type(exc).__name__}: {exc}"
        logger.exception("Import job failed id=%s error=%s", session_id, error_message)
        try:
            db.rollback()
            failed = repository.mark_failed(session_id=session_id, error_message=error_message[:2000])
            if failed is None:
                logger.error("Unable to mark import session as failed because it was not found id=%s", session_id)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Failed to persist failed import session state id=%s", session_id)


@lru_cache(maxsize=1)
def get_import_job_service() -> ImportJobService:
    return ImportJobService()
