"""
Repository for import session lifecycle persistence and status lookup.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from db.models.import_session import ImportSession, ImportSessionStatus


class ImportSessionRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_session(
        self,
        *,
        tenant_id: int,
        is_live: bool,
        record_kind: str,
        file_name: str | None,
        file_size: int | None,
        request_payload: dict[str, Any] | None = None,
    ) -> ImportSession:
        import_session = ImportSession(
            tenant_id=tenant_id,
            is_live=is_live,
            record_kind=record_kind,
            status=ImportSessionStatus.PENDING,
            file_name=file_name,
            file_size=file_size,
            request_payload=request_payload,
        )
        self._session.add(import_session)
        self._session.flush()
        self._session.refresh(import_session)
        return import_session

    def get_session(self, session_id: uuid.UUID, *, tenant_id: int | None = None) -> ImportSession | None:
        import_session = self._session.get(ImportSession, session_id)
        if import_session is None:
            return None
        if tenant_id is not None and import_session.tenant_id != tenant_id:
            return None
        return import_session

    def list_sessions(
        self,
        *,
        tenant_id: int,
        is_live: bool,
        limit: int = 50,
        status: str | None = None,
    ) -> list[ImportSession]:
        stmt: Select[tuple[ImportSession]] = select(ImportSession).where(
            ImportSession.tenant_id == tenant_id,
            ImportSession.is_live.is_(is_live),
        )
        if status:
            stmt = stmt.where(ImportSession.status == status)

        stmt = stmt.order_by(ImportSession.created_at.desc()).limit(max(1, limit))
        return list(self._session.scalars(stmt).all())

    def mark_running(self, *, session_id: uuid.UUID) -> ImportSession | None:
        import_session = self.get_session(session_id)
        if import_session is None:
            return None
        import_session.status = ImportSessionStatus.RUNNING
        import_session.started_at = datetime.now(timezone.utc)
        import_session.completed_at = None
        import_session.error_message = None
        return import_session

    def mark_completed(
        self,
        *,
        session_id: uuid.UUID,
        result_payload: dict[str, Any] | None = None,
    ) -> ImportSession | None:
        import_session = self.get_session(session_id)
        if import_session is None:
            return None
        import_session.status = ImportSessionStatus.COMPLETED
        import_session.completed_at = datetime.now(timezone.utc)
        import_session.result_payload = result_payload
        import_session.error_message = None
        return import_session

    def mark_failed(
        self,
        *,
        session_id: uuid.UUID,
        error_message: str,
        result_payload: dict[str, Any] | None = None,
    ) -> ImportSession | None:
        import_session = self.get_session(session_id)
        if import_session is None:
            return None
        import_session.status = ImportSessionStatus.FAILED
        import_session.completed_at = datetime.now(timezone.utc)
        import_session.error_message = error_message
        if result_payload is not None:
            import_session.result_payload = result_payload
        return import_session
