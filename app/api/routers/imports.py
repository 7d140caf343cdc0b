"""
app/api/routers/imports.py

Tabular import HTTP endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_import_context, get_import_upload, get_tenant_scope
from app.config import ImportSettings, get_import_settings
from app.domain.imports import ImportContext, ImportResult, RecordKind, TenantScope
from app.repositories.import_store import SQLAlchemyImportStore
from app.schemas.imports import (
    ApiEnvelope,
    ImportPreviewResponse,
    ImportResultResponse,
    ImportSessionAcceptedResponse,
    ImportSessionListResponse,
    ImportSessionStatusResponse,
)
from app.services.import_job_service import ImportJobService, ImportPersistenceError, get_import_job_service
from app.services.import_orchestrator import (
    ImportFileError,
    ImportOrchestrator,
    UnknownRecordKindError,
    get_import_orchestrator,
)
from app.services.task_executor import FastAPIBackgroundTaskExecutor
from app.validators.mapping_validator import SchemaMappingError
from db.models.import_session import ImportSession
from db.session import get_db

router = APIRouter(prefix="/imports", tags=["imports"])


@router.post("/preview", response_model=ApiEnvelope[ImportPreviewResponse])
def preview_import(
    file: UploadFile = Depends(get_import_upload),
    record_kind: str = Query(default=RecordKind.TRANSACTION, description="Record kind to resolve the mapping for"),
    context: ImportContext = Depends(get_import_context),
    settings: ImportSettings = Depends(get_import_settings),
    orchestrator: ImportOrchestrator = Depends(get_import_orchestrator),
) -> ApiEnvelope[ImportPreviewResponse]:
    """
    Parse the first rows of a file and show how its headers map onto a record kind.
    """

    try:
        file_bytes = file.file.read()
        parsed = orchestrator.parse_upload(
            file_bytes=file_bytes,
            file_name=file.filename or "",
            max_rows=settings.preview_rows,
        )
        mapping = orchestrator.resolve_mapping(parsed_file=parsed, record_kind=record_kind, context=context)
    except (ImportFileError, UnknownRecordKindError, SchemaMappingError) as exc:
        raise _to_http_error(exc) from exc
    finally:
        file.file.close()

    return ApiEnvelope(
        success=True,
        data=ImportPreviewResponse(
            record_kind=record_kind,
            headers=parsed.headers,
            rows=parsed.rows,
            total_rows=parsed.total_rows,
            errors=parsed.errors,
            mapping=mapping.target_to_source,
            match_strategies=mapping.match_strategies,
            unmapped_fields=list(mapping.unmapped_fields),
        ),
    )


@router.get("/sessions", response_model=ApiEnvelope[ImportSessionListResponse])
def list_import_sessions(
    status_filter: str | None = Query(default=None, alias="status", description="Optional status filter"),
    limit: int = Query(default=50, ge=1, le=500),
    scope: TenantScope = Depends(get_tenant_scope),
    db: Session = Depends(get_db),
    job_service: ImportJobService = Depends(get_import_job_service),
) -> ApiEnvelope[ImportSessionListResponse]:
    sessions = job_service.list_sessions(
        db=db,
        tenant_id=scope.tenant_id,
        is_live=scope.is_live,
        limit=limit,
        status=status_filter,
    )
    return ApiEnvelope(
        success=True,
        data=ImportSessionListResponse(sessions=[_to_session_response(item) for item in sessions]),
    )


@router.get("/sessions/{session_id}", response_model=ApiEnvelope[ImportSessionStatusResponse])
def get_import_session(
    session_id: UUID,
    scope: TenantScope = Depends(get_tenant_scope),
    db: Session = Depends(get_db),
    job_service: ImportJobService = Depends(get_import_job_service),
) -> ApiEnvelope[ImportSessionStatusResponse]:
    import_session = job_service.get_session_status(db=db, session_id=session_id, tenant_id=scope.tenant_id)
    if import_session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Import session not found: {session_id}",
        )
    return ApiEnvelope(success=True, data=_to_session_response(import_session))


@router.post("/{record_kind}", response_model=ApiEnvelope[ImportResultResponse])
def import_records(
    record_kind: str,
    background_tasks: BackgroundTasks,
    file: UploadFile = Depends(get_import_upload),
    context: ImportContext = Depends(get_import_context),
    db: Session = Depends(get_db),
    orchestrator: ImportOrchestrator = Depends(get_import_orchestrator),
) -> ApiEnvelope[ImportResultResponse]:
    """
    Import one file synchronously and return the batch summary.
    """

    try:
        result = orchestrator.import_file(
            file_bytes=file.file.read(),
            file_name=file.filename or "",
            record_kind=record_kind,
            context=context,
            store=SQLAlchemyImportStore(session=db),
            executor=FastAPIBackgroundTaskExecutor(background_tasks),
        )
    except (ImportFileError, UnknownRecordKindError, SchemaMappingError) as exc:
        raise _to_http_error(exc) from exc
    finally:
        file.file.close()

    return ApiEnvelope(
        success=result.success,
        data=ImportResultResponse.model_validate(result.to_dict()),
        message=_summary_message(result),
    )


@router.post(
    "/{record_kind}/jobs",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=ApiEnvelope[ImportSessionAcceptedResponse],
)
def trigger_import_job(
    record_kind: str,
    background_tasks: BackgroundTasks,
    file: UploadFile = Depends(get_import_upload),
    context: ImportContext = Depends(get_import_context),
    db: Session = Depends(get_db),
    job_service: ImportJobService = Depends(get_import_job_service),
) -> ApiEnvelope[ImportSessionAcceptedResponse]:
    try:
        import_session = job_service.trigger_import(
            db=db,
            executor=FastAPIBackgroundTaskExecutor(background_tasks),
            file_bytes=file.file.read(),
            file_name=file.filename or "",
            record_kind=record_kind,
            context=context,
        )
    except (ImportFileError, UnknownRecordKindError) as exc:
        raise _to_http_error(exc) from exc
    except ImportPersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to create import session.",
        ) from exc
    finally:
        file.file.close()

    return ApiEnvelope(
        success=True,
        data=ImportSessionAcceptedResponse(
            session_id=import_session.id,
            record_kind=import_session.record_kind,
            status=import_session.status,
            created_at=import_session.created_at,
        ),
        message="Import queued.",
    )


def _to_http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, SchemaMappingError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.to_dict())
    if isinstance(exc, ImportFileError):
        return HTTPException(
            status_code=exc.status_code,
            detail={"message": str(exc), "errors": list(exc.errors)},
        )
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _summary_message(result: ImportResult) -> str:
    message = f"Imported {result.created + result.updated} of {result.total_rows} rows; {result.failed} failed."
    if result.cancelled:
        message += " Import was cancelled."
    return message


def _to_session_response(import_session: ImportSession) -> ImportSessionStatusResponse:
    return ImportSessionStatusResponse(
        session_id=import_session.id,
        record_kind=import_session.record_kind,
        status=import_session.status,
        file_name=import_session.file_name,
        file_size=import_session.file_size,
        created_at=import_session.created_at,
        updated_at=import_session.updated_at,
        started_at=import_session.started_at,
        completed_at=import_session.completed_at,
        result_payload=import_session.result_payload,
        error_message=import_session.error_message,
    )
