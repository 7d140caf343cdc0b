"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation.
"""

from __future__ import annotations

import json

from fastapi import File, Form, Header, HTTPException, UploadFile, status

from app.domain.imports import ImportContext, TenantScope

IMPORT_EXTENSIONS = (".csv", ".xlsx", ".xls")
_LIVE_ENVIRONMENTS = {"live", "production", "prod"}
_TEST_ENVIRONMENTS = {"test", "sandbox"}


def get_import_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Accept CSV and Excel uploads by file extension.
    """

    filename = (file.filename or "").strip().lower()
    if not filename.endswith(IMPORT_EXTENSIONS):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only CSV, XLSX and XLS files are allowed.",
        )
    return file


def get_tenant_scope(
    x_tenant_id: int = Header(..., alias="X-Tenant-Id"),
    x_environment: str = Header(default="live", alias="X-Environment"),
) -> TenantScope:
    environment = x_environment.strip().lower()
    if environment in _LIVE_ENVIRONMENTS:
        return TenantScope(tenant_id=x_tenant_id, is_live=True)
    if environment in _TEST_ENVIRONMENTS:
        return TenantScope(tenant_id=x_tenant_id, is_live=False)
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=f"Unknown environment '{x_environment}'. Use 'live' or 'test'.",
    )


def _parse_json_object(raw: str | None, *, field_name: str) -> dict[str, str]:
    if raw is None or not raw.strip():
        return {}
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{field_name} must be a JSON object.",
        ) from exc
    if not isinstance(payload, dict):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{field_name} must be a JSON object.",
        )
    return {str(key): str(value) for key, value in payload.items()}


def get_import_context(
    x_tenant_id: int = Header(..., alias="X-Tenant-Id"),
    x_environment: str = Header(default="live", alias="X-Environment"),
    x_user_id: int | None = Header(default=None, alias="X-User-Id"),
    file_id: int | None = Form(default=None),
    field_mapping: str | None = Form(default=None, description="JSON object of target field -> source column"),
    transformations: str | None = Form(default=None, description="JSON object of target field -> transformation"),
) -> ImportContext:
    """
    Build the per-request import context from headers and form fields.
    """

    return ImportContext(
        scope=get_tenant_scope(x_tenant_id=x_tenant_id, x_environment=x_environment),
        created_by=x_user_id,
        file_id=file_id,
        field_overrides=_parse_json_object(field_mapping, field_name="field_mapping"),
        transformations=_parse_json_object(transformations, field_name="transformations"),
    )
