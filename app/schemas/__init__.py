"""
app/schemas package marker.
"""

from app.schemas.imports import (
    ApiEnvelope,
    ImportPreviewResponse,
    ImportResultResponse,
    ImportRowErrorResponse,
    ImportRowWarningResponse,
    ImportSessionAcceptedResponse,
    ImportSessionListResponse,
    ImportSessionStatusResponse,
)

__all__ = [
    "ApiEnvelope",
    "ImportPreviewResponse",
    "ImportResultResponse",
    "ImportRowErrorResponse",
    "ImportRowWarningResponse",
    "ImportSessionAcceptedResponse",
    "ImportSessionListResponse",
    "ImportSessionStatusResponse",
]
