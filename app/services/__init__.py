"""
app/services package marker.
"""

from app.services.import_job_service import ImportJobService, ImportPersistenceError, get_import_job_service
from app.services.import_orchestrator import (
    ImportFileError,
    ImportOrchestrator,
    UnknownRecordKindError,
    get_import_orchestrator,
)

__all__ = [
    "ImportFileError",
    "ImportJobService",
    "ImportOrchestrator",
    "ImportPersistenceError",
    "UnknownRecordKindError",
    "get_import_job_service",
    "get_import_orchestrator",
]
