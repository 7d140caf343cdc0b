"""
app/domain package marker.
"""

from app.domain.imports import (
    CandidateRecord,
    DuplicateCheck,
    FileStats,
    FormatValidation,
    ImportContext,
    ImportResult,
    ImportRowError,
    ImportRowWarning,
    ParsedFile,
    ParseOptions,
    RecordKind,
    TenantScope,
    ValidationResult,
)

__all__ = [
    "CandidateRecord",
    "DuplicateCheck",
    "FileStats",
    "FormatValidation",
    "ImportContext",
    "ImportResult",
    "ImportRowError",
    "ImportRowWarning",
    "ParsedFile",
    "ParseOptions",
    "RecordKind",
    "TenantScope",
    "ValidationResult",
]
