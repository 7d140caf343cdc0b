"""
app/domain/imports.py

Domain models shared by the parse, validate and commit stages of an import.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


class RecordKind:
    CUSTOMER = "customer"
    TRANSACTION = "transaction"

    ALL = (CUSTOMER, TRANSACTION)


@dataclass(frozen=True)
class ParseOptions:
    """
    Knobs accepted by the tabular parser.
    """

    skip_empty_lines: bool = True
    trim_headers: bool = True
    max_rows: int | None = None
    encoding: str = "utf8"


@dataclass(frozen=True)
class ParsedFile:
    """
    Uniform result of parsing one uploaded file.

    `rows` may be capped by `ParseOptions.max_rows`; `total_rows` never is.
    """

    headers: list[str] = field(default_factory=list)
    rows: list[dict[str, Any]] = field(default_factory=list)
    total_rows: int = 0
    errors: list[str] = field(default_factory=list)

    @classmethod
    def failed(cls, *messages: str) -> ParsedFile:
        return cls(headers=[], rows=[], total_rows=0, errors=list(messages))


@dataclass(frozen=True)
class FileStats:
    total_rows: int
    total_columns: int
    file_size: int


@dataclass(frozen=True)
class FormatValidation:
    is_valid: bool
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CandidateRecord:
    """
    One row interpreted as a record of a given kind.

    `fields` holds the schema's target fields (absent values are None),
    `extras` keeps source columns the schema did not claim, and
    `lookup_errors` carries reference-resolution failures.
    """

    kind: str
    fields: dict[str, Any]
    extras: dict[str, Any] = field(default_factory=dict)
    lookup_errors: tuple[str, ...] = ()

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    is_duplicate: bool = False
    duplicate_reason: str | None = None


@dataclass(frozen=True)
class DuplicateCheck:
    """
    Outcome of checking one duplicate key against the store.
    """

    key: str
    existing_count: int
    reason: str | None = None

    @property
    def is_duplicate(self) -> bool:
        return self.existing_count > 0


@dataclass(frozen=True)
class TenantScope:
    """
    Tenant and environment pair every persisted read and write is scoped by.
    """

    tenant_id: int
    is_live: bool = True


@dataclass(frozen=True)
class ImportContext:
    """
    Caller-supplied context for one import batch.
    """

    scope: TenantScope
    created_by: int | None = None
    file_id: int | None = None
    import_session_id: str | None = None
    field_overrides: dict[str, str] = field(default_factory=dict)
    transformations: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ImportRowError:
    row: int
    errors: list[str]
    data: dict[str, Any]


@dataclass(frozen=True)
class ImportRowWarning:
    row: int
    warnings: list[str]
    is_duplicate: bool = False
    duplicate_reason: str | None = None


@dataclass(frozen=True)
class ImportResult:
    """
    End-of-batch import summary.
    """

    success: bool
    total_rows: int
    processed: int
    created: int
    updated: int
    failed: int
    errors: list[ImportRowError] = field(default_factory=list)
    file_id: int | None = None
    duplicates: int = 0
    warnings: list[ImportRowWarning] = field(default_factory=list)
    cancelled: bool = False

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        if self.file_id is None:
            payload.pop("file_id")
        return payload
