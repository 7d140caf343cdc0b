"""
app/validators/mapping_validator.py

Validation for header-to-field mapping resolution.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from app.mappers.transforms import TRANSFORMATIONS


@dataclass(frozen=True)
class MappingErrorDetail:
    """
    Structured mapping error detail.
    """

    code: str
    message: str
    target_field: str | None = None
    source_column: str | None = None
    context: dict[str, Any] | None = None


class SchemaMappingError(ValueError):
    """
    Raised when a caller-supplied field mapping cannot be applied.
    """

    def __init__(self, *, message: str, errors: Sequence[MappingErrorDetail]) -> None:
        super().__init__(message)
        self.message = message
        self.errors = tuple(errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "errors": [
                {
                    "code": error.code,
                    "message": error.message,
                    "target_field": error.target_field,
                    "source_column": error.source_column,
                    "context": error.context,
                }
                for error in self.errors
            ],
        }


class MappingValidator:
    """
    Validates resolved field-to-header mappings.

    Unmapped expected fields are reported, not raised: rows missing them
    fail validation one by one instead of aborting the batch.
    """

    def __init__(
        self,
        *,
        expected_fields: Sequence[str],
        target_fields: Sequence[str],
    ) -> None:
        self._expected_fields = tuple(expected_fields)
        self._target_fields = tuple(target_fields)
        self._target_set = set(self._target_fields)

    def validate(
        self,
        *,
        mapping: Mapping[str, str],
        source_headers: Sequence[str],
        transformations: Mapping[str, str] | None = None,
        pre_errors: Sequence[MappingErrorDetail] | None = None,
    ) -> tuple[str, ...]:
        """
        Raise structured errors for an unusable mapping; return unmapped expected fields.
        """

        errors: list[MappingErrorDetail] = list(pre_errors or [])
        headers_set = set(source_headers)

        for target_field, source_column in mapping.items():
            if target_field not in self._target_set:
                errors.append(
                    MappingErrorDetail(
                        code="invalid_target_field",
                        message="Unknown target field in mapping.",
                        target_field=target_field,
                        source_column=source_column,
                    )
                )
            if source_column not in headers_set:
                errors.append(
                    MappingErrorDetail(
                        code="unknown_source_column",
                        message="Mapped source column does not exist in file headers.",
                        target_field=target_field,
                        source_column=source_column,
                    )
                )

        for target_field, name in (transformations or {}).items():
            if target_field not in self._target_set:
                errors.append(
                    MappingErrorDetail(
                        code="invalid_transformation_field",
                        message="Transformation targets an unknown field.",
                        target_field=target_field,
                    )
                )
            if name.strip().lower() not in TRANSFORMATIONS:
                errors.append(
                    MappingErrorDetail(
                        code="unknown_transformation",
                        message="Transformation is not supported.",
                        target_field=target_field,
                        context={"transformation": name, "supported": sorted(TRANSFORMATIONS)},
                    )
                )

        if errors:
            codes = ", ".join(sorted({error.code for error in errors}))
            raise SchemaMappingError(
                message=f"Field mapping validation failed: {codes}.",
                errors=errors,
            )

        return tuple(field for field in self._expected_fields if field not in mapping)
