"""
app/mappers/record_mapper.py

Schema-driven mapping from parsed rows onto record fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from difflib import SequenceMatcher
from typing import Any, Mapping, Sequence

from app.domain.imports import CandidateRecord
from app.mappers.record_schemas import RecordSchema
from app.mappers.transforms import apply_transformation, is_blank
from app.validators.mapping_validator import MappingErrorDetail, MappingValidator

# Substring hits shorter than this are too ambiguous to count as fuzzy matches.
_MIN_SUBSTRING_LENGTH = 4


def normalize_header(header: str) -> str:
    """
    Normalize a column name for flexible matching.
    """

    return "".join(ch for ch in header.strip().lower() if ch.isalnum())


@dataclass(frozen=True)
class MappingResolution:
    """
    Final resolved mapping metadata.
    """

    target_to_source: dict[str, str]
    source_headers: tuple[str, ...]
    match_strategies: dict[str, str]
    unmapped_fields: tuple[str, ...] = ()
    transformations: dict[str, str] = field(default_factory=dict)


class RecordMapper:
    """
    Resolves file headers onto one record kind's fields and maps rows.
    """

    def __init__(
        self,
        schema: RecordSchema,
        *,
        validator: MappingValidator | None = None,
        fuzzy_threshold: float = 0.84,
    ) -> None:
        self._schema = schema
        self._aliases = schema.aliases()
        self._validator = validator or MappingValidator(
            expected_fields=schema.expected_fields,
            target_fields=schema.field_names,
        )
        self._fuzzy_threshold = max(0.0, min(1.0, fuzzy_threshold))

    @property
    def schema(self) -> RecordSchema:
        return self._schema

    def resolve_mapping(
        self,
        headers: Sequence[str],
        *,
        manual_overrides: Mapping[str, str] | None = None,
        transformations: Mapping[str, str] | None = None,
    ) -> MappingResolution:
        """
        Resolve field-to-header mapping from overrides, aliases and fuzzy matches.
        """

        source_headers = tuple(header for header in headers if header and header.strip())
        normalized_header_lookup: dict[str, str] = {}
        for header in source_headers:
            normalized = normalize_header(header)
            if normalized and normalized not in normalized_header_lookup:
                normalized_header_lookup[normalized] = header

        resolved: dict[str, str] = {}
        strategies: dict[str, str] = {}
        mapping_errors: list[MappingErrorDetail] = []

        for target_field, source_column in (manual_overrides or {}).items():
            target = target_field.strip()
            if not target or not source_column.strip():
                continue
            if target not in self._schema.field_names:
                mapping_errors.append(
                    MappingErrorDetail(
                        code="invalid_override_field",
                        message="Manual override contains unknown target field.",
                        target_field=target,
                        source_column=source_column,
                    )
                )
                continue

            matched_source = normalized_header_lookup.get(normalize_header(source_column))
            if matched_source is None:
                mapping_errors.append(
                    MappingErrorDetail(
                        code="override_source_not_found",
                        message="Manual override points to a column not present in file headers.",
                        target_field=target,
                        source_column=source_column,
                        context={"source_headers": list(source_headers)},
                    )
                )
                continue

            resolved[target] = matched_source
            strategies[target] = "override"

        used_headers = set(resolved.values())
        for target_field in self._schema.field_names:
            if target_field in resolved:
                continue
            exact = self._find_exact_or_alias_match(
                target_field=target_field,
                normalized_header_lookup=normalized_header_lookup,
            )
            if exact is not None and exact not in used_headers:
                resolved[target_field] = exact
                strategies[target_field] = "exact_or_alias"
                used_headers.add(exact)

        for target_field in self._schema.field_names:
            if target_field in resolved:
                continue
            fuzzy_match = self._find_best_fuzzy_match(
                target_field=target_field,
                normalized_header_lookup=normalized_header_lookup,
                used_headers=used_headers,
            )
            if fuzzy_match is not None:
                resolved[target_field] = fuzzy_match
                strategies[target_field] = "fuzzy"
                used_headers.add(fuzzy_match)

        cleaned_transformations = {
            key.strip(): value.strip()
            for key, value in (transformations or {}).items()
            if key.strip() and value.strip()
        }
        unmapped = self._validator.validate(
            mapping=resolved,
            source_headers=source_headers,
            transformations=cleaned_transformations,
            pre_errors=mapping_errors,
        )

        return MappingResolution(
            target_to_source=resolved,
            source_headers=source_headers,
            match_strategies=strategies,
            unmapped_fields=unmapped,
            transformations=cleaned_transformations,
        )

    def map_row(
        self,
        *,
        raw_row: Mapping[str, Any],
        mapping: MappingResolution,
    ) -> CandidateRecord:
        """
        Map one parsed row into a candidate record of this schema's kind.
        """

        fields: dict[str, Any] = {}
        for spec in self._schema.fields:
            source_column = mapping.target_to_source.get(spec.name)
            value = raw_row.get(source_column) if source_column is not None else None
            value = None if is_blank(value) else spec.transform(value)
            transformation = mapping.transformations.get(spec.name)
            if transformation and value is not None:
                value = apply_transformation(value, transformation)
            fields[spec.name] = value

        claimed = set(mapping.target_to_source.values())
        extras = {header: value for header, value in raw_row.items() if header not in claimed}
        return CandidateRecord(kind=self._schema.kind, fields=fields, extras=extras)

    def _find_exact_or_alias_match(
        self,
        *,
        target_field: str,
        normalized_header_lookup: Mapping[str, str],
    ) -> str | None:
        candidates = (target_field, *self._aliases.get(target_field, ()))
        for candidate in candidates:
            match = normalized_header_lookup.get(normalize_header(candidate))
            if match:
                return match
        return None

    def _find_best_fuzzy_match(
        self,
        *,
        target_field: str,
        normalized_header_lookup: Mapping[str, str],
        used_headers: set[str],
    ) -> str | None:
        alias_candidates = [target_field, *self._aliases.get(target_field, ())]
        normalized_candidates = [normalize_header(item) for item in alias_candidates if normalize_header(item)]
        if not normalized_candidates:
            return None

        best_header: str | None = None
        best_score = 0.0
        for header_norm, header_raw in normalized_header_lookup.items():
            if header_raw in used_headers:
                continue
            for candidate in normalized_candidates:
                score = SequenceMatcher(None, header_norm, candidate).ratio()
                if len(candidate) >= _MIN_SUBSTRING_LENGTH and candidate in header_norm:
                    score = max(score, 0.9)
                if score > best_score:
                    best_score = score
                    best_header = header_raw

        if best_header is not None and best_score >= self._fuzzy_threshold:
            return best_header
        return None
