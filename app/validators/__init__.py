"""
app/validators package marker.
"""

from app.validators.mapping_validator import MappingErrorDetail, MappingValidator, SchemaMappingError
from app.validators.record_validator import (
    CustomerRecordValidator,
    RecordValidator,
    TransactionRecordValidator,
    validate_record,
)

__all__ = [
    "CustomerRecordValidator",
    "MappingErrorDetail",
    "MappingValidator",
    "RecordValidator",
    "SchemaMappingError",
    "TransactionRecordValidator",
    "validate_record",
]
