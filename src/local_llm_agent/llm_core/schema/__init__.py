"""Response schema validation and description."""

from .schema_validator import SchemaValidator, ValidationOutcome, FieldError
from .field_flattener import SchemaField, flatten_schema_fields, resolve_json_schema, type_label

__all__ = [
    "SchemaValidator",
    "ValidationOutcome",
    "FieldError",
    "SchemaField",
    "flatten_schema_fields",
    "resolve_json_schema",
    "type_label",
]
