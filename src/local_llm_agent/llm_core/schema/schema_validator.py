"""Schema validation capability for the model's final JSON answer.

Response schemas are anything pydantic can build a ``TypeAdapter`` for: a
``BaseModel`` subclass, a ``TypedDict``, a dataclass, ``Dict[str, int]`` and so on.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, Set, TypeVar

from pydantic import TypeAdapter, ValidationError
from pydantic.json_schema import GenerateJsonSchema, JsonSchemaValue
from pydantic_core import CoreSchema

from ..logger import get_logger

logger = get_logger(__name__)

SchemaT = TypeVar("SchemaT")


@dataclass(frozen=True)
class FieldError:
    """A single field-level validation error."""

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}" if self.path else self.message


@dataclass(frozen=True)
class ValidationOutcome(Generic[SchemaT]):
    """Result of validating a candidate value: the value on success, every field error otherwise."""

    success: bool
    value: Optional[SchemaT] = None
    errors: List[FieldError] = field(default_factory=list)

    def error_text(self) -> str:
        return "\n".join(str(e) for e in self.errors)


class _LenientJsonSchema(GenerateJsonSchema):
    """Renders types without a JSON schema representation as an empty (``any``) schema."""

    def handle_invalid_for_json_schema(self, schema: CoreSchema, error_info: str) -> JsonSchemaValue:
        logger.debug(f"No JSON schema for part of the response schema ({error_info}); rendering it as 'any'.")
        return {}


class SchemaValidator(Generic[SchemaT]):
    """
    Validates candidate values against a response schema and exposes its JSON schema.
    """

    def __init__(self, schema: Any, strict: bool = False) -> None:
        """
        Args:
            schema: A pydantic model or any type accepted by ``pydantic.TypeAdapter``.
            strict: Use pydantic's strict mode (no "30" -> 30 coercion).
        """
        self.schema = schema
        self.strict = strict
        self._adapter: TypeAdapter[SchemaT] = TypeAdapter(schema)

    def validate(self, candidate: Any) -> ValidationOutcome[SchemaT]:
        """Validate a decoded JSON value.

        Args:
            candidate: The value decoded from the model's JSON answer.

        Returns:
            The validated value, or every field-level error reported by pydantic.
        """
        try:
            value = self._adapter.validate_python(candidate, strict=self.strict)
        except ValidationError as exc:
            errors = [
                FieldError(path=".".join(str(part) for part in err["loc"]), message=err["msg"])
                for err in exc.errors()
            ]
            return ValidationOutcome(success=False, errors=errors)
        return ValidationOutcome(success=True, value=value)

    def json_schema(self) -> Dict[str, Any]:
        """JSON schema of the response schema; unrepresentable parts become ``{}``."""
        return self._adapter.json_schema(schema_generator=_LenientJsonSchema)

    @staticmethod
    def has_recursive_refs(schema: Dict[str, Any]) -> bool:
        """
        Checks if the schema contains recursive references by traversing the graph.

        Args:
            schema: The JSON schema to check.

        Returns:
            True if a ``$ref`` cycle exists.
        """
        defs = schema.get("$defs", {}) or schema.get("definitions", {})

        def check(node: Any, path: Set[str]) -> bool:
            if isinstance(node, dict):
                if "$ref" in node:
                    ref = node["$ref"]
                    if ref in path:
                        return True

                    # If it's a local ref, follow it
                    # e.g. #/$defs/MyModel
                    if ref.startswith("#"):
                        parts = ref.split("/")
                        if len(parts) >= 3:
                            def_name = parts[-1]
                            if def_name in defs:
                                return check(defs[def_name], path | {ref})
                    return False

                return any(check(v, path) for k, v in node.items() if k not in ("$defs", "definitions"))
            if isinstance(node, list):
                return any(check(item, path) for item in node)
            return False

        return check(schema, set())
