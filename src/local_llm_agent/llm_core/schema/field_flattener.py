"""Flattening of response schemas into the leaf fields rendered into prompts."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import jsonref  # type: ignore

from .schema_validator import SchemaValidator
from ..logger import get_logger

logger = get_logger(__name__)

ANY_TYPE = "any"

_JSON_TYPES = {"string", "number", "integer", "boolean", "array", "object", "null"}


@dataclass(frozen=True)
class SchemaField:
    """A leaf field of a response schema.

    Attributes:
        path: Dotted path of the field; ``[]`` marks the elements of an array of objects.
        type: Primitive type label, ``any`` when the type is unknown.
        required: Whether the field must be present.
        enum: Every permitted literal value for closed value sets.
        description: Optional field description from the schema.
    """

    path: str
    type: str
    required: bool
    enum: Optional[Tuple[Any, ...]] = None
    description: Optional[str] = None


def resolve_json_schema(raw_schema: Dict[str, Any]) -> Dict[str, Any]:
    """Inline ``$ref`` pointers with jsonref.

    Recursive schemas cannot be inlined; they are returned unchanged and every
    remaining ``$ref`` renders as an ``object`` leaf.
    """
    if SchemaValidator.has_recursive_refs(raw_schema):
        logger.warning("Recursive response schema detected; nested references are rendered as 'object'.")
        return raw_schema
    # proxies=False ensures we get a plain dict back, not JsonRef objects
    return jsonref.replace_refs(raw_schema, proxies=False)


def flatten_schema_fields(schema: Any) -> List[SchemaField]:
    """Flatten a response schema into its leaf fields.

    Args:
        schema: A pydantic model / TypeAdapter-compatible type, or a JSON schema dict.

    Returns:
        Leaf fields in declaration order. Empty when the top level is not an object with properties.
    """
    if isinstance(schema, dict):
        raw_schema = schema
    else:
        raw_schema = SchemaValidator(schema).json_schema()

    resolved = _simplify(resolve_json_schema(raw_schema))
    if "$ref" in resolved and "properties" not in resolved:
        # Recursive models keep their root as a reference into $defs
        resolved = _simplify(_lookup_ref(resolved["$ref"], raw_schema))
    if not isinstance(resolved.get("properties"), dict):
        return []

    fields: List[SchemaField] = []
    _walk_object(resolved, prefix="", fields=fields)
    return fields


def _walk_object(node: Dict[str, Any], prefix: str, fields: List[SchemaField]) -> None:
    required = set(node.get("required", []))
    for name, child in node.get("properties", {}).items():
        path = f"{prefix}.{name}" if prefix else name
        _walk(_simplify(child), path, name in required, fields)


def _walk(node: Dict[str, Any], path: str, required: bool, fields: List[SchemaField]) -> None:
    if isinstance(node.get("properties"), dict) and node["properties"]:
        _walk_object(node, path, fields)
        return

    if node.get("type") == "array" and isinstance(node.get("items"), dict):
        items = _simplify(node["items"])
        if isinstance(items.get("properties"), dict) and items["properties"]:
            _walk_object(items, f"{path}[]", fields)
            return

    fields.append(
        SchemaField(
            path=path,
            type=type_label(node),
            required=required,
            enum=_enum_values(node),
            description=node.get("description"),
        )
    )


def type_label(node: Dict[str, Any]) -> str:
    """Primitive type label of a JSON schema node, ``any`` when unknown."""
    if "$ref" in node:
        return "object"

    if "anyOf" in node or "oneOf" in node:
        labels = []
        for option in node.get("anyOf") or node.get("oneOf") or []:
            label = type_label(_simplify(option)) if isinstance(option, dict) else ANY_TYPE
            if label == ANY_TYPE:
                return ANY_TYPE
            if label not in labels:
                labels.append(label)
        return " or ".join(labels) if labels else ANY_TYPE

    enum = _enum_values(node)
    node_type = node.get("type")
    if isinstance(node_type, list):
        non_null = [t for t in node_type if t != "null"]
        node_type = non_null[0] if len(non_null) == 1 else None
    if node_type is None and enum:
        node_type = _literal_type(enum[0])

    if node_type not in _JSON_TYPES:
        return ANY_TYPE

    if node_type == "array" and isinstance(node.get("items"), dict):
        item_label = type_label(_simplify(node["items"]))
        return f"array of {item_label}"
    return node_type


def _simplify(node: Any) -> Dict[str, Any]:
    """Collapse ``Optional`` unions and single-entry ``allOf`` wrappers."""
    if not isinstance(node, dict):
        return {}

    if "allOf" in node and len(node["allOf"]) == 1 and isinstance(node["allOf"][0], dict):
        merged = {k: v for k, v in node.items() if k != "allOf"}
        merged.update(node["allOf"][0])
        return _simplify(merged)

    for key in ("anyOf", "oneOf"):
        options = node.get(key)
        if isinstance(options, list):
            non_null = [o for o in options if not (isinstance(o, dict) and o.get("type") == "null")]
            if len(non_null) == 1 and isinstance(non_null[0], dict):
                merged = {k: v for k, v in node.items() if k != key}
                merged.update(non_null[0])
                if "description" in node:
                    merged["description"] = node["description"]
                return _simplify(merged)
    return node


def _lookup_ref(ref: Any, root: Dict[str, Any]) -> Dict[str, Any]:
    if not isinstance(ref, str) or not ref.startswith("#/"):
        return {}
    target: Any = root
    for part in ref[2:].split("/"):
        target = target.get(part) if isinstance(target, dict) else None
    return target if isinstance(target, dict) else {}


def _enum_values(node: Dict[str, Any]) -> Optional[Tuple[Any, ...]]:
    if isinstance(node.get("enum"), list):
        return tuple(node["enum"])
    if "const" in node:
        return (node["const"],)
    return None


def _literal_type(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    return None
