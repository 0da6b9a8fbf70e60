"""Map OpenAPI schemas to Rust types and extract struct fields.

Handles:
- $ref resolution (nullability is read from the target schema)
- x-rust-type overrides on any schema node
- x-rust-attrs custom attribute lists
- date-time / date / uuid string formats
- inline string enums (named after their field)
- additionalProperties-only objects (HashMap aliases)
- OpenAPI 3.1 type lists with "null"
"""

from __future__ import annotations

import json
import logging
from typing import Any

from .ir import EnumModel, Field, ModelType
from .loader import ref_name, resolve_ref
from .naming import to_pascal_case

logger = logging.getLogger(__name__)

X_RUST_TYPE = "x-rust-type"
X_RUST_ATTRS = "x-rust-attrs"

ANY_JSON = "serde_json::Value"
MAP_TEMPLATE = "std::collections::HashMap<String, {}>"

_STRING_FORMATS: dict[str, str] = {
    "date-time": "DateTime<Utc>",
    "date": "NaiveDate",
    "uuid": "Uuid",
}

_PRIMITIVES: dict[str, str] = {
    "integer": "i64",
    "number": "f64",
    "boolean": "bool",
}


def schema_kind(schema: dict[str, Any]) -> str | None:
    """Classify a schema node: reference, allOf/oneOf/anyOf, or its type."""
    if "$ref" in schema:
        return "reference"
    for key in ("allOf", "oneOf", "anyOf"):
        if key in schema:
            return key

    schema_type = schema.get("type")
    if isinstance(schema_type, list):
        schema_type = next((t for t in schema_type if t != "null"), None)
    if schema_type is None and "properties" in schema:
        return "object"
    return schema_type if isinstance(schema_type, str) else None


def is_nullable(schema: dict[str, Any]) -> bool:
    schema_type = schema.get("type")
    if isinstance(schema_type, list) and "null" in schema_type:
        return True
    return schema.get("nullable") is True


def description_of(schema: dict[str, Any]) -> str | None:
    description = schema.get("description")
    return description if isinstance(description, str) and description else None


def enum_values(schema: dict[str, Any]) -> list[str]:
    """Return the enumeration literals of a schema as strings."""
    values = schema.get("enum")
    if not isinstance(values, list):
        return []
    return [v if isinstance(v, str) else json.dumps(v) for v in values if v is not None]


def is_string_enum(schema: dict[str, Any]) -> bool:
    return schema_kind(schema) == "string" and bool(enum_values(schema))


def is_map_only(schema: dict[str, Any]) -> bool:
    """True for an object with no properties and an additionalProperties schema."""
    if schema.get("properties"):
        return False
    extra = schema.get("additionalProperties")
    return extra is not None and extra is not False


def map_type_name(document: dict[str, Any], schema: dict[str, Any]) -> str:
    """HashMap type for an additionalProperties-only object."""
    extra = schema.get("additionalProperties")
    if isinstance(extra, dict) and extra:
        inner, _ = map_type(document, extra)
    else:
        inner = ANY_JSON
    return MAP_TEMPLATE.format(inner)


def extract_custom_type(schema: dict[str, Any]) -> str | None:
    """Read the x-rust-type override from a schema node."""
    value = schema.get(X_RUST_TYPE)
    if value is None:
        return None
    if isinstance(value, str):
        return value
    logger.warning("%s should be a string, got: %r", X_RUST_TYPE, value)
    return None


def extract_custom_attrs(schema: dict[str, Any]) -> tuple[str, ...] | None:
    """Read the x-rust-attrs list from a schema node; empty means absent."""
    value = schema.get(X_RUST_ATTRS)
    if value is None:
        return None
    if not isinstance(value, list):
        logger.warning("%s should be an array of strings, got: %r", X_RUST_ATTRS, value)
        return None

    attrs = []
    for item in value:
        if isinstance(item, str):
            attrs.append(item)
        else:
            logger.warning("Ignoring non-string %s entry: %r", X_RUST_ATTRS, item)
    return tuple(attrs) or None


def _map_reference(document: dict[str, Any], ref: str) -> tuple[str, str]:
    target = resolve_ref(document, ref)
    if target is None:
        return ANY_JSON, "unresolved"

    type_name = to_pascal_case(ref_name(ref))
    if schema_kind(target) == "oneOf":
        return type_name, "oneOf"
    return type_name, "reference"


def map_type(
    document: dict[str, Any],
    schema: dict[str, Any],
    field_name: str | None = None,
) -> tuple[str, str]:
    """Resolve a schema node to a (Rust type, format tag) pair.

    Inline string enums are named after ``field_name``; without one they
    fall back to String.
    """
    custom_type = extract_custom_type(schema)
    if custom_type is not None:
        return custom_type, "custom"

    kind = schema_kind(schema)

    if kind == "reference":
        return _map_reference(document, schema["$ref"])

    if kind == "string":
        if enum_values(schema):
            if field_name:
                return to_pascal_case(field_name), "enum"
            return "String", "enum"
        fmt = schema.get("format")
        if not isinstance(fmt, str) or not fmt:
            return "String", "string"
        native = _STRING_FORMATS.get(fmt.lower())
        if native:
            return native, fmt.lower()
        return "String", fmt

    if kind in _PRIMITIVES:
        return _PRIMITIVES[kind], kind

    if kind == "array":
        items = schema.get("items")
        if not isinstance(items, dict) or not items:
            return f"Vec<{ANY_JSON}>", "array"
        inner, fmt = map_type(document, items)
        return f"Vec<{inner}>", fmt

    if kind == "object":
        if is_map_only(schema):
            return map_type_name(document, schema), "map"
        return ANY_JSON, "object"

    if kind == "allOf":
        members = schema["allOf"]
        if isinstance(members, list) and len(members) == 1 and isinstance(members[0], dict) \
                and "$ref" in members[0]:
            return _map_reference(document, members[0]["$ref"])

    logger.debug("No type mapping for schema kind %r", kind)
    return ANY_JSON, "unknown"


def extract_field(
    document: dict[str, Any],
    name: str,
    schema: dict[str, Any],
    is_required: bool,
) -> tuple[Field, ModelType | None]:
    """Build the field for one property, plus its inline enum model if any."""
    field_type, fmt = map_type(document, schema, field_name=name)
    inline_model: ModelType | None = None

    if "$ref" in schema:
        target = resolve_ref(document, schema["$ref"])
        nullable = target is not None and is_nullable(target)
    else:
        nullable = is_nullable(schema)
        if fmt == "enum" and is_string_enum(schema):
            inline_model = EnumModel(
                name=field_type,
                variants=tuple(enum_values(schema)),
                description=description_of(schema),
                custom_attrs=extract_custom_attrs(schema),
            )
        elif schema_kind(schema) == "allOf" and fmt in ("reference", "oneOf"):
            target = resolve_ref(document, schema["allOf"][0]["$ref"])
            nullable = nullable or (target is not None and is_nullable(target))

    field = Field(
        name=name,
        field_type=field_type,
        format=fmt,
        is_required=is_required,
        is_nullable=nullable,
        description=description_of(schema),
    )
    return field, inline_model


def extract_fields(
    document: dict[str, Any],
    schema: dict[str, Any],
) -> tuple[list[Field], list[ModelType]]:
    """Extract the ordered fields of an object schema.

    Returns the fields and any inline models (enums) discovered on the way.
    """
    properties = schema.get("properties")
    if not isinstance(properties, dict):
        properties = {}
    required = schema.get("required") or []
    required_names = {r for r in required if isinstance(r, str)} if isinstance(required, list) else set()

    fields: list[Field] = []
    inline_models: list[ModelType] = []
    for prop_name, prop_schema in properties.items():
        if not isinstance(prop_schema, dict):
            logger.debug("Skipping non-schema property %s: %r", prop_name, prop_schema)
            continue
        field, inline_model = extract_field(
            document, prop_name, prop_schema, prop_name in required_names,
        )
        fields.append(field)
        if inline_model is not None:
            inline_models.append(inline_model)

    return fields, inline_models
