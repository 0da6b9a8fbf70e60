"""Resolve allOf / oneOf / anyOf compositions.

allOf merges the fields of every member, in document order, and marks a
field required when any member lists it as required.

oneOf / anyOf either collapse to a single enum (when every member is a
plain string or integer enumeration) or become a list of union variants,
with a nested struct per inline object member.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from .ir import EnumModel, Field, ModelType, StructModel, UnionVariant
from .loader import deref, ref_name, resolve_ref
from .naming import to_pascal_case
from .schema_parser import (
    ANY_JSON,
    description_of,
    enum_values,
    extract_custom_attrs,
    extract_fields,
    is_map_only,
    map_type,
    schema_kind,
)

logger = logging.getLogger(__name__)


def _resolve_member(
    document: dict[str, Any],
    member: Any,
    trail: frozenset[str],
) -> tuple[dict[str, Any] | None, frozenset[str]]:
    """Resolve one allOf member, refusing to revisit a reference on the same path."""
    if not isinstance(member, dict):
        return None, trail
    if "$ref" not in member:
        return member, trail

    ref = member["$ref"]
    if not isinstance(ref, str):
        logger.warning("allOf member has a non-string $ref: %r", ref)
        return None, trail
    if ref in trail:
        logger.debug("Skipping cyclic allOf reference %s", ref)
        return None, trail
    resolved = resolve_ref(document, ref)
    if resolved is None:
        logger.warning("allOf member %s contributes no fields", ref)
    return resolved, trail | {ref}


def _members(schema: dict[str, Any], key: str) -> list[Any]:
    members = schema.get(key)
    return members if isinstance(members, list) else []


def _collect_required(
    document: dict[str, Any],
    members: list[Any],
    trail: frozenset[str],
) -> set[str]:
    required: set[str] = set()
    for member in members:
        schema, member_trail = _resolve_member(document, member, trail)
        if schema is None:
            continue
        kind = schema_kind(schema)
        if kind == "object":
            names = schema.get("required") or []
            if isinstance(names, list):
                required.update(n for n in names if isinstance(n, str))
        elif kind == "allOf":
            required |= _collect_required(document, _members(schema, "allOf"), member_trail)
    return required


def _anonymous_enum(schema: dict[str, Any], kind: str) -> EnumModel:
    title = schema.get("title")
    if isinstance(title, str) and to_pascal_case(title):
        name = to_pascal_case(title)
    else:
        name = "AnonymousStringEnum" if kind == "string" else "AnonymousIntEnum"

    values = enum_values(schema)
    if kind == "integer":
        values = [f"Value{v}" for v in values]
    return EnumModel(
        name=name,
        variants=tuple(values),
        description=description_of(schema),
        custom_attrs=extract_custom_attrs(schema),
    )


def _collect_fields(
    document: dict[str, Any],
    members: list[Any],
    trail: frozenset[str],
) -> tuple[list[Field], list[ModelType]]:
    fields: list[Field] = []
    models: list[ModelType] = []
    for member in members:
        schema, member_trail = _resolve_member(document, member, trail)
        if schema is None:
            continue

        kind = schema_kind(schema)
        if kind == "object":
            member_fields, inline_models = extract_fields(document, schema)
            fields.extend(member_fields)
            models.extend(inline_models)
        elif kind == "allOf":
            nested_fields, nested_models = _collect_fields(
                document, _members(schema, "allOf"), member_trail,
            )
            fields.extend(nested_fields)
            models.extend(nested_models)
        elif kind in ("string", "integer") and enum_values(schema) and "$ref" not in member:
            models.append(_anonymous_enum(schema, kind))
        else:
            logger.debug("allOf member of kind %r contributes no fields", kind)
    return fields, models


def resolve_all_of_fields(
    document: dict[str, Any],
    members: list[Any],
) -> tuple[list[Field], list[ModelType]]:
    """Merge the fields of every allOf member.

    Same-named fields from different members are all kept; each one is
    marked required when any member requires that name.
    """
    required = _collect_required(document, members, frozenset())
    fields, models = _collect_fields(document, members, frozenset())
    fields = [
        replace(field, is_required=True) if field.name in required else field
        for field in fields
    ]
    return fields, models


def collapse_enum(document: dict[str, Any], members: list[Any]) -> list[str] | None:
    """Return the merged enum literals when every member is a simple enum.

    Integer literals become ``Value<N>``. Returns None as soon as one
    member is anything else.
    """
    values: set[str] = set()
    for member in members:
        schema = deref(document, member) if isinstance(member, dict) else None
        if schema is None:
            return None

        kind = schema_kind(schema)
        literals = enum_values(schema)
        if not literals or kind not in ("string", "integer"):
            return None
        if kind == "integer":
            literals = [f"Value{v}" for v in literals]
        values.update(literals)

    return sorted(values) or None


def resolve_union_variants(
    document: dict[str, Any],
    name: str,
    members: list[Any],
) -> tuple[list[UnionVariant], list[ModelType]]:
    """Build one variant per oneOf/anyOf member, in document order.

    References become variants named after their target. Inline objects get
    a nested struct named ``<Union>Variant<index>``; other inline members
    carry their mapped type directly.
    """
    union_name = to_pascal_case(name)
    variants: list[UnionVariant] = []
    models: list[ModelType] = []
    seen: set[str] = set()

    for index, member in enumerate(members):
        if not isinstance(member, dict):
            continue

        if "$ref" in member:
            if resolve_ref(document, member["$ref"]) is None:
                continue
            variant_name = to_pascal_case(ref_name(member["$ref"]))
            variant = UnionVariant(name=variant_name, type_name=variant_name)
        else:
            variant_name = f"Variant{index}"
            if schema_kind(member) == "object" and not is_map_only(member):
                fields, inline_models = extract_fields(document, member)
                models.extend(inline_models)
                if fields:
                    struct_name = f"{union_name}{variant_name}"
                    models.append(StructModel(
                        name=struct_name,
                        fields=tuple(fields),
                        description=description_of(member),
                        custom_attrs=extract_custom_attrs(member),
                    ))
                    variant = UnionVariant(name=variant_name, type_name=struct_name)
                else:
                    variant = UnionVariant(name=variant_name, type_name=ANY_JSON)
            else:
                type_name, _ = map_type(document, member)
                variant = UnionVariant(name=variant_name, type_name=type_name)

        if variant.name in seen:
            logger.debug("Skipping duplicate variant %s in %s", variant.name, union_name)
            continue
        seen.add(variant.name)
        variants.append(variant)

    return variants, models
