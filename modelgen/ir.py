"""Intermediate representation produced by the model builder.

The model kinds form a closed set: StructModel, UnionModel,
CompositionModel, EnumModel and TypeAliasModel. The emitter dispatches on
exactly these classes; adding a kind means touching both sides.

Request and response envelopes describe the per-operation wrapper types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .naming import to_pascal_case

EMPTY_REQUEST_NAME = "UnknownRequest"
EMPTY_RESPONSE_NAME = "UnknownResponse"


@dataclass(frozen=True)
class Field:
    """A single struct field.

    Attributes:
        name: The wire (JSON) property name
        field_type: Rust type name, without Option wrapping
        format: Source format tag ("string", "date-time", "reference", ...)
        is_required: Whether the property is in the schema's required list
        is_nullable: Whether the property (or its $ref target) is nullable
        description: Property description, if any
    """

    name: str
    field_type: str
    format: str
    is_required: bool
    is_nullable: bool
    description: str | None = None

    @property
    def should_flatten(self) -> bool:
        """True for catch-all fields merged into the parent on the wire."""
        return self.name in ("additional_properties", "additionalProperties")


@dataclass(frozen=True)
class StructModel:
    name: str
    fields: tuple[Field, ...]
    description: str | None = None
    custom_attrs: tuple[str, ...] | None = None


@dataclass(frozen=True)
class CompositionModel:
    """allOf composition: the concatenated fields of every member."""

    name: str
    fields: tuple[Field, ...]
    description: str | None = None
    custom_attrs: tuple[str, ...] | None = None


@dataclass(frozen=True)
class UnionVariant:
    """One constructor of a union; payload is a named type."""

    name: str
    type_name: str


@dataclass(frozen=True)
class UnionModel:
    name: str
    variants: tuple[UnionVariant, ...]
    union_type: str  # "oneOf" / "anyOf"
    description: str | None = None
    custom_attrs: tuple[str, ...] | None = None


@dataclass(frozen=True)
class EnumModel:
    """String enumeration. Variants hold the literal wire values."""

    name: str
    variants: tuple[str, ...]
    description: str | None = None
    custom_attrs: tuple[str, ...] | None = None


@dataclass(frozen=True)
class TypeAliasModel:
    name: str
    target_type: str
    description: str | None = None
    custom_attrs: tuple[str, ...] | None = None


ModelType = Union[StructModel, UnionModel, CompositionModel, EnumModel, TypeAliasModel]


@dataclass(frozen=True)
class RequestEnvelope:
    name: str
    content_type: str
    schema: str
    is_required: bool
    description: str | None = None

    @property
    def is_placeholder(self) -> bool:
        return not self.name or self.name == EMPTY_REQUEST_NAME


@dataclass(frozen=True)
class ResponseEnvelope:
    """A response body for one status code and content type.

    The name already includes the status code (CreatePetResponse201).
    """

    name: str
    status_code: str
    content_type: str
    schema: str
    description: str | None = None

    @property
    def is_placeholder(self) -> bool:
        """True for the envelope of an operation without an operationId."""
        return not self.name or self.name == f"{EMPTY_RESPONSE_NAME}{to_pascal_case(self.status_code)}"
