"""Render the model IR to Rust source and write the generated files.

Takes the models and envelopes from model_builder and produces
models.rs plus the mod.rs that re-exports it.
"""

from __future__ import annotations

import logging
import re
from functools import cached_property
from pathlib import Path
from typing import Any, Iterable, Iterator

import jinja2

from .ir import (
    CompositionModel,
    EnumModel,
    Field,
    ModelType,
    RequestEnvelope,
    ResponseEnvelope,
    StructModel,
    TypeAliasModel,
    UnionModel,
)
from .naming import to_field_identifier, to_variant_identifier

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"
MODELS_FILE = "models.rs"
MODULE_FILE = "mod.rs"

_DEFAULT_DERIVE = "#[derive(Debug, Clone, Serialize, Deserialize)]"
_REQUEST_DERIVE = "#[derive(Debug, Serialize)]"
_RESPONSE_DERIVE = "#[derive(Debug, Deserialize)]"
_UNTAGGED = "#[serde(untagged)]"

_SERDE_IMPORT = "use serde::{Deserialize, Serialize};"

# Native types that need an import; a path-qualified name needs none
_DATETIME = re.compile(r'(?<![\w:"])DateTime<Utc>')
_NAIVE_DATE = re.compile(r'(?<![\w:"])NaiveDate\b')
_UUID = re.compile(r'(?<![\w:"])Uuid\b')

_SERDE_TAGGING = re.compile(r"\b(untagged|tag|content)\b")


def _rust_string(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _doc_lines(description: str | None, fallback: str | None = None) -> list[str]:
    """One /// line per description line; the fallback when there is none."""
    if description and description.strip():
        return [
            f"/// {line.strip()}" if line.strip() else "///"
            for line in description.strip().splitlines()
        ]
    if fallback:
        return [f"/// {fallback}"]
    return []


def _declares_derive(custom_attrs: Iterable[str]) -> bool:
    return any("derive(" in attr for attr in custom_attrs)


def _declares_tagging(custom_attrs: Iterable[str]) -> bool:
    return any("serde(" in attr and _SERDE_TAGGING.search(attr) for attr in custom_attrs)


def _type_attrs(custom_attrs: tuple[str, ...] | None, derive: str = _DEFAULT_DERIVE) -> list[str]:
    """Default derive followed by custom attributes, or the custom ones alone
    when they already carry a derive."""
    custom = list(custom_attrs or ())
    if _declares_derive(custom):
        return custom
    return [derive, *custom]


def _field_view(field: Field, owner: str, ident: str) -> dict[str, Any]:
    attrs = []
    if field.should_flatten:
        attrs.append("#[serde(flatten)]")
    elif ident != field.name:
        attrs.append(f'#[serde(rename = "{_rust_string(field.name)}")]')

    field_type = field.field_type
    if field_type == owner:
        field_type = f"Box<{field_type}>"
    if not field.is_required or field.is_nullable:
        field_type = f"Option<{field_type}>"

    return {
        "ident": ident,
        "type": field_type,
        "attrs": attrs,
        "docs": _doc_lines(field.description),
    }


def _unique_ident(ident: str, taken: set[str]) -> str:
    suffix = 2
    while f"{ident}_{suffix}" in taken:
        suffix += 1
    return f"{ident}_{suffix}"


def _struct_view(
    name: str,
    fields: Iterable[Field],
    docs: list[str],
    attrs: list[str],
) -> dict[str, Any]:
    views = []
    wire_names: set[str] = set()
    idents: set[str] = set()
    for field in fields:
        # allOf merges keep same-named fields; the wire key is emitted once
        if field.name in wire_names:
            logger.debug("Skipping repeated field %s in %s", field.name, name)
            continue
        wire_names.add(field.name)

        ident = to_field_identifier(field.name)
        if ident in idents:
            ident = _unique_ident(ident, idents)
            logger.debug("Field %s in %s renamed to %s", field.name, name, ident)
        idents.add(ident)
        views.append(_field_view(field, name, ident))
    return {"kind": "struct", "name": name, "docs": docs, "attrs": attrs, "fields": views}


def _enum_view(model: EnumModel) -> dict[str, Any]:
    variants = []
    seen: set[str] = set()
    for literal in model.variants:
        ident, escaped = to_variant_identifier(literal)
        if ident in seen:
            logger.warning("Enum %s: value %r collides with variant %s", model.name, literal, ident)
            continue
        seen.add(ident)
        attrs = []
        if escaped or ident != literal:
            attrs.append(f'#[serde(rename = "{_rust_string(literal)}")]')
        variants.append({"ident": ident, "attrs": attrs, "payload": None})

    return {
        "kind": "enum",
        "name": model.name,
        "docs": _doc_lines(model.description, model.name),
        "attrs": _type_attrs(model.custom_attrs),
        "variants": variants,
    }


def _union_view(model: UnionModel) -> dict[str, Any]:
    attrs = _type_attrs(model.custom_attrs)
    if not _declares_tagging(model.custom_attrs or ()):
        attrs.append(_UNTAGGED)
    return {
        "kind": "enum",
        "name": model.name,
        "docs": _doc_lines(model.description, f"{model.name} ({model.union_type})"),
        "attrs": attrs,
        "variants": [
            {"ident": v.name, "attrs": [], "payload": v.type_name} for v in model.variants
        ],
    }


def _model_view(model: ModelType) -> dict[str, Any]:
    if isinstance(model, StructModel):
        return _struct_view(
            model.name,
            model.fields,
            _doc_lines(model.description, model.name),
            _type_attrs(model.custom_attrs),
        )
    if isinstance(model, CompositionModel):
        return _struct_view(
            model.name,
            model.fields,
            _doc_lines(model.description, f"{model.name} (allOf composition)"),
            _type_attrs(model.custom_attrs),
        )
    if isinstance(model, UnionModel):
        return _union_view(model)
    if isinstance(model, EnumModel):
        return _enum_view(model)
    if isinstance(model, TypeAliasModel):
        return {
            "kind": "alias",
            "name": model.name,
            "docs": _doc_lines(model.description, model.name),
            "attrs": list(model.custom_attrs or ()),
            "target": model.target_type,
        }
    raise TypeError(f"Unsupported model type: {type(model).__name__}")


def _request_view(request: RequestEnvelope) -> dict[str, Any]:
    body_type = request.schema if request.is_required else f"Option<{request.schema}>"
    return {
        "kind": "struct",
        "name": request.name,
        "docs": _doc_lines(request.description, request.name),
        "attrs": [_REQUEST_DERIVE],
        "fields": [
            {"ident": "content_type", "type": "String", "attrs": [], "docs": []},
            {"ident": "body", "type": body_type, "attrs": [], "docs": []},
        ],
    }


def _response_view(response: ResponseEnvelope) -> dict[str, Any]:
    return {
        "kind": "struct",
        "name": response.name,
        "docs": _doc_lines(response.description, response.name),
        "attrs": [_RESPONSE_DERIVE],
        "fields": [
            {"ident": "body", "type": response.schema, "attrs": [], "docs": []},
        ],
    }


def _type_positions(items: Iterable[dict[str, Any]]) -> Iterator[str]:
    """Every type expression the views place in the output."""
    for item in items:
        if item["kind"] == "struct":
            yield from (field["type"] for field in item["fields"])
        elif item["kind"] == "enum":
            yield from (v["payload"] for v in item["variants"] if v["payload"])
        elif item["kind"] == "alias":
            yield item["target"]


def _imports(types: Iterable[str]) -> list[str]:
    """Imports for the native types used in type positions."""
    code = "\n".join(types)

    chrono = []
    if _DATETIME.search(code):
        chrono += ["DateTime", "Utc"]
    if _NAIVE_DATE.search(code):
        chrono.append("NaiveDate")

    lines = [_SERDE_IMPORT]
    if chrono:
        lines.append(f"use chrono::{{{', '.join(sorted(chrono))}}};")
    if _UUID.search(code):
        lines.append("use uuid::Uuid;")
    return lines


class ModelRenderer:
    """Renders one generation run; the header is computed once and reused."""

    def __init__(self, title: str | None = None):
        self.title = title

    @cached_property
    def environment(self) -> jinja2.Environment:
        return jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    @cached_property
    def header(self) -> str:
        source = f" from {self.title}" if self.title else ""
        return f"// Code generated by modelgen{source}. DO NOT EDIT."

    def render(
        self,
        models: list[ModelType],
        requests: list[RequestEnvelope],
        responses: list[ResponseEnvelope],
    ) -> str:
        items = [_model_view(model) for model in models]
        items += [_request_view(r) for r in requests if not r.is_placeholder]
        items += [_response_view(r) for r in responses if not r.is_placeholder]

        body = self.environment.get_template("models.rs.j2").render(items=items)
        imports = _imports(_type_positions(items))
        return "\n".join([self.header, "", *imports]) + "\n" + body

    def render_module_index(self, module: str = "models") -> str:
        template = self.environment.get_template("mod.rs.j2")
        return template.render(header=self.header, module=module)


def render_models(
    models: list[ModelType],
    requests: list[RequestEnvelope],
    responses: list[ResponseEnvelope],
    title: str | None = None,
) -> str:
    """Render models, then requests, then responses as one Rust source."""
    return ModelRenderer(title).render(models, requests, responses)


def render_module_index(title: str | None = None) -> str:
    """Render the mod.rs that declares the models module."""
    return ModelRenderer(title).render_module_index()


def generate(
    models: list[ModelType],
    requests: list[RequestEnvelope],
    responses: list[ResponseEnvelope],
    output_dir: Path,
    title: str | None = None,
) -> Path:
    """Render and write models.rs and mod.rs; returns the models.rs path."""
    renderer = ModelRenderer(title)

    models_path = output_dir / MODELS_FILE
    models_path.write_text(renderer.render(models, requests, responses).strip() + "\n")
    (output_dir / MODULE_FILE).write_text(renderer.render_module_index().strip() + "\n")

    logger.info("Wrote %s (%d models)", models_path, len(models))
    return models_path
