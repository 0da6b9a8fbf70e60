"""Build the model IR from a parsed OpenAPI document.

Walks component schemas, component request bodies and every operation's
request/response bodies, producing an ordered, deduplicated list of models
plus request and response envelopes.
"""

from __future__ import annotations

import logging
from typing import Any

from .composition import collapse_enum, resolve_all_of_fields, resolve_union_variants
from .ir import (
    CompositionModel,
    EnumModel,
    ModelType,
    RequestEnvelope,
    ResponseEnvelope,
    StructModel,
    TypeAliasModel,
    UnionModel,
)
from .loader import get_paths, get_request_bodies, get_schemas, ref_name, resolve_ref
from .naming import to_pascal_case
from .schema_parser import (
    ANY_JSON,
    description_of,
    enum_values,
    extract_custom_attrs,
    extract_custom_type,
    extract_fields,
    is_map_only,
    map_type,
    map_type_name,
    schema_kind,
)

logger = logging.getLogger(__name__)

_HTTP_METHODS = ("get", "post", "put", "delete", "patch")

_REQUEST_BODY_PREFIX = "#/components/requestBodies/"

# Kinds that have no structure of their own and become plain aliases
_ALIAS_KINDS = frozenset({"string", "integer", "number", "boolean", "array", "reference"})


def parse_schema(
    document: dict[str, Any],
    name: str,
    schema: dict[str, Any],
    synthetic: bool = False,
) -> list[ModelType]:
    """Turn one named schema into models; the named model comes last.

    ``synthetic`` marks schemas lifted out of an operation body, whose
    empty objects are dropped instead of becoming empty structs.
    """
    model_name = to_pascal_case(name)
    description = description_of(schema)
    custom_attrs = extract_custom_attrs(schema)

    custom_type = extract_custom_type(schema)
    if custom_type is not None:
        return [TypeAliasModel(model_name, custom_type, description, custom_attrs)]

    kind = schema_kind(schema)

    if kind == "object":
        if is_map_only(schema):
            target = map_type_name(document, schema)
            return [TypeAliasModel(model_name, target, description, custom_attrs)]

        fields, models = extract_fields(document, schema)
        if fields or not synthetic:
            models.append(StructModel(model_name, tuple(fields), description, custom_attrs))
        return models

    if kind == "allOf":
        members = schema["allOf"] if isinstance(schema["allOf"], list) else []
        fields, models = resolve_all_of_fields(document, members)
        if fields:
            models.append(CompositionModel(model_name, tuple(fields), description, custom_attrs))
        return models

    if kind in ("oneOf", "anyOf"):
        members = schema[kind] if isinstance(schema[kind], list) else []
        values = collapse_enum(document, members)
        if values is not None:
            return [EnumModel(model_name, tuple(values))]
        variants, models = resolve_union_variants(document, name, members)
        models.append(UnionModel(model_name, tuple(variants), kind, description, custom_attrs))
        return models

    if kind == "string" and enum_values(schema):
        return [EnumModel(model_name, tuple(enum_values(schema)), description, custom_attrs)]

    if kind in _ALIAS_KINDS:
        target, _ = map_type(document, schema)
        if target == model_name:
            return []
        return [TypeAliasModel(model_name, target, description, custom_attrs)]

    logger.debug("No model for schema %s (kind %r)", name, kind)
    return []


def _content(body: dict[str, Any]) -> dict[str, Any]:
    content = body.get("content")
    return content if isinstance(content, dict) else {}


def _media_schema(media: Any) -> dict[str, Any] | None:
    if not isinstance(media, dict):
        return None
    schema = media.get("schema")
    return schema if isinstance(schema, dict) else None


class ModelBuilder:
    """Per-invocation builder; owns the name set that deduplicates models."""

    def __init__(self, document: dict[str, Any]):
        self.document = document
        self.models: list[ModelType] = []
        self.requests: list[RequestEnvelope] = []
        self.responses: list[ResponseEnvelope] = []
        self._added_models: set[str] = set()
        self._added_requests: set[str] = set()
        self._added_responses: set[str] = set()
        # requestBodies component name -> model registered for its schema
        self._body_models: dict[str, str] = {}

    def build(self) -> tuple[list[ModelType], list[RequestEnvelope], list[ResponseEnvelope]]:
        for name, schema in get_schemas(self.document).items():
            if isinstance(schema, dict):
                self._register(parse_schema(self.document, name, schema))

        for name, body in get_request_bodies(self.document).items():
            if not isinstance(body, dict) or "$ref" in body:
                continue
            for media in _content(body).values():
                schema = _media_schema(media)
                if schema is None:
                    continue
                models = parse_schema(self.document, name, schema)
                model_name = to_pascal_case(name)
                if any(m.name == model_name for m in models) and model_name not in self._added_models:
                    self._body_models[name] = model_name
                self._register(models)

        for path, path_item in get_paths(self.document).items():
            if not isinstance(path_item, dict) or "$ref" in path_item:
                logger.debug("Skipping path item %s", path)
                continue
            for method in _HTTP_METHODS:
                operation = path_item.get(method)
                if isinstance(operation, dict):
                    self._process_operation(operation)

        logger.info(
            "Built %d models, %d requests, %d responses",
            len(self.models), len(self.requests), len(self.responses),
        )
        return self.models, self.requests, self.responses

    def _register(self, models: list[ModelType]) -> None:
        """Add models whose names are not taken yet; first writer wins."""
        for model in models:
            if model.name in self._added_models:
                logger.debug("Dropping duplicate model %s", model.name)
                continue
            self._added_models.add(model.name)
            self.models.append(model)

    def _process_operation(self, operation: dict[str, Any]) -> None:
        operation_id = operation.get("operationId")
        operation_name = to_pascal_case(operation_id if isinstance(operation_id, str) else "Unknown")

        request_body = operation.get("requestBody")
        if isinstance(request_body, dict):
            self._process_request_body(operation_name, request_body)

        responses = operation.get("responses")
        if isinstance(responses, dict):
            for status, response in responses.items():
                if isinstance(response, dict):
                    self._process_response(operation_name, str(status), response)

    def _process_request_body(self, operation_name: str, body: dict[str, Any]) -> None:
        is_inline = "$ref" not in body
        body_model = None
        if not is_inline:
            ref = body["$ref"]
            if not isinstance(ref, str) or not ref.startswith(_REQUEST_BODY_PREFIX):
                logger.warning("Unsupported request body reference %r", ref)
                return
            body = resolve_ref(self.document, ref)
            if body is None:
                return
            body_model = self._body_models.get(ref_name(ref))

        request_name = f"{operation_name}Request"
        for content_type, media in _content(body).items():
            schema = _media_schema(media)
            if schema is None:
                continue

            if is_inline and schema_kind(schema) == "object":
                schema_type = self._register_body_model(f"{request_name}Body", schema)
            elif body_model is not None and "$ref" not in schema:
                schema_type = body_model
            else:
                schema_type, _ = map_type(self.document, schema)

            self._add_request(RequestEnvelope(
                name=request_name,
                content_type=content_type,
                schema=schema_type,
                is_required=body.get("required") is True,
                description=description_of(body),
            ))

    def _register_body_model(self, name: str, schema: dict[str, Any]) -> str:
        """Lift an inline body object into its own model; returns the type to use."""
        models = parse_schema(self.document, name, schema, synthetic=True)
        self._register(models)
        if any(model.name == name for model in models):
            return name
        return ANY_JSON

    def _process_response(self, operation_name: str, status: str, response: dict[str, Any]) -> None:
        if "$ref" in response:
            response = resolve_ref(self.document, response["$ref"])
            if response is None:
                return

        response_name = f"{operation_name}Response{to_pascal_case(status)}"
        for content_type, media in _content(response).items():
            schema = _media_schema(media)
            if schema is None:
                continue
            schema_type, _ = map_type(self.document, schema)
            self._add_response(ResponseEnvelope(
                name=response_name,
                status_code=status,
                content_type=content_type,
                schema=schema_type,
                description=description_of(response),
            ))

    def _add_request(self, request: RequestEnvelope) -> None:
        if request.name in self._added_requests:
            return
        self._added_requests.add(request.name)
        self.requests.append(request)

    def _add_response(self, response: ResponseEnvelope) -> None:
        if response.name in self._added_responses:
            return
        self._added_responses.add(response.name)
        self.responses.append(response)


def build_models(
    document: dict[str, Any],
) -> tuple[list[ModelType], list[RequestEnvelope], list[ResponseEnvelope]]:
    """Run the builder over a document: (models, requests, responses)."""
    return ModelBuilder(document).build()
