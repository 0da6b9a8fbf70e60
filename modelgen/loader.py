"""Load an OpenAPI document and resolve $ref pointers inside it.

Reads JSON or YAML (chosen by file extension) and exposes the handful of
document sections the model builder walks.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


class DocumentParseError(ValueError):
    """The input could not be decoded into an OpenAPI document."""


def load_document(path: Path) -> dict[str, Any]:
    """Load an OpenAPI document from disk."""
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() in YAML_SUFFIXES:
            document = yaml.safe_load(text)
        else:
            document = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise DocumentParseError(f"{path}: {exc}") from exc

    if not isinstance(document, dict):
        raise DocumentParseError(f"{path}: top level must be a mapping")
    return document


def get_paths(document: dict[str, Any]) -> dict[str, Any]:
    """Extract paths from the document."""
    return document.get("paths") or {}


def get_schemas(document: dict[str, Any]) -> dict[str, Any]:
    """Extract component schemas from the document."""
    return (document.get("components") or {}).get("schemas") or {}


def get_request_bodies(document: dict[str, Any]) -> dict[str, Any]:
    """Extract component request bodies from the document."""
    return (document.get("components") or {}).get("requestBodies") or {}


def ref_name(ref: str) -> str:
    """Return the last segment of a $ref pointer."""
    return ref.rsplit("/", 1)[-1]


def resolve_ref(document: dict[str, Any], ref: Any) -> dict[str, Any] | None:
    """Resolve a local $ref pointer in the document.

    Returns None (and logs) when the pointer is external or dangling.
    """
    if not isinstance(ref, str) or not ref.startswith("#/"):
        logger.warning("Unsupported non-local reference %r", ref)
        return None

    node: Any = document
    for part in ref[2:].split("/"):
        part = part.replace("~1", "/").replace("~0", "~")
        if not isinstance(node, dict) or part not in node:
            logger.warning("Unresolved reference %s", ref)
            return None
        node = node[part]

    if not isinstance(node, dict):
        logger.warning("Reference %s does not point at an object", ref)
        return None
    return node


def deref(document: dict[str, Any], node: dict[str, Any]) -> dict[str, Any] | None:
    """Follow a node's $ref, if it has one; inline nodes are returned as-is."""
    if "$ref" in node:
        return resolve_ref(document, node["$ref"])
    return node
