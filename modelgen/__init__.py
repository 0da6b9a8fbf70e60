"""Generate Rust model declarations from OpenAPI documents."""

from .codegen import render_models, render_module_index
from .loader import DocumentParseError, load_document
from .model_builder import build_models

__all__ = [
    "DocumentParseError",
    "build_models",
    "load_document",
    "render_models",
    "render_module_index",
]

__version__ = "0.1.0"
