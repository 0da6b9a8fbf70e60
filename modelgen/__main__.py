"""Entry point: python -m modelgen --input openapi.yaml [--output ./generated]

Reads the OpenAPI document, generates <output>/models.rs and <output>/mod.rs.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from .codegen import generate
from .loader import DocumentParseError, load_document
from .model_builder import build_models

DEFAULT_OUTPUT_DIR = Path("./generated")


def _validate_input(path: Path) -> None:
    click.echo(f"Checking input file: {path}")
    if not path.exists():
        raise click.ClickException(f"Input path {path} does not exist")
    if not path.is_file():
        raise click.ClickException(f"Input path {path} is not a file")
    try:
        with open(path, "rb"):
            pass
    except OSError as exc:
        raise click.ClickException(f"Input path {path} is not readable: {exc}") from exc


def _create_output_dir(path: Path) -> None:
    click.echo(f"Checking output directory: {path}")
    if path.exists():
        if not path.is_dir():
            raise click.ClickException(f"Path {path} exists but is not a directory")
        return
    click.echo(f"Creating directory: {path}")
    try:
        path.mkdir(parents=True)
    except OSError as exc:
        raise click.ClickException(f"Failed to create output directory: {exc}") from exc


@click.command()
@click.option("-i", "--input", "input_path", required=True, type=click.Path(path_type=Path),
              help="OpenAPI document (.yaml/.yml or .json).")
@click.option("-o", "--output", "output_dir", default=DEFAULT_OUTPUT_DIR, show_default=True,
              type=click.Path(path_type=Path), help="Directory for models.rs and mod.rs.")
@click.option("-v", "--verbose", is_flag=True, help="Log every degraded construct.")
def main(input_path: Path, output_dir: Path, verbose: bool) -> None:
    """Generate Rust models from an OpenAPI document."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    _validate_input(input_path)
    _create_output_dir(output_dir)

    try:
        document = load_document(input_path)
    except (DocumentParseError, OSError) as exc:
        raise click.ClickException(f"Failed to parse document: {exc}") from exc

    models, requests, responses = build_models(document)

    info = document.get("info")
    title = info.get("title") if isinstance(info, dict) else None
    try:
        models_path = generate(
            models, requests, responses, output_dir,
            title=title if isinstance(title, str) else None,
        )
    except OSError as exc:
        raise click.ClickException(f"Failed to write models: {exc}") from exc

    click.echo(f"Models generated successfully to {models_path}")


if __name__ == "__main__":
    main()
