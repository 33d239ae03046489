"""Document commands -- validate, import, and generate examples.

Each command reads a Swagger/OpenAPI JSON document from a local file, stdin
(``-``) or an http(s) URL:

* ``specport validate SOURCE`` -- structural check and dialect detection.
* ``specport import SOURCE`` -- convert every operation into a request
  collection and print it, write it with ``--output``, or list its
  requests with ``--summary``.
* ``specport example SOURCE SCHEMA`` -- synthesize an example payload for a
  named schema.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Optional

import typer

from specport.exceptions import InvalidDocumentError, InvalidUsageError
from specport.exit_codes import EXIT_SPEC_PARSE_ERROR
from specport.models import ApiCollection, ImportSettings
from specport.output import debug, format_response, info, print_table, success, warning


def _settings(timeout: Optional[float]) -> ImportSettings:
    from specport.config import resolve_settings

    return resolve_settings(cli_timeout=timeout)


def validate_command(
    source: str = typer.Argument(help="Document path, URL, or '-' for stdin."),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Timeout in seconds for URL sources."
    ),
) -> None:
    """Validate a Swagger 2.0 / OpenAPI 3.x JSON document.

    Prints the detected version and operation count. Exits with code 7 when
    the document is invalid and 6 when a URL source cannot be retrieved.

    Example::

        specport validate petstore.json
        specport validate https://petstore3.swagger.io/api/v3/openapi.json --json
    """
    from specport.parser.loader import load_text
    from specport.parser.validator import validate_document

    settings = _settings(timeout)
    text = load_text(
        source, timeout=settings.fetch_timeout, verify_ssl=settings.verify_ssl
    )
    result = validate_document(text)

    for message in result.warnings:
        warning(message)
    format_response(result.model_dump(mode="json"))

    if not result.is_valid:
        raise typer.Exit(code=EXIT_SPEC_PARSE_ERROR)


def import_command(
    source: str = typer.Argument(help="Document path, URL, or '-' for stdin."),
    name: Optional[str] = typer.Option(
        None, "--name", help="Collection name (defaults to the API title)."
    ),
    output_path: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the collection JSON to this file."
    ),
    summary: bool = typer.Option(
        False, "--summary", help="Print one row per request instead of the collection."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Timeout in seconds for URL sources."
    ),
) -> None:
    """Import a document into a request collection.

    URLs are fetched asynchronously; transport problems exit with code 6,
    invalid documents with code 7. Operations that cannot be converted are
    skipped with a warning.

    Example::

        specport import petstore.json --name "Pet Store"
        specport import petstore.json --summary
        specport import https://example.com/openapi.json -o collection.json
    """
    from specport.importer import SwaggerImporter
    from specport.parser.loader import is_url, load_text

    settings = _settings(timeout)
    importer = SwaggerImporter(settings)

    if is_url(source):
        debug(f"Fetching {source}")
        collection = asyncio.run(importer.import_from_url(source, collection_name=name))
    else:
        collection = importer.import_from_json(load_text(source), collection_name=name)

    report = importer.last_report
    if report is not None:
        for message in report.warnings:
            warning(message)
        for skipped in report.skipped:
            warning(f"Skipped {skipped.method} {skipped.path}: {skipped.reason}")

    data = collection.model_dump(mode="json")
    if output_path is not None:
        output_path.write_text(
            json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
        )
        success(
            f"Imported {len(collection.all_requests())} request(s) into "
            f"'{collection.name}' -> {output_path}"
        )
        return

    if summary:
        print_table(
            ["Folder", "Method", "Name", "URL"],
            _summary_rows(collection),
            title=collection.name,
        )
    else:
        format_response(data)
    info(
        f"Imported {len(collection.all_requests())} request(s) in "
        f"{len(collection.folders)} folder(s)."
    )


def _summary_rows(collection: ApiCollection) -> list[list[str]]:
    rows = [["", r.method, r.name, r.url] for r in collection.requests]
    for folder in collection.folders:
        rows.extend([folder.name, r.method, r.name, r.url] for r in folder.requests)
    return rows


def _find_schema_ref(raw: dict[str, Any], schema_name: str) -> str:
    """Return the ``$ref`` pointer naming *schema_name* in either dialect."""
    escaped = schema_name.replace("~", "~0").replace("/", "~1")

    components = raw.get("components")
    schemas = components.get("schemas") if isinstance(components, dict) else None
    if isinstance(schemas, dict) and schema_name in schemas:
        return f"#/components/schemas/{escaped}"

    definitions = raw.get("definitions")
    if isinstance(definitions, dict) and schema_name in definitions:
        return f"#/definitions/{escaped}"

    available = sorted(
        list(schemas or {}) + list(definitions if isinstance(definitions, dict) else {})
    )
    hint = f" Available: {', '.join(available)}" if available else ""
    raise InvalidUsageError(f"Schema '{schema_name}' not found.{hint}")


def example_command(
    source: str = typer.Argument(help="Document path, URL, or '-' for stdin."),
    schema_name: str = typer.Argument(help="Schema name under components/definitions."),
    max_depth: Optional[int] = typer.Option(
        None, "--max-depth", min=0, help="Depth cap (defaults to the body depth setting)."
    ),
) -> None:
    """Print a synthesized example for one named schema.

    Circular references are cut with ``{"_circular_reference": NAME}`` and
    deep nesting with ``{"_depth_limit_reached": N}``.

    Example::

        specport example petstore.json Pet
        specport example petstore.json Category --max-depth 3
    """
    from specport.generator.examples import generate_example_json
    from specport.parser.loader import load_text
    from specport.parser.validator import validate_document

    settings = _settings(None)
    text = load_text(
        source, timeout=settings.fetch_timeout, verify_ssl=settings.verify_ssl
    )
    result = validate_document(text)
    if not result.is_valid:
        raise InvalidDocumentError(
            f"Invalid Swagger document: {result.error_message}", warnings=result.warnings
        )

    raw = json.loads(text)
    ref = _find_schema_ref(raw, schema_name)
    depth = settings.body_max_depth if max_depth is None else max_depth
    debug(f"Synthesizing {ref} with depth cap {depth}")
    format_response(generate_example_json({"$ref": ref}, raw, max_depth=depth))
