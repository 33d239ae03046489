"""Read Swagger/OpenAPI documents from a URL, local file, or stdin.

This module handles the I/O the CLI needs before an import: fetching raw
document text and turning it into a Python dictionary.  Only JSON is
accepted; YAML documents are rejected with a :class:`SpecParseError`.

The public functions are:

* :func:`load_text` -- Read raw text from any supported source.
* :func:`parse_json` -- Parse text into a document dictionary.

URL sources are downloaded with
:meth:`~specport.client.fetcher.DocumentFetcher.fetch_text`, the same path
:meth:`~specport.importer.SwaggerImporter.import_from_url` uses, so a
document that cannot be retrieved raises
:class:`~specport.exceptions.DocumentFetchError` rather than a parse error.
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from specport.client.fetcher import DEFAULT_TIMEOUT, DocumentFetcher
from specport.exceptions import SpecParseError


def is_url(source: str) -> bool:
    """Return True when *source* looks like an http(s) URL."""
    return source.startswith(("http://", "https://"))


def load_text(
    source: str,
    timeout: float = DEFAULT_TIMEOUT,
    verify_ssl: bool = True,
) -> str:
    """Load raw document text from URL, file path, or stdin ('-').

    Args:
        source: A URL (http/https), file path, or '-' for stdin.
        timeout: Timeout in seconds for URL sources.
        verify_ssl: Verify TLS certificates for URL sources.

    Returns:
        The document text, guaranteed to be non-blank.

    Raises:
        SpecParseError: If a file or stdin cannot be read or is empty.
        DocumentFetchError: If a URL cannot be retrieved or its body is empty.
    """
    if source == "-":
        return _load_from_stdin()
    elif is_url(source):
        return _load_from_url(source, timeout, verify_ssl)
    else:
        return _load_from_file(source)


def _load_from_stdin() -> str:
    """Read document text from stdin.

    Raises:
        SpecParseError: If stdin is empty or cannot be read.
    """
    try:
        content = sys.stdin.read()
    except Exception as exc:
        raise SpecParseError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise SpecParseError("No input received from stdin")

    return content


def _load_from_url(url: str, timeout: float, verify_ssl: bool) -> str:
    fetcher = DocumentFetcher(timeout=timeout, verify_ssl=verify_ssl)
    return asyncio.run(fetcher.fetch_text(url))


def _load_from_file(path: str) -> str:
    """Load document text from a local file.

    Raises:
        SpecParseError: If the file is missing, unreadable, or empty.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise SpecParseError(f"Document file not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecParseError(f"Failed to read document file {path}: {exc}") from exc

    if not content.strip():
        raise SpecParseError(f"Document file is empty: {path}")

    return content


def parse_json(content: str) -> dict[str, Any]:
    """Parse *content* as a JSON object.

    Args:
        content: The raw string content.

    Returns:
        The parsed dictionary.

    Raises:
        SpecParseError: If the content is not valid JSON or its top-level
            value is not an object.
    """
    try:
        result = json.loads(content)
    except json.JSONDecodeError as exc:
        raise SpecParseError(f"Invalid JSON: {exc}") from exc

    if not isinstance(result, dict):
        raise SpecParseError(
            f"Document must be a JSON object (got {type(result).__name__})"
        )
    return result
