"""Structural sanity check for Swagger 2.0 / OpenAPI 3.x JSON documents.

:func:`validate_document` is the gate in front of every import.  It detects
the dialect, confirms the fields the importer cannot do without, counts
operations, and collects non-fatal warnings.  It is deliberately shallow: it
does not check the document against the OpenAPI grammar.

The function never raises.  Every failure is reported through
:attr:`~specport.models.ValidationResult.error_message` with
``is_valid=False``, so callers can short-circuit on bad input before
attempting a full import.
"""

from __future__ import annotations

import json
from typing import Any

from specport.models import HTTPMethod, ValidationResult

WARN_PREFER_OPENAPI_3 = "prefer OpenAPI 3.0+"
WARN_NONSTANDARD_SWAGGER = "non-standard Swagger version detected"
WARN_MISSING_TITLE = "API title is missing"
WARN_NO_PATHS = "no API paths found"

ERROR_UNRECOGNIZED_FORMAT = "unrecognized document format, missing version field"
ERROR_MISSING_INFO = "missing required 'info' field"

_HTTP_METHODS = tuple(m.value for m in HTTPMethod)


def validate_document(raw_json: str) -> ValidationResult:
    """Validate a raw JSON string as a Swagger/OpenAPI document.

    Args:
        raw_json: The document text.

    Returns:
        A :class:`~specport.models.ValidationResult`.  ``detected_version``
        reads ``"OpenAPI <version>"`` or ``"Swagger <version>"``;
        ``api_count`` is the number of operations across all paths.

    Example::

        result = validate_document('{"openapi": "3.0.0", "info": {"title": "x"}, '
                                   '"paths": {"/a": {"get": {}}}}')
        assert result.is_valid and result.api_count == 1
    """
    result = ValidationResult()

    try:
        document = json.loads(raw_json)
    except json.JSONDecodeError as exc:
        result.error_message = f"Invalid JSON: {exc}"
        return result
    except (TypeError, ValueError) as exc:
        result.error_message = f"Validation failed: {exc}"
        return result

    try:
        _check_document(document, result)
    except Exception as exc:
        result.is_valid = False
        result.error_message = f"Validation failed: {exc}"

    return result


def _check_document(document: Any, result: ValidationResult) -> None:
    """Populate *result* from an already-parsed JSON value."""
    if not isinstance(document, dict):
        result.error_message = (
            f"Document must be a JSON object (got {type(document).__name__})"
        )
        return

    openapi_version = _version_string(document.get("openapi"))
    swagger_version = _version_string(document.get("swagger"))

    if openapi_version:
        result.detected_version = f"OpenAPI {openapi_version}"
        if not openapi_version.startswith("3."):
            result.warnings.append(WARN_PREFER_OPENAPI_3)
    elif swagger_version:
        result.detected_version = f"Swagger {swagger_version}"
        if not swagger_version.startswith("2."):
            result.warnings.append(WARN_NONSTANDARD_SWAGGER)
    else:
        result.error_message = ERROR_UNRECOGNIZED_FORMAT
        return

    info = document.get("info")
    if not isinstance(info, dict):
        result.error_message = ERROR_MISSING_INFO
        return

    title = info.get("title")
    if not isinstance(title, str) or not title.strip():
        result.warnings.append(WARN_MISSING_TITLE)

    paths = document.get("paths")
    if not isinstance(paths, dict) or not paths:
        result.warnings.append(WARN_NO_PATHS)
        result.api_count = 0
    else:
        result.api_count = count_operations(paths)

    result.is_valid = True


def _version_string(value: Any) -> str:
    """Normalise a version marker to a stripped string; absent values become ``""``."""
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value).strip()


def count_operations(paths: dict[str, Any]) -> int:
    """Count method keys among get/post/put/delete/patch/head/options across *paths*."""
    count = 0
    for path_item in paths.values():
        if isinstance(path_item, dict):
            count += sum(1 for method in _HTTP_METHODS if path_item.get(method) is not None)
    return count
