"""Convert Swagger/OpenAPI operations into collection request records.

:func:`convert_operation` maps one ``(path, method, operation)`` triple into
a populated :class:`~specport.models.RequestRecord`: display name, full URL
with an example query string, headers, an example JSON body, content type
and tags.

The two dialects describe the same things differently, so small adapter
functions normalise them into the single request model:

* **Base URL** -- OpenAPI ``servers[0].url``, else Swagger
  ``scheme://host + basePath`` (see :func:`base_url`).
* **Parameters** -- OpenAPI ``schema`` vs. Swagger primitive ``type``
  (see :func:`parameter_example`).  Path-level parameters are merged with
  operation-level ones; ``$ref`` parameters are looked up in the raw
  document.
* **Body** -- OpenAPI ``requestBody.content`` vs. a Swagger ``in: body``
  parameter.
* **Content type** -- ``requestBody`` media key, else ``consumes``.

**Mapping rules for parameter locations:**

* ``header`` parameters become request headers.
* ``query`` parameters are appended to the URL as ``key=value`` pairs in
  declaration order.
* ``path`` parameters stay as ``{name}`` placeholders in the URL; their
  example values are recorded in ``RequestRecord.path_variables``.
* ``cookie`` parameters are joined into a single ``Cookie`` header.

Body synthesis failures are logged and degrade to ``"{}"``; they never abort
the conversion.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Optional

from pydantic import TypeAdapter

from specport.exceptions import SpecParseError
from specport.generator.examples import (
    FALLBACK_EXAMPLE,
    ExampleSynthesizer,
    example_to_text,
    to_json,
)
from specport.models import (
    HTTPMethod,
    ImportSettings,
    Operation,
    Parameter,
    ParameterLocation,
    RequestRecord,
    SwaggerDocument,
)
from specport.parser.resolver import resolve_pointer

logger = logging.getLogger(__name__)

EMPTY_BODY = "{}"

_SWAGGER_TYPE_DEFAULTS: dict[str, str] = {
    "string": "example",
    "integer": "123",
    "number": "123.45",
    "boolean": "true",
}

_PARAMETER_LIST = TypeAdapter(list[Parameter])


@dataclass
class ParsedParameters:
    """Example values for an operation's parameters, split by location."""

    headers: dict[str, str] = field(default_factory=dict)
    query: dict[str, str] = field(default_factory=dict)
    path: dict[str, str] = field(default_factory=dict)
    cookies: dict[str, str] = field(default_factory=dict)
    body: Optional[Parameter] = None


# ---------------------------------------------------------------------------
# Dialect adapters
# ---------------------------------------------------------------------------


def base_url(document: SwaggerDocument) -> str:
    """Return the document's base URL.

    Prefers the first OpenAPI server, then Swagger ``host`` with the first
    declared scheme (``https`` when none) and ``basePath``.  Returns an empty
    string when neither is present.
    """
    if document.servers:
        return document.servers[0].url or ""

    if document.host and document.host.strip():
        scheme = document.schemes[0] if document.schemes else "https"
        return f"{scheme}://{document.host}{document.base_path or ''}"

    return ""


def merge_parameters(
    path_params: Iterable[Parameter],
    op_params: Iterable[Parameter],
) -> list[Parameter]:
    """Merge path-level and operation-level parameters.

    Operation-level parameters override path-level parameters with the same
    name and location, as OpenAPI defines it.  Path-level parameters keep
    their position ahead of the operation's own.
    """
    op_list = list(op_params)
    overridden = {(p.name, p.location) for p in op_list}
    merged = [p for p in path_params if (p.name, p.location) not in overridden]
    merged.extend(op_list)
    return merged


def resolve_parameter(param: Parameter, raw_document: dict[str, Any]) -> Parameter:
    """Replace a ``$ref`` parameter with the parameter object it points to.

    Raises:
        SpecParseError: If the reference cannot be followed.
    """
    if param.ref is None:
        return param
    target = resolve_pointer(param.ref, raw_document)
    if not isinstance(target, dict):
        raise SpecParseError(f"Parameter $ref '{param.ref}' does not point to an object")
    return Parameter.model_validate(target)


def parameter_example(
    param: Parameter,
    synthesizer: ExampleSynthesizer,
    max_depth: int,
) -> str:
    """Return the example text for one parameter.

    Uses the literal ``example`` when present, else a value synthesized from
    the parameter's ``schema`` (capped at *max_depth*), else a default keyed
    by the Swagger 2.0 primitive ``type``.
    """
    if param.example is not None:
        return example_to_text(param.example)

    if param.schema_ is not None:
        try:
            return example_to_text(synthesizer.synthesize(param.schema_, 0, max_depth))
        except Exception as exc:
            logger.debug("Parameter %s example fell back: %s", param.name, exc)
            return FALLBACK_EXAMPLE

    return _SWAGGER_TYPE_DEFAULTS.get((param.type or "").lower(), FALLBACK_EXAMPLE)


def split_parameters(
    params: Iterable[Parameter],
    synthesizer: ExampleSynthesizer,
    max_depth: int,
) -> ParsedParameters:
    """Partition parameters by location and compute their example values.

    Parameters without a name are ignored.  A Swagger ``in: body``
    parameter is kept aside for body synthesis; ``formData`` parameters are
    not materialised.
    """
    parsed = ParsedParameters()
    for param in params:
        location = (param.location or "").strip().lower()
        if location == ParameterLocation.BODY.value:
            if parsed.body is None:
                parsed.body = param
            continue
        if not param.name or not param.name.strip():
            continue

        target = {
            ParameterLocation.HEADER.value: parsed.headers,
            ParameterLocation.QUERY.value: parsed.query,
            ParameterLocation.PATH.value: parsed.path,
            ParameterLocation.COOKIE.value: parsed.cookies,
        }.get(location)
        if target is None:
            continue
        target[param.name] = parameter_example(param, synthesizer, max_depth)

    return parsed


def content_type_for(
    operation: Operation,
    document: SwaggerDocument,
    body_node: Optional[dict[str, Any]] = None,
    default: str = "application/json",
) -> str:
    """Pick the request content type.

    OpenAPI request body's first media key, else the operation's
    ``consumes[0]``, else the document's ``consumes[0]``, else *default*.
    """
    if body_node is not None:
        content = body_node.get("content")
        if isinstance(content, dict):
            return next(iter(content), default)
    elif operation.request_body is not None and operation.request_body.content:
        return next(iter(operation.request_body.content))

    if operation.consumes:
        return operation.consumes[0]
    if document.consumes:
        return document.consumes[0]
    return default


def _raw_request_body(
    path: str,
    method: str,
    raw_document: dict[str, Any],
) -> Optional[dict[str, Any]]:
    """Look the operation's ``requestBody`` up in the raw document, following ``$ref``."""
    paths = raw_document.get("paths")
    path_item = paths.get(path) if isinstance(paths, dict) else None
    operation = path_item.get(method.lower()) if isinstance(path_item, dict) else None
    body = operation.get("requestBody") if isinstance(operation, dict) else None
    if isinstance(body, dict) and isinstance(body.get("$ref"), str):
        try:
            body = resolve_pointer(body["$ref"], raw_document)
        except SpecParseError as exc:
            logger.debug("requestBody of %s %s: %s", method, path, exc)
            return None
    return body if isinstance(body, dict) else None


def json_media_schema(body_node: dict[str, Any]) -> Optional[dict[str, Any]]:
    """Return the schema of the first media type whose key contains ``json``."""
    content = body_node.get("content")
    if not isinstance(content, dict):
        return None
    for media_key, media in content.items():
        if "json" in str(media_key).lower():
            schema = media.get("schema") if isinstance(media, dict) else None
            return schema if isinstance(schema, dict) else None
    return None


def _synthesize_body(
    schema: dict[str, Any],
    synthesizer: ExampleSynthesizer,
    max_depth: int,
    label: str,
) -> str:
    """Synthesize and serialize a body; any failure yields ``"{}"``."""
    try:
        return to_json(synthesizer.synthesize(schema, 0, max_depth))
    except Exception as exc:
        logger.warning("Could not generate body example for %s: %s", label, exc)
        return EMPTY_BODY


# ---------------------------------------------------------------------------
# Operation conversion
# ---------------------------------------------------------------------------


def iter_raw_operations(
    raw_document: dict[str, Any],
) -> Iterator[tuple[str, HTTPMethod, dict[str, Any]]]:
    """Yield ``(path, method, path_item)`` for every declared operation.

    Paths are walked on the raw tree in document order and methods in
    :class:`~specport.models.HTTPMethod` order. Path items that are not
    objects are ignored.
    """
    paths = raw_document.get("paths")
    if not isinstance(paths, dict):
        return
    for path, path_item in paths.items():
        if not isinstance(path_item, dict):
            logger.debug("Path item %s is not an object; ignored", path)
            continue
        for method in HTTPMethod:
            if path_item.get(method.value) is not None:
                yield path, method, path_item


def parse_operation(
    path_item: dict[str, Any],
    method: HTTPMethod,
) -> tuple[Operation, list[Parameter]]:
    """Validate one raw operation together with its path-level parameters.

    Raises:
        pydantic.ValidationError: If either does not match the typed model.
    """
    operation = Operation.model_validate(path_item[method.value])
    path_parameters = _PARAMETER_LIST.validate_python(path_item.get("parameters") or [])
    return operation, path_parameters


def convert_operation(
    path: str,
    method: str,
    operation: Operation,
    document: SwaggerDocument,
    raw_document: dict[str, Any],
    synthesizer: ExampleSynthesizer,
    settings: Optional[ImportSettings] = None,
    path_parameters: Iterable[Parameter] = (),
) -> RequestRecord:
    """Convert one operation into a :class:`~specport.models.RequestRecord`.

    Args:
        path: The path template (e.g. ``"/pets/{petId}"``).
        method: HTTP method; any case.
        operation: The typed operation.
        document: The typed document skeleton (base URL, ``consumes``).
        raw_document: The original JSON tree used for ``$ref`` lookups and
            request-body schemas.
        synthesizer: Synthesizer bound to *raw_document*.
        settings: Depth caps and default content type.
        path_parameters: Parameters declared on the path item.

    Returns:
        The populated request record.

    Raises:
        SpecParseError: If a ``$ref`` parameter cannot be followed.  The
            importer treats this as a per-operation failure.
    """
    settings = settings or ImportSettings()
    method_upper = method.upper()
    label = f"{method_upper} {path}"

    body_node = None
    if operation.request_body is not None:
        body_node = _raw_request_body(path, method, raw_document)
        if body_node is None:
            body_node = operation.request_body.model_dump(by_alias=True, exclude_none=True)

    request = RequestRecord(
        name=operation.summary if operation.summary and operation.summary.strip() else label,
        method=method_upper,
        url=f"{base_url(document)}{path}",
        description=operation.description,
        operation_id=operation.operation_id,
        content_type=content_type_for(
            operation, document, body_node, settings.default_content_type
        ),
    )

    params = merge_parameters(
        [resolve_parameter(p, raw_document) for p in path_parameters],
        [resolve_parameter(p, raw_document) for p in operation.parameters],
    )
    parsed = split_parameters(params, synthesizer, settings.parameter_max_depth)

    request.headers = dict(parsed.headers)
    if parsed.cookies:
        cookie_str = "; ".join(f"{k}={v}" for k, v in parsed.cookies.items())
        existing = request.headers.get("Cookie")
        request.headers["Cookie"] = f"{existing}; {cookie_str}" if existing else cookie_str
    request.path_variables = dict(parsed.path)
    if parsed.query:
        query_string = "&".join(f"{k}={v}" for k, v in parsed.query.items())
        request.url += f"?{query_string}"

    if body_node is not None:
        schema = json_media_schema(body_node)
        if schema is None:
            logger.debug("No JSON media type for %s; using empty body", label)
            request.body = EMPTY_BODY
        else:
            request.body = _synthesize_body(
                schema, synthesizer, settings.body_max_depth, label
            )
            request.request_body_schema_json = json.dumps(schema, ensure_ascii=False)
    elif parsed.body is not None and parsed.body.schema_ is not None:
        schema = parsed.body.schema_.to_node()
        request.body = _synthesize_body(schema, synthesizer, settings.body_max_depth, label)
        request.request_body_schema_json = json.dumps(schema, ensure_ascii=False)

    if operation.tags:
        request.tags = list(operation.tags)

    return request


def folder_name(operation: Operation) -> str:
    """Return the folder an operation is grouped under: its first tag, or ``""``."""
    return operation.tags[0] if operation.tags else ""
