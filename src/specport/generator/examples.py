"""Synthesize example values from JSON Schema nodes.

Given a schema node -- a raw dict from the document, or a typed
:class:`~specport.models.Schema` -- :class:`ExampleSynthesizer` produces a
structurally valid example: objects with every declared property, arrays
with exactly one item, and primitives chosen by ``type`` and ``format``.

Per node the priority is:

1. a literal ``example`` is returned verbatim;
2. a ``$ref`` is handed to the :class:`~specport.parser.resolver.ReferenceResolver`
   at ``depth + 1`` and its result returned as-is;
3. otherwise the node is dispatched on ``type``.

Synthesis is total: malformed nodes fall back to ``"example"`` and the depth
ceiling plus the resolver's cycle detection guarantee termination on
arbitrary, possibly self-referential, documents.
"""

from __future__ import annotations

import copy
import json
import uuid
from datetime import date, datetime, timezone
from typing import Any, Optional

from specport.models import Schema
from specport.parser.resolver import (
    BODY_MAX_DEPTH,
    ReferenceResolver,
    depth_limit_marker,
)

FALLBACK_EXAMPLE = "example"
PLACEHOLDER_OBJECT = {"example": "value"}

_STRING_FORMATS = {
    "email": lambda: "user@example.com",
    "date": lambda: date.today().isoformat(),
    "date-time": lambda: datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
    "uuid": lambda: str(uuid.uuid4()),
    "uri": lambda: "https://example.com",
    "password": lambda: "password123",
}

_INT64_EXAMPLE = 1234567890
_INTEGER_EXAMPLE = 123
_NUMBER_EXAMPLE = 123.45


def _schema_type(node: dict[str, Any]) -> Optional[str]:
    """Return the lower-cased ``type`` of *node*.

    OpenAPI 3.1 type arrays (``["string", "null"]``) yield their first
    non-null entry.  Missing or non-string types yield ``None``.
    """
    value = node.get("type")
    if isinstance(value, list):
        value = next((t for t in value if isinstance(t, str) and t != "null"), None)
    if isinstance(value, str):
        return value.strip().lower()
    return None


def _schema_format(node: dict[str, Any]) -> Optional[str]:
    value = node.get("format")
    return value.strip().lower() if isinstance(value, str) else None


class ExampleSynthesizer:
    """Build example payloads for the schemas of one document.

    Owns a :class:`~specport.parser.resolver.ReferenceResolver` over the raw
    document; create one synthesizer per import so cycle state is never
    shared.

    Args:
        document: The original raw JSON document used to resolve ``$ref``.
            ``None`` means every reference is reported as not found.
    """

    def __init__(self, document: Optional[dict[str, Any]] = None) -> None:
        self._document: dict[str, Any] = document if document is not None else {}
        self.resolver = ReferenceResolver(self._document, self.synthesize)

    def synthesize(
        self,
        node: Any,
        depth: int = 0,
        max_depth: int = BODY_MAX_DEPTH,
    ) -> Any:
        """Return an example value for *node*.

        Args:
            node: A raw schema dict or a :class:`~specport.models.Schema`.
            depth: Current depth; ``0`` for a root schema.
            max_depth: Depth ceiling.  Past it the result is
                ``{"_depth_limit_reached": max_depth}``.

        Returns:
            A JSON-compatible value (dict, list, str, int, float, bool).
        """
        if depth > max_depth:
            return depth_limit_marker(max_depth)

        if isinstance(node, Schema):
            node = node.to_node()
        if not isinstance(node, dict):
            return FALLBACK_EXAMPLE

        if node.get("example") is not None:
            return copy.deepcopy(node["example"])

        if node.get("$ref") is not None:
            return self.resolver.resolve_ref(node["$ref"], depth + 1, max_depth)

        schema_type = _schema_type(node)
        if schema_type == "object":
            return self._object_example(node, depth, max_depth)
        if schema_type == "array":
            return self._array_example(node, depth, max_depth)
        if schema_type == "string":
            return self._string_example(node)
        if schema_type == "integer":
            return _INT64_EXAMPLE if _schema_format(node) == "int64" else _INTEGER_EXAMPLE
        if schema_type == "number":
            return _NUMBER_EXAMPLE
        if schema_type == "boolean":
            return True
        if schema_type is None and node.get("properties") is not None:
            return self._object_example(node, depth, max_depth)
        return FALLBACK_EXAMPLE

    def _object_example(self, node: dict[str, Any], depth: int, max_depth: int) -> Any:
        properties = node.get("properties")
        if isinstance(properties, dict) and properties and depth < max_depth:
            result: dict[str, Any] = {}
            for name, prop_schema in properties.items():
                if isinstance(prop_schema, dict):
                    result[name] = self.synthesize(prop_schema, depth + 1, max_depth)
            return result if result else dict(PLACEHOLDER_OBJECT)
        if depth >= max_depth:
            return depth_limit_marker(max_depth)
        return dict(PLACEHOLDER_OBJECT)

    def _array_example(self, node: dict[str, Any], depth: int, max_depth: int) -> list[Any]:
        items = node.get("items")
        if isinstance(items, list):
            items = items[0] if items else None
        if isinstance(items, dict) and depth < max_depth:
            return [self.synthesize(items, depth + 1, max_depth)]
        if depth >= max_depth:
            return [depth_limit_marker(max_depth)]
        return [dict(PLACEHOLDER_OBJECT)]

    @staticmethod
    def _string_example(node: dict[str, Any]) -> str:
        factory = _STRING_FORMATS.get(_schema_format(node) or "")
        return factory() if factory is not None else "string"

    def example_json(self, schema: Any, max_depth: int = BODY_MAX_DEPTH) -> str:
        """Synthesize *schema* from depth 0 and serialize it with 2-space indentation.

        Returns ``"{}"`` if anything goes wrong, so a single bad schema never
        breaks the caller.
        """
        try:
            return to_json(self.synthesize(schema, 0, max_depth))
        except Exception:
            return "{}"


def to_json(value: Any) -> str:
    """Serialize an example with stable indentation."""
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def example_to_text(value: Any) -> str:
    """Render an example as the string that goes into a header or query string."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
    return str(value)


def generate_example_json(
    schema: Any,
    document: Optional[dict[str, Any]] = None,
    max_depth: int = BODY_MAX_DEPTH,
) -> str:
    """One-shot helper: synthesize *schema* against *document* with fresh resolver state."""
    return ExampleSynthesizer(document).example_json(schema, max_depth=max_depth)
