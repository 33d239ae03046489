"""Resolve ``$ref`` JSON Reference pointers while synthesizing examples.

Swagger and OpenAPI documents use ``$ref`` pointers (e.g.,
``{"$ref": "#/components/schemas/Pet"}``) to share schemas, and those schemas
may reference each other in cycles (a ``Category`` with a ``parent:
Category``, or ``Order -> Customer -> Order``).  The
:class:`ReferenceResolver` looks referenced schemas up in the **original,
untyped** JSON tree, where vendor extensions and shapes the typed skeleton
does not model are still present, and hands them back to the example
synthesizer.

Two independent guards keep resolution finite:

* an **in-flight set** of the ``$ref`` strings currently being resolved on
  the call stack.  Meeting a ref that is already in flight returns a
  ``{"_circular_reference": "<Name>"}`` marker instead of recursing.  The ref
  is removed again in a ``finally`` block on every exit path, so the set
  only ever describes the current stack, never history;
* a **depth ceiling**.  Past ``max_depth`` a ``{"_depth_limit_reached":
  max_depth}`` marker is returned, which also bounds wide acyclic graphs.

Resolution never raises.  External references, unknown pointer shapes and
missing targets degrade to ``{"error": "..."}`` markers embedded in the
example output.

:func:`resolve_pointer` is the plain RFC 6901 lookup used for references
that are substituted rather than synthesized (``#/components/parameters/X``,
``#/components/requestBodies/X``).
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from specport.exceptions import SpecParseError

logger = logging.getLogger(__name__)

BODY_MAX_DEPTH = 10
"""Default depth cap for request-body schemas."""

PARAMETER_MAX_DEPTH = 5
"""Default depth cap for parameter schemas."""

CIRCULAR_REFERENCE_KEY = "_circular_reference"
DEPTH_LIMIT_KEY = "_depth_limit_reached"
ERROR_KEY = "error"

# Pointer prefixes naming schemas, per dialect.
_SCHEMA_PREFIXES = (
    ("components", "schemas"),  # OpenAPI 3.x
    ("definitions",),  # Swagger 2.0
)

SynthesizeFn = Callable[[dict[str, Any], int, int], Any]


def depth_limit_marker(max_depth: int) -> dict[str, Any]:
    """Return the sentinel emitted where the depth ceiling cuts synthesis off."""
    return {DEPTH_LIMIT_KEY: max_depth}


def reference_name(ref: str) -> str:
    """Return the last pointer segment of *ref* (the schema name), unescaped."""
    name = ref.rsplit("/", 1)[-1]
    return _unescape(name) or "unknown"


def _unescape(segment: str) -> str:
    """Undo RFC 6901 escaping (``~1`` for ``/``, ``~0`` for ``~``)."""
    return segment.replace("~1", "/").replace("~0", "~")


def resolve_pointer(ref: str, root: dict[str, Any]) -> Any:
    """Resolve a single internal ``$ref`` string against *root*.

    Parses JSON Pointer references like ``#/components/parameters/limit``
    and navigates the root dict to locate the referenced value.

    Args:
        ref: The ``$ref`` string.
        root: The raw document to resolve against.

    Returns:
        The value found at the referenced path.

    Raises:
        SpecParseError: If the reference is external (does not start with
            ``#/``), or if any segment in the pointer path does not exist.
    """
    if not isinstance(ref, str) or not ref.startswith("#/"):
        raise SpecParseError(
            f"External $ref not supported: {ref}. "
            "Only internal references (#/...) are handled."
        )

    current: Any = root
    for segment in ref[2:].split("/"):
        segment = _unescape(segment)

        if isinstance(current, dict):
            if segment not in current:
                raise SpecParseError(
                    f"Cannot resolve $ref '{ref}': key '{segment}' not found at path"
                )
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as exc:
                raise SpecParseError(
                    f"Cannot resolve $ref '{ref}': invalid array index '{segment}'"
                ) from exc
        else:
            raise SpecParseError(
                f"Cannot resolve $ref '{ref}': "
                f"cannot navigate into {type(current).__name__}"
            )

    return current


class ReferenceResolver:
    """Resolve schema ``$ref`` pointers for one import.

    Holds the raw document and the in-flight reference set.  One instance
    belongs to exactly one import call (or one standalone example
    generation); it is not shared between threads or concurrent imports.

    Args:
        document: The original raw JSON document.
        synthesize: Callback ``(schema_node, depth, max_depth) -> value``
            invoked on the referenced schema.  Normally
            :meth:`~specport.generator.examples.ExampleSynthesizer.synthesize`,
            which may call back into :meth:`resolve_ref`.

    Example::

        resolver = ReferenceResolver(raw, synthesizer.synthesize)
        resolver.resolve_ref("#/components/schemas/Pet", depth=1, max_depth=10)
    """

    def __init__(self, document: dict[str, Any], synthesize: SynthesizeFn) -> None:
        self._document = document
        self._synthesize = synthesize
        self._in_flight: set[str] = set()

    @property
    def in_flight(self) -> frozenset[str]:
        """The references currently on the resolution stack."""
        return frozenset(self._in_flight)

    def resolve_ref(
        self,
        ref: Any,
        depth: int = 0,
        max_depth: int = BODY_MAX_DEPTH,
    ) -> Any:
        """Resolve *ref* and return the example synthesized from its target.

        Args:
            ref: The ``$ref`` value from a schema node.
            depth: Current synthesis depth (already incremented by the caller).
            max_depth: Depth ceiling for this walk.

        Returns:
            The synthesized example, or one of the sentinel markers
            ``{"_depth_limit_reached": max_depth}``,
            ``{"_circular_reference": name}`` or ``{"error": message}``.
        """
        if depth > max_depth:
            return depth_limit_marker(max_depth)

        if not isinstance(ref, str) or not ref.startswith("#/"):
            return {ERROR_KEY: f"Unresolvable reference: {ref}"}

        if ref in self._in_flight:
            logger.debug("Circular reference %s cut at depth %d", ref, depth)
            return {CIRCULAR_REFERENCE_KEY: reference_name(ref)}

        self._in_flight.add(ref)
        try:
            target = self._lookup_schema(ref)
            if target is None:
                return {ERROR_KEY: f"Reference not found: {ref}"}
            return self._synthesize(target, depth + 1, max_depth)
        except Exception as exc:
            logger.debug("Failed to resolve %s: %s", ref, exc)
            return {ERROR_KEY: f"Failed to resolve reference: {exc}"}
        finally:
            self._in_flight.discard(ref)

    def _lookup_schema(self, ref: str) -> dict[str, Any] | None:
        """Find the schema object *ref* points at, or ``None``.

        Only pointers under ``#/components/schemas/`` and ``#/definitions/``
        are followed; anything else counts as not found.
        """
        segments = ref[2:].split("/")
        for prefix in _SCHEMA_PREFIXES:
            if len(segments) > len(prefix) and tuple(segments[: len(prefix)]) == prefix:
                break
        else:
            return None

        try:
            target = resolve_pointer(ref, self._document)
        except SpecParseError:
            return None
        return target if isinstance(target, dict) else None
