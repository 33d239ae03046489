"""Document parser -- load, validate and resolve ``$ref`` pointers.

This sub-package is responsible for the first half of the specport pipeline:
turning raw Swagger 2.0 / OpenAPI 3.x JSON text (local file, stdin or remote
URL) into a validated document whose references can be followed safely.

Typical usage::

    from specport.parser import load_text, validate_document

    text = load_text("petstore.json")
    result = validate_document(text)
    if result.is_valid:
        print(result.detected_version, result.api_count)

Sub-modules:

* :mod:`~specport.parser.loader` -- I/O layer (URL, file, stdin) plus JSON
  parsing.
* :mod:`~specport.parser.validator` -- Structural sanity check and dialect
  detection.
* :mod:`~specport.parser.resolver` -- ``$ref`` resolution with cycle
  detection and a depth ceiling.
"""

from specport.parser.loader import load_text, parse_json
from specport.parser.resolver import ReferenceResolver, resolve_pointer
from specport.parser.validator import validate_document

__all__ = [
    "load_text",
    "parse_json",
    "validate_document",
    "ReferenceResolver",
    "resolve_pointer",
]
