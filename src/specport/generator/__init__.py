"""Request generation -- example payloads and request records.

This sub-package is responsible for the second half of the specport pipeline:
turning the operations of a validated document into
:class:`~specport.models.RequestRecord` objects with example bodies,
headers and query strings.

Typical usage::

    from specport.generator import ExampleSynthesizer

    synthesizer = ExampleSynthesizer(raw_document)
    print(synthesizer.example_json({"$ref": "#/components/schemas/Pet"}))

Sub-modules:

* :mod:`~specport.generator.examples` -- Synthesize example values from
  schema nodes, delegating ``$ref`` to the resolver.
* :mod:`~specport.generator.converter` -- Map one operation to a request
  record, normalising the Swagger 2.0 and OpenAPI 3.x dialects.
"""

from specport.generator.converter import convert_operation
from specport.generator.examples import ExampleSynthesizer, generate_example_json

__all__ = ["ExampleSynthesizer", "convert_operation", "generate_example_json"]
