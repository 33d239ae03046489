"""specport -- Import Swagger 2.0 / OpenAPI 3.x documents into request collections.

This package turns an OpenAPI document (pasted JSON, a local file, or a remote
URL) into an :class:`~specport.models.ApiCollection`: a tree of folders, one
per tag, each holding ready-to-send request records with example parameters
and request bodies synthesized from the document's schemas.

Typical workflow::

    specport validate petstore.json             # sanity-check the document
    specport import petstore.json -o pets.json  # write the collection as JSON

Modules:
    app: Typer application factory and CLI entry point.
    models: Pydantic models shared across the entire package.
    config: XDG-aware import settings with precedence resolution.
    importer: The import service tying validation, resolution and conversion.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
