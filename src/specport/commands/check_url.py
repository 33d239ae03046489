"""check-url command -- check whether a URL serves a JSON document.

Performs the same single fetch the URL import does, without importing, and
reports status, timing, content type and length.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import typer

from specport.exit_codes import EXIT_FETCH_ERROR
from specport.output import error, format_response, success


def check_url_command(
    url: str = typer.Argument(help="Document URL (http or https)."),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Timeout in seconds."
    ),
) -> None:
    """Check that URL is reachable and serves a non-empty JSON body.

    Exits with code 6 when the URL is not accessible.

    Example::

        specport check-url https://petstore3.swagger.io/api/v3/openapi.json
        specport check-url https://example.com/openapi.json --timeout 10 --json
    """
    from specport.config import resolve_settings
    from specport.importer import SwaggerImporter

    importer = SwaggerImporter(resolve_settings(cli_timeout=timeout))
    result = asyncio.run(importer.validate_url(url))

    format_response(result.model_dump(mode="json"))
    if not result.is_accessible:
        error(result.error_message or f"{url} is not accessible")
        raise typer.Exit(code=EXIT_FETCH_ERROR)
    success(f"{url} is accessible ({result.response_time_ms}ms)")
