"""Exception hierarchy for specport.

All exceptions inherit from :class:`SpecportError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`specport.exit_codes`.
The top-level error handler in :func:`specport.app.main` catches
``SpecportError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Only document-level failures are raised.  Problems inside the schema graph
(circular or dangling ``$ref``, depth exhaustion) and per-operation conversion
failures never surface as exceptions; they degrade to sentinel values or are
logged and skipped.

Subclass hierarchy::

    SpecportError (exit 1)
    +-- InvalidUsageError       (exit 2)
    +-- DocumentFetchError      (exit 6)
    +-- SpecParseError          (exit 7)
    |   +-- InvalidDocumentError (exit 7)
    +-- ConfigError             (exit 1)
"""

from __future__ import annotations

from typing import Optional

from specport.exit_codes import (
    EXIT_FETCH_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_SPEC_PARSE_ERROR,
)


class SpecportError(Exception):
    """Base exception for all specport errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`specport.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SpecportError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class DocumentFetchError(SpecportError):
    """Raised when a remote document could not be retrieved.

    Covers non-2xx responses, timeouts, network failures, cancellation and
    empty bodies.  Distinct from :class:`InvalidDocumentError`, which means
    the document *was* retrieved but is not a usable API description.

    Args:
        message: Human-readable error description.
        status_code: HTTP status of the failed response, ``0`` when no
            response was received.
        timed_out: Whether the request hit the configured timeout.
        cancelled: Whether the caller cancelled the request.
    """

    exit_code = EXIT_FETCH_ERROR

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        timed_out: bool = False,
        cancelled: bool = False,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.timed_out = timed_out
        self.cancelled = cancelled


class SpecParseError(SpecportError):
    """Raised when input cannot be read or parsed as a JSON document."""

    exit_code = EXIT_SPEC_PARSE_ERROR


class InvalidDocumentError(SpecParseError):
    """Raised when a document parses as JSON but is not a usable Swagger/OpenAPI document.

    Args:
        message: Human-readable error description.
        warnings: Non-fatal validator warnings collected before the failure.
    """

    def __init__(self, message: str, warnings: Optional[list[str]] = None):
        super().__init__(message)
        self.warnings = list(warnings or [])


class ConfigError(SpecportError):
    """Raised for configuration problems (invalid JSON, bad values, unknown keys)."""

    exit_code = EXIT_GENERIC_FAILURE
