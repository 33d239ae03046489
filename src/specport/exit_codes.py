"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~specport.exceptions.SpecportError` subclass.
Shell wrappers can tell "could not download the document" apart from
"downloaded it, but it is not an API document" without parsing stderr.

Example::

    $ specport import https://example.com/openapi.json
    $ echo $?
    6   # EXIT_FETCH_ERROR -- the document could not be retrieved
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_FETCH_ERROR = 6
"""The document could not be retrieved (HTTP error, timeout, network failure, cancellation)."""

EXIT_SPEC_PARSE_ERROR = 7
"""The document was read but could not be parsed or failed validation."""

EXIT_CANCELLED = 130
"""Interrupted with Ctrl-C (128 + SIGINT)."""
