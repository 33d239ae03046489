"""Built-in CLI sub-commands for specport.

This package groups the Typer command modules that form the CLI's
top-level command tree:

* :mod:`~specport.commands.documents` -- ``validate``, ``import`` and
  ``example``: work with a document read from a file, stdin or URL.
* :mod:`~specport.commands.check_url` -- ``check-url``: check whether a URL
  serves a JSON document.
* :mod:`~specport.commands.config` -- view and modify global settings.

Each module either exports a :class:`typer.Typer` sub-application (for
multi-command groups like ``config``) or plain callback functions registered
directly on the root app (for single commands like ``validate``).
"""
