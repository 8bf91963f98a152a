"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~pgsfares.exceptions.PgsfaresError` subclass.
Shell wrappers can inspect the exit code of the ``pgsfares`` command to
tell a rejected argument from an unreachable backend without parsing stderr.

Example::

    $ pgsfares fares SAW ADB --currency XYZ
    $ echo $?
    2   # EXIT_INVALID_USAGE -- the currency has no cheapest-fare support
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with an argument that violates a business rule."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The remote API returned an error status or reported itself unavailable."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_INVALID_INPUT = 7
"""The remote API returned a payload that could not be decoded."""
