"""Exception hierarchy for pgsfares.

All exceptions inherit from :class:`PgsfaresError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`pgsfares.exit_codes`.
Library callers catch the specific subclasses; the CLI entry point in
:func:`pgsfares.app.main` catches ``PgsfaresError`` and exits with the
appropriate code.

Subclass hierarchy::

    PgsfaresError (exit 1)
    +-- InvalidInputError          (exit 7)
    +-- InvalidArgumentError       (exit 2)
    +-- ClientNotInitializedError  (exit 2)
    +-- LookupAmbiguityError       (exit 7)
    +-- ServiceUnavailableError    (exit 5)
    +-- NotFoundError              (exit 4)
    +-- ServerError                (exit 5)
    +-- ConnectionError_           (exit 6)
    +-- ConfigError                (exit 1)
"""

from __future__ import annotations

from typing import Optional, Sequence

from pgsfares.exit_codes import (
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_INPUT,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class PgsfaresError(Exception):
    """Base exception for all pgsfares errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidInputError(PgsfaresError):
    """Raised by a decoder when a payload lacks required structure.

    ``fields`` lists every required field that was missing, ``null`` or of
    the wrong JSON kind, so a single error describes the whole node.

    Args:
        message: Human-readable reason.
        fields: Names of the offending payload fields, if known.
    """

    exit_code = EXIT_INVALID_INPUT

    def __init__(self, message: str, fields: Optional[Sequence[str]] = None):
        super().__init__(message)
        self.fields: list[str] = list(fields or [])


class InvalidArgumentError(PgsfaresError, ValueError):
    """Raised before any request when a caller-supplied argument breaks a rule.

    Also a :class:`ValueError`, so plain ``except ValueError`` handlers keep
    working for out-of-range :class:`~pgsfares.models.YearMonth` values.
    """

    exit_code = EXIT_INVALID_USAGE


class ClientNotInitializedError(PgsfaresError):
    """Raised when an operation runs before the client finished initialising."""

    exit_code = EXIT_INVALID_USAGE


class LookupAmbiguityError(PgsfaresError):
    """Raised when a lookup that must be unique matches more than one entity."""

    exit_code = EXIT_INVALID_INPUT


class ServiceUnavailableError(PgsfaresError):
    """Raised at construction time when the availability probe reports ``False``."""

    exit_code = EXIT_SERVER_ERROR


class NotFoundError(PgsfaresError):
    """Raised when the API returns HTTP 404 (resource not found)."""

    exit_code = EXIT_NOT_FOUND


class ServerError(PgsfaresError):
    """Raised when the API returns any other non-success HTTP status."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(PgsfaresError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ConfigError(PgsfaresError):
    """Raised for configuration problems (invalid JSON, bad environment values)."""

    exit_code = EXIT_GENERIC_FAILURE
