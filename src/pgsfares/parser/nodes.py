"""Lenient access to decoded JSON payloads.

API responses arrive as the plain ``dict``/``list``/scalar tree produced by
:meth:`httpx.Response.json`. Nothing about that tree is guaranteed: keys go
missing, values come back ``null`` or with the wrong JSON kind. This module
wraps one object node in a :class:`NodeReader` that reads fields
optimistically and records every required field it could not read, so a
decoder can extract everything first and then fail once, naming all the
problems.

Example::

    reader = NodeReader(node, "language")
    code = reader.string("code")
    name = reader.string("name")
    reader.raise_if_missing()        # InvalidInputError naming both fields
"""

from __future__ import annotations

import re
from datetime import date, time
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from pgsfares.exceptions import InvalidInputError


def get_path(node: Any, *keys: str | int) -> Any:
    """Walk *keys* through nested objects/arrays, returning ``None`` when any step is absent."""
    current = node
    for key in keys:
        if isinstance(key, int):
            if not isinstance(current, list) or not -len(current) <= key < len(current):
                return None
            current = current[key]
        else:
            if not isinstance(current, dict):
                return None
            current = current.get(key)
    return current


_ISO_DATE_TIME = re.compile(
    r"(\d{4}-\d{2}-\d{2})"
    r"(?:[T ](\d{2}:\d{2}(?::\d{2})?)(?:\.\d+)?(?:Z|[+-]\d{2}:?\d{2})?)?",
    re.ASCII,
)


def parse_date(value: Any) -> Optional[date]:
    """Parse an ISO date or date-time string to a date, or ``None`` if it is not one.

    A time-of-day part (and any offset) is discarded, but it must still be a
    valid time. Fractions of a second may carry any number of digits.
    """
    if not isinstance(value, str):
        return None
    match = _ISO_DATE_TIME.fullmatch(value)
    if match is None:
        return None
    day, clock = match.groups()
    try:
        parsed = date.fromisoformat(day)
        if clock:
            time.fromisoformat(clock)
    except ValueError:
        return None
    return parsed


def parse_uuid(value: Any) -> Optional[UUID]:
    """Parse a GUID string, or ``None`` if it is not one."""
    if not isinstance(value, str):
        return None
    try:
        return UUID(value)
    except ValueError:
        return None


class NodeReader:
    """Read typed fields from one JSON object node.

    Every accessor returns ``None`` for a required field it could not read
    and remembers the field name; :meth:`raise_if_missing` then fails with a
    single :class:`~pgsfares.exceptions.InvalidInputError`. A node that is
    not an object at all makes every field missing.

    Args:
        node: The raw JSON node.
        what: Entity name used in error messages (e.g. ``"port"``).
    """

    def __init__(self, node: Any, what: str, prefix: str = "") -> None:
        self._node = node if isinstance(node, dict) else {}
        self._what = what
        self._prefix = prefix
        self._missing: list[str] = []
        self._silent = False
        if not isinstance(node, dict):
            self._missing.append(prefix.rstrip(".") or "<object>")

    @property
    def missing(self) -> list[str]:
        return list(self._missing)

    def raw(self, key: str) -> Any:
        return self._node.get(key)

    def _require(self, key: str, value: Any, required: bool) -> Any:
        if value is None and required:
            self.flag(key)
        return value

    def flag(self, key: str) -> None:
        """Record *key* as missing or invalid."""
        if not self._silent:
            self._missing.append(f"{self._prefix}{key}")

    def child(self, key: str, required: bool = True) -> NodeReader:
        """Return a reader for the object under *key* that reports into this one.

        Fields read through the child are named ``key.field`` in errors. If
        the object itself is absent only *key* is reported.
        """
        value = self.obj(key, required)
        reader = NodeReader(value or {}, self._what, prefix=f"{self._prefix}{key}.")
        reader._missing = self._missing
        reader._silent = value is None
        return reader

    def string(self, key: str, required: bool = True) -> Optional[str]:
        value = self._node.get(key)
        return self._require(key, value if isinstance(value, str) else None, required)

    def boolean(self, key: str, required: bool = True) -> Optional[bool]:
        value = self._node.get(key)
        return self._require(key, value if isinstance(value, bool) else None, required)

    def decimal(self, key: str, required: bool = True) -> Optional[Decimal]:
        return self._require(key, _to_decimal(self._node.get(key)), required)

    def array(self, key: str, required: bool = True) -> Optional[list[Any]]:
        value = self._node.get(key)
        return self._require(key, value if isinstance(value, list) else None, required)

    def obj(self, key: str, required: bool = True) -> Optional[dict[str, Any]]:
        value = self._node.get(key)
        return self._require(key, value if isinstance(value, dict) else None, required)

    def date(self, key: str, required: bool = True) -> Optional[date]:
        return self._require(key, parse_date(self._node.get(key)), required)

    def uuid(self, key: str, required: bool = False) -> Optional[UUID]:
        return self._require(key, parse_uuid(self._node.get(key)), required)

    def raise_if_missing(self) -> None:
        """Raise if any required field read so far was absent or malformed."""
        if self._missing:
            raise InvalidInputError(
                f"JSON node does not provide proper {self._what} data "
                f"(missing or invalid: {', '.join(self._missing)}).",
                fields=self._missing,
            )


def _to_decimal(value: Any) -> Optional[Decimal]:
    # bool is an int subclass but never a valid amount
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return Decimal(str(value))


def string_items(values: list[Any], what: str) -> list[str]:
    """Return *values* if every element is a string, else raise."""
    if not all(isinstance(value, str) for value in values):
        raise InvalidInputError(f"JSON node does not provide proper {what} data.")
    return list(values)


def require_envelope(payload: Any, key: str) -> list[Any]:
    """Return the array stored under *key* in a response envelope.

    Raises:
        InvalidInputError: If the payload is not an object or *key* is not
            an array.
    """
    value = get_path(payload, key)
    if not isinstance(value, list):
        raise InvalidInputError(
            f"Response does not contain the '{key}' list.", fields=[key]
        )
    return value
