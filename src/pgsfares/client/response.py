"""Response body extraction -- maps an :class:`httpx.Response` to a JSON tree.

The Pegasus backends answer with JSON objects. :func:`extract_json` hands
the decoded tree to :mod:`pgsfares.parser` and turns an empty or non-JSON
body into an :class:`~pgsfares.exceptions.InvalidInputError`, the same
error a malformed JSON object would eventually raise.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from pgsfares.exceptions import InvalidInputError


def extract_json(response: httpx.Response) -> Any:
    """Decode the body of *response* as JSON.

    Args:
        response: A successful :class:`httpx.Response`.

    Returns:
        The decoded JSON value (usually a ``dict``).

    Raises:
        InvalidInputError: If the body is empty or not valid JSON.
    """
    if not response.content:
        raise InvalidInputError(f"Empty response body from {response.request.url}")
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidInputError(
            f"Response from {response.request.url} is not valid JSON: {exc}"
        ) from exc
