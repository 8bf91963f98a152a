"""HTTP client module for pgsfares.

Provides the fare client and the transport underneath it.

Classes:
    :class:`PegasusClient` -- one method per remote resource, with caching
    and the active response language.
    :class:`AsyncTransport` -- non-blocking GET/POST backed by
    :class:`httpx.AsyncClient`, returning JSON.

Example::

    from pgsfares.client import PegasusClient

    async with PegasusClient() as client:
        currencies = await client.get_currencies()
"""

from pgsfares.client.pegasus import PegasusClient
from pgsfares.client.transport import AsyncTransport

__all__ = ["PegasusClient", "AsyncTransport"]
