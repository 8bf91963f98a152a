"""pgsfares -- asynchronous client for the unofficial Pegasus Airlines fare API.

The API is undocumented and loosely typed. This package wraps its two
backends behind :class:`~pgsfares.client.PegasusClient`, decodes every
payload into frozen, validated models, and caches the slow-changing lists
(languages, currencies, the port matrix, departure countries, best-deals
cities) in memory under a configurable policy.

Typical usage::

    import asyncio
    from datetime import date

    from pgsfares import LIRA, PegasusClient, find_port

    async def main():
        async with PegasusClient() as client:
            countries = await client.get_departure_countries()
            saw = find_port(countries, "TR", "SAW")
            arrivals = await client.get_arrival_countries(saw)
            adb = find_port(arrivals, "TR", "ADB")
            months = await client.get_fares_months(saw, adb, date.today(), LIRA)

    asyncio.run(main())

Modules:
    client: The fare client and its HTTP transport.
    parser: Lenient JSON access and the domain decoders.
    cache: In-memory TTL caching.
    models: Pydantic models for configuration and domain entities.
    config: Configuration file and environment resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    app: The ``pgsfares`` command.
"""

__version__ = "0.1.0"

from pgsfares.cache import CachingMode  # noqa: E402
from pgsfares.client import PegasusClient  # noqa: E402
from pgsfares.models import LIRA, NO_FLIGHT, find_by_code, find_port  # noqa: E402

__all__ = [
    "LIRA",
    "NO_FLIGHT",
    "CachingMode",
    "PegasusClient",
    "find_by_code",
    "find_port",
]
