"""The Pegasus fare client -- one method per remote resource.

:class:`PegasusClient` composes :class:`~pgsfares.client.transport.AsyncTransport`,
the decoders of :mod:`pgsfares.parser` and a
:class:`~pgsfares.cache.CacheStore`. It owns the active response language
and enforces the rules that depend on more than one field, such as the
cheapest-fare support of a currency.

Initialisation runs once, in :meth:`PegasusClient.initialize` (called by
``async with`` and by :meth:`PegasusClient.create`):

1. Optionally probe the status endpoint; ``False`` raises
   :class:`~pgsfares.exceptions.ServiceUnavailableError`.
2. Fetch languages and currencies, warming both caches.
3. Select :attr:`~pgsfares.models.ClientConfig.default_language`.

Until that sequence completes every public operation raises
:class:`~pgsfares.exceptions.ClientNotInitializedError`.

Example::

    async with PegasusClient() as client:
        countries = await client.get_departure_countries()
        saw = find_port(countries, "TR", "SAW")
"""

from __future__ import annotations

import logging
import time
from datetime import date
from typing import Any, Optional

import httpx

from pgsfares.cache import CacheStore, ResourceKind
from pgsfares.cache.cache import Clock
from pgsfares.client.transport import AsyncTransport
from pgsfares.exceptions import (
    ClientNotInitializedError,
    InvalidArgumentError,
    ServiceUnavailableError,
)
from pgsfares.models import (
    BestDeal,
    BestDealsCity,
    CachingMode,
    ClientConfig,
    Country,
    Currency,
    FaresMonth,
    Language,
    Port,
    PortMatrixRow,
    find_by_code,
)
from pgsfares.parser import (
    decode_best_deals_cities_response,
    decode_best_deals_response,
    decode_countries_response,
    decode_currencies_response,
    decode_fares_months_response,
    decode_languages_response,
    decode_port_matrix_response,
    decode_status_response,
)

logger = logging.getLogger(__name__)

# www.flypgs.com API
DEPARTURE_COUNTRIES_ENDPOINT = "pm/dep"
ARRIVAL_COUNTRIES_ENDPOINT = "pm/arr"
FARES_ENDPOINT = "cheapfare/flight-calender-prices"

# web.flypgs.com API
STATUS_ENDPOINT = "cheapest-fare/status"
LANGUAGES_ENDPOINT = "common/languages"
CURRENCIES_ENDPOINT = "common/currencies"
PORT_MATRIX_ENDPOINT = "port-matrix"
BEST_DEALS_CITIES_ENDPOINT = "best-deals/cities"
BEST_DEALS_ENDPOINT = "best-deals"

DOMESTIC_LANGUAGE_CODE = "tr"


def _join(base: str, path: str) -> str:
    return f"{base.rstrip('/')}/{path}"


class PegasusClient:
    """Asynchronous client for the unofficial Pegasus fare API.

    Args:
        config: Endpoints, timeout, default language, caching mode and TTLs.
            Defaults to :class:`~pgsfares.models.ClientConfig`.
        check_status: Probe the status endpoint during initialisation and
            refuse to start when the service reports itself unavailable.
        http_client: Optional :class:`httpx.AsyncClient` to send requests
            through (closed with the client).
        clock: Monotonic time source for cache ages.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        check_status: bool = False,
        http_client: Optional[httpx.AsyncClient] = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self._config = config or ClientConfig()
        self._check_status = check_status
        self._transport = AsyncTransport(self._config, http_client)
        self._cache = CacheStore(self._config.caching_mode, self._config.ttl, clock)
        self._languages: list[Language] = []
        self._language: Optional[Language] = None
        self._initialized = False

    @classmethod
    async def create(
        cls,
        config: Optional[ClientConfig] = None,
        *,
        check_status: bool = False,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> PegasusClient:
        """Build and initialise a client. Release it with :meth:`aclose`."""
        client = cls(config, check_status=check_status, http_client=http_client)
        await client.initialize()
        return client

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    async def initialize(self) -> None:
        """Run the initialisation sequence described in the module docstring."""
        if self._initialized:
            return
        self._transport.open()
        try:
            if self._check_status and not await self._fetch_status():
                raise ServiceUnavailableError("The Pegasus API reports itself unavailable.")
            await self._cached_languages()
            await self._cached_currencies()
            self.change_language(self._config.default_language)
        except BaseException:
            await self._transport.aclose()
            raise
        self._initialized = True
        logger.info(
            "Client ready: %d languages, language=%s, caching=%s",
            len(self._languages),
            self._language.code if self._language else None,
            self.caching_mode.value,
        )

    async def aclose(self) -> None:
        self._initialized = False
        await self._transport.aclose()

    async def __aenter__(self) -> PegasusClient:
        await self.initialize()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------ #
    # State
    # ------------------------------------------------------------------ #

    @property
    def language(self) -> Optional[Language]:
        """The active response language, or ``None`` after an unknown code."""
        return self._language

    @property
    def languages(self) -> list[Language]:
        """Languages from the most recent fetch."""
        return list(self._languages)

    @property
    def caching_mode(self) -> CachingMode:
        return self._cache.caching_mode

    @caching_mode.setter
    def caching_mode(self, mode: CachingMode) -> None:
        self._cache.caching_mode = mode

    @property
    def cache(self) -> CacheStore:
        return self._cache

    def change_language(self, code: str) -> None:
        """Select the response language by *code* (case-insensitive).

        An unknown code leaves :attr:`language` as ``None`` rather than
        raising; language-dependent operations then refuse to run.
        """
        self._language = find_by_code(self._languages, code)
        if self._language is None:
            logger.warning("Unknown language code '%s'; no language selected", code)

    # ------------------------------------------------------------------ #
    # Public operations
    # ------------------------------------------------------------------ #

    async def get_status(self) -> bool:
        """Return whether the API reports itself available. Never cached."""
        self._ensure_initialized()
        return await self._fetch_status()

    async def get_languages(self) -> list[Language]:
        self._ensure_initialized()
        return await self._cached_languages()

    async def get_currencies(self) -> list[Currency]:
        self._ensure_initialized()
        return await self._cached_currencies()

    async def get_port_matrix(self, since_timestamp: int = 0) -> list[PortMatrixRow]:
        """Return the full route matrix.

        This downloads a few megabytes. *since_timestamp* is forwarded as
        ``lastUpdatedTimestamp``; the backend has been observed to return the
        whole matrix regardless, and a cached matrix is served without
        looking at it.
        """
        self._ensure_initialized()

        async def fetch() -> list[PortMatrixRow]:
            payload = await self._transport.get_json(
                _join(self._config.web_api_base_url, PORT_MATRIX_ENDPOINT),
                params={"lastUpdatedTimestamp": str(since_timestamp)},
                json_content_type=True,
            )
            return decode_port_matrix_response(payload)

        return await self._cache.get_or_refresh(ResourceKind.PORT_MATRIX, fetch)

    async def get_departure_countries(self) -> list[Country]:
        self._ensure_initialized()
        lang = self._language_code()

        async def fetch() -> list[Country]:
            payload = await self._transport.get_json(
                _join(self._config.api_base_url, f"{DEPARTURE_COUNTRIES_ENDPOINT}/{lang}")
            )
            return decode_countries_response(payload)

        return await self._cache.get_or_refresh(ResourceKind.DEPARTURE_COUNTRIES, fetch)

    async def get_arrival_countries(self, departure_port: Port) -> list[Country]:
        """Return the countries reachable from *departure_port*. Never cached."""
        self._ensure_initialized()
        lang = self._language_code()
        payload = await self._transport.get_json(
            _join(
                self._config.api_base_url,
                f"{ARRIVAL_COUNTRIES_ENDPOINT}/{lang}/{departure_port.code}",
            )
        )
        return decode_countries_response(payload)

    async def get_fares_months(
        self,
        departure_port: Port,
        arrival_port: Port,
        flight_date: date,
        currency: Currency,
    ) -> list[FaresMonth]:
        """Return the fare calendar for a route, starting at *flight_date*.

        Raises:
            InvalidArgumentError: If *currency* does not support cheapest-fare
                requests. No request is made in that case.
        """
        self._ensure_initialized()
        if not currency.supports_cheapest_fare:
            raise InvalidArgumentError(
                f"Currency '{currency.code}' does not support cheapest-fare requests."
            )

        payload = await self._transport.post_json(
            _join(self._config.api_base_url, FARES_ENDPOINT),
            {
                "depPort": departure_port.code,
                "arrPort": arrival_port.code,
                "flightDate": flight_date.strftime("%Y-%m-%d"),
                "currency": currency.code,
            },
        )
        return decode_fares_months_response(payload, departure_port, arrival_port, currency)

    async def get_cities_for_best_deals(self) -> list[BestDealsCity]:
        self._ensure_initialized()
        lang = self._language_code()

        async def fetch() -> list[BestDealsCity]:
            payload = await self._transport.get_json(
                _join(self._config.web_api_base_url, BEST_DEALS_CITIES_ENDPOINT),
                params={"language": lang},
                json_content_type=True,
            )
            return decode_best_deals_cities_response(payload)

        return await self._cache.get_or_refresh(ResourceKind.BEST_DEALS_CITIES, fetch)

    async def get_best_deals(
        self,
        departure_city: BestDealsCity,
        currency: Currency,
        page: int = 0,
    ) -> list[BestDeal]:
        """Return one page (zero-based, at most ten deals) of best deals.

        The ``domestic`` flag sent to the API is set when the active language
        is Turkish.
        """
        self._ensure_initialized()
        if page < 0:
            raise InvalidArgumentError(f"Page must not be negative (got {page}).")
        lang = self._language_code()
        body: dict[str, Any] = {
            "depCityCode": departure_city.code,
            "currency": currency.code,
            "domestic": lang == DOMESTIC_LANGUAGE_CODE,
            "page": page,
            "language": lang,
        }
        payload = await self._transport.post_json(
            _join(self._config.web_api_base_url, BEST_DEALS_ENDPOINT), body
        )
        return decode_best_deals_response(payload, departure_city, currency)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise ClientNotInitializedError(
                "Client is not initialised -- use 'async with' or PegasusClient.create()"
            )

    def _language_code(self) -> str:
        if self._language is None:
            raise InvalidArgumentError("No response language is selected.")
        return self._language.code.lower()

    async def _fetch_status(self) -> bool:
        payload = await self._transport.get_json(
            _join(self._config.web_api_base_url, STATUS_ENDPOINT), json_content_type=True
        )
        return decode_status_response(payload)

    async def _cached_languages(self) -> list[Language]:
        async def fetch() -> list[Language]:
            payload = await self._transport.get_json(
                _join(self._config.web_api_base_url, LANGUAGES_ENDPOINT), json_content_type=True
            )
            return decode_languages_response(payload)

        languages = await self._cache.get_or_refresh(ResourceKind.LANGUAGES, fetch)
        self._languages = list(languages)
        return languages

    async def _cached_currencies(self) -> list[Currency]:
        async def fetch() -> list[Currency]:
            payload = await self._transport.get_json(
                _join(self._config.web_api_base_url, CURRENCIES_ENDPOINT), json_content_type=True
            )
            return decode_currencies_response(payload)

        return await self._cache.get_or_refresh(ResourceKind.CURRENCIES, fetch)
