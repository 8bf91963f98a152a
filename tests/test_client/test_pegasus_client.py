"""Tests for PegasusClient: initialisation, caching and every operation."""

from __future__ import annotations

import json
from datetime import date
from decimal import Decimal

import httpx
import pytest

from conftest import (
    ARRIVALS_SAW_PATH,
    CITIES_PATH,
    CURRENCIES_PATH,
    DEALS_PATH,
    DEPARTURES_PATH,
    FARES_PATH,
    LANGUAGES_PATH,
    PORT_MATRIX_PATH,
    STATUS_PATH,
    FakeApi,
    FakeClock,
)
from pgsfares import LIRA, PegasusClient, find_by_code, find_port
from pgsfares.exceptions import (
    ClientNotInitializedError,
    InvalidArgumentError,
    InvalidInputError,
    ServerError,
    ServiceUnavailableError,
)
from pgsfares.models import BestDealsCity, CacheTTLConfig, CachingMode, ClientConfig, Currency


async def _open(api: FakeApi, config: ClientConfig | None = None, **kwargs) -> PegasusClient:
    client = PegasusClient(config, http_client=api.http_client(), **kwargs)
    await client.initialize()
    return client


# ---------------------------------------------------------------------------
# Initialisation
# ---------------------------------------------------------------------------


class TestInitialisation:
    @pytest.mark.asyncio
    async def test_warms_languages_and_currencies(self, api: FakeApi) -> None:
        async with PegasusClient(http_client=api.http_client()) as client:
            assert client.language is not None
            assert client.language.code == "EN"
            assert [lang.code for lang in client.languages] == ["EN", "TR", "DE"]
        assert api.calls(LANGUAGES_PATH) == 1
        assert api.calls(CURRENCIES_PATH) == 1
        assert api.calls(STATUS_PATH) == 0

    @pytest.mark.asyncio
    async def test_create(self, api: FakeApi) -> None:
        client = await PegasusClient.create(ClientConfig(default_language="tr"), http_client=api.http_client())
        try:
            assert client.language.name == "Türkçe"
        finally:
            await client.aclose()

    @pytest.mark.asyncio
    async def test_status_probe(self, api: FakeApi) -> None:
        async with PegasusClient(check_status=True, http_client=api.http_client()):
            pass
        assert api.calls(STATUS_PATH) == 1

    @pytest.mark.asyncio
    async def test_unavailable_service_refuses_to_start(self, api: FakeApi) -> None:
        api.routes[STATUS_PATH] = {"status": False}
        with pytest.raises(ServiceUnavailableError):
            async with PegasusClient(check_status=True, http_client=api.http_client()):
                pass
        assert api.calls(LANGUAGES_PATH) == 0

    @pytest.mark.asyncio
    async def test_failed_initialisation_propagates(self, api: FakeApi) -> None:
        api.routes[LANGUAGES_PATH] = httpx.Response(500, text="down")
        client = PegasusClient(http_client=api.http_client())
        with pytest.raises(ServerError):
            await client.initialize()
        with pytest.raises(ClientNotInitializedError):
            await client.get_languages()

    @pytest.mark.asyncio
    async def test_unknown_default_language(self, api: FakeApi) -> None:
        async with PegasusClient(ClientConfig(default_language="xx"), http_client=api.http_client()) as client:
            assert client.language is None
            with pytest.raises(InvalidArgumentError):
                await client.get_departure_countries()
            assert await client.get_languages()

    @pytest.mark.asyncio
    async def test_operations_require_initialisation(self) -> None:
        client = PegasusClient()
        with pytest.raises(ClientNotInitializedError):
            await client.get_status()
        with pytest.raises(ClientNotInitializedError):
            await client.get_currencies()

    @pytest.mark.asyncio
    async def test_closed_client_is_not_initialised(self, api: FakeApi) -> None:
        client = await _open(api)
        await client.aclose()
        with pytest.raises(ClientNotInitializedError):
            await client.get_languages()


# ---------------------------------------------------------------------------
# Language
# ---------------------------------------------------------------------------


class TestLanguage:
    @pytest.mark.asyncio
    async def test_change_language_is_case_insensitive(self, api: FakeApi) -> None:
        async with PegasusClient(http_client=api.http_client()) as client:
            client.change_language("de")
            assert client.language.code == "DE"

    @pytest.mark.asyncio
    async def test_change_to_unknown_language_clears_selection(self, api: FakeApi) -> None:
        async with PegasusClient(http_client=api.http_client()) as client:
            client.change_language("zz")
            assert client.language is None

    @pytest.mark.asyncio
    async def test_language_code_is_sent_lowercase(self, api: FakeApi) -> None:
        api.routes["/apint/pm/dep/tr"] = api.routes[DEPARTURES_PATH]
        async with PegasusClient(http_client=api.http_client()) as client:
            client.change_language("TR")
            await client.get_departure_countries()
        assert api.calls("/apint/pm/dep/tr") == 1


# ---------------------------------------------------------------------------
# Cached resources
# ---------------------------------------------------------------------------


class TestCachedResources:
    @pytest.mark.asyncio
    async def test_languages_served_from_warm_cache(self, api: FakeApi) -> None:
        async with PegasusClient(http_client=api.http_client()) as client:
            await client.get_languages()
            await client.get_currencies()
        assert api.calls(LANGUAGES_PATH) == 1
        assert api.calls(CURRENCIES_PATH) == 1

    @pytest.mark.asyncio
    async def test_currencies_refresh_after_ttl(self, api: FakeApi, clock: FakeClock) -> None:
        config = ClientConfig(ttl=CacheTTLConfig(currencies=30))
        client = await _open(api, config, clock=clock)
        try:
            clock.advance(31)
            currencies = await client.get_currencies()
        finally:
            await client.aclose()
        assert api.calls(CURRENCIES_PATH) == 2
        assert find_by_code(currencies, "try") == LIRA

    @pytest.mark.asyncio
    async def test_departure_countries_cached(self, api: FakeApi) -> None:
        async with PegasusClient(http_client=api.http_client()) as client:
            first = await client.get_departure_countries()
            second = await client.get_departure_countries()
        assert first == second
        assert api.calls(DEPARTURES_PATH) == 1

    @pytest.mark.asyncio
    async def test_caching_mode_none(self, api: FakeApi) -> None:
        config = ClientConfig(caching_mode=CachingMode.NONE)
        async with PegasusClient(config, http_client=api.http_client()) as client:
            assert client.caching_mode is CachingMode.NONE
            await client.get_languages()
            await client.get_cities_for_best_deals()
            await client.get_cities_for_best_deals()
        assert api.calls(LANGUAGES_PATH) == 2
        assert api.calls(CITIES_PATH) == 2

    @pytest.mark.asyncio
    async def test_switch_caching_mode(self, api: FakeApi, clock: FakeClock) -> None:
        client = await _open(api, clock=clock)
        try:
            client.caching_mode = CachingMode.FORCED
            clock.advance(10 * 24 * 3600)
            await client.get_languages()
            assert client.cache.caching_mode is CachingMode.FORCED
        finally:
            await client.aclose()
        assert api.calls(LANGUAGES_PATH) == 1

    @pytest.mark.asyncio
    async def test_port_matrix(self, api: FakeApi) -> None:
        async with PegasusClient(http_client=api.http_client()) as client:
            rows = await client.get_port_matrix(since_timestamp=1700000000)
            await client.get_port_matrix()
        assert rows[0].departure.code == "SAW"
        assert api.calls(PORT_MATRIX_PATH) == 1
        request = api.last(PORT_MATRIX_PATH)
        assert request.url.params["lastUpdatedTimestamp"] == "1700000000"
        assert request.headers["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_best_deals_cities(self, api: FakeApi) -> None:
        async with PegasusClient(http_client=api.http_client()) as client:
            cities = await client.get_cities_for_best_deals()
            await client.get_cities_for_best_deals()
        assert [city.code for city in cities] == ["IST", "ANK"]
        assert api.calls(CITIES_PATH) == 1
        assert api.last(CITIES_PATH).url.params["language"] == "en"

    @pytest.mark.asyncio
    async def test_invalid_payload_is_not_cached(self, api: FakeApi) -> None:
        api.routes[CITIES_PATH] = {"cityList": [{"code": "IST"}]}
        async with PegasusClient(http_client=api.http_client()) as client:
            with pytest.raises(InvalidInputError):
                await client.get_cities_for_best_deals()
            api.routes[CITIES_PATH] = {"cityList": [{"code": "IST", "title": "Istanbul"}]}
            assert len(await client.get_cities_for_best_deals()) == 1
        assert api.calls(CITIES_PATH) == 2


# ---------------------------------------------------------------------------
# Uncached operations
# ---------------------------------------------------------------------------


class TestRoutesAndFares:
    @pytest.mark.asyncio
    async def test_arrival_countries_never_cached(self, api: FakeApi) -> None:
        async with PegasusClient(http_client=api.http_client()) as client:
            saw = find_port(await client.get_departure_countries(), "TR", "SAW")
            first = await client.get_arrival_countries(saw)
            await client.get_arrival_countries(saw)
        assert api.calls(ARRIVALS_SAW_PATH) == 2
        adb = find_port(first, "TR", "ADB")
        assert adb is not None
        assert adb.is_direct_flight is True

    @pytest.mark.asyncio
    async def test_fares_months(self, api: FakeApi) -> None:
        async with PegasusClient(http_client=api.http_client()) as client:
            saw = find_port(await client.get_departure_countries(), "TR", "SAW")
            adb = find_port(await client.get_arrival_countries(saw), "TR", "ADB")
            months = await client.get_fares_months(saw, adb, date(2024, 7, 1), LIRA)

        body = json.loads(api.last(FARES_PATH).content)
        assert body == {"depPort": "SAW", "arrPort": "ADB", "flightDate": "2024-07-01", "currency": "TRY"}
        assert [str(m.year_month) for m in months] == ["2024-07", "2024-08"]
        assert months[0].flights[0].amount == Decimal("1299.99")
        assert months[0].departure_port == saw
        assert len(months[0].flights) == 2

    @pytest.mark.asyncio
    async def test_fares_reject_unsupported_currency_without_request(self, api: FakeApi) -> None:
        async with PegasusClient(http_client=api.http_client()) as client:
            countries = await client.get_departure_countries()
            saw = find_port(countries, "TR", "SAW")
            adb = find_port(countries, "TR", "ADB")
            gbp = find_by_code(await client.get_currencies(), "GBP")
            assert gbp == Currency(code="GBP", supports_cheapest_fare=False)
            with pytest.raises(InvalidArgumentError, match="GBP"):
                await client.get_fares_months(saw, adb, date(2024, 7, 1), gbp)
        assert api.calls(FARES_PATH) == 0

    @pytest.mark.asyncio
    async def test_status(self, api: FakeApi) -> None:
        async with PegasusClient(http_client=api.http_client()) as client:
            assert await client.get_status() is True
            api.routes[STATUS_PATH] = {"status": False}
            assert await client.get_status() is False
        assert api.calls(STATUS_PATH) == 2


class TestBestDeals:
    ISTANBUL = BestDealsCity(code="IST", title="Istanbul")

    @pytest.mark.asyncio
    async def test_request_body(self, api: FakeApi) -> None:
        async with PegasusClient(http_client=api.http_client()) as client:
            deals = await client.get_best_deals(self.ISTANBUL, LIRA, page=2)
        body = json.loads(api.last(DEALS_PATH).content)
        assert body == {"depCityCode": "IST", "currency": "TRY", "domestic": False, "page": 2, "language": "en"}
        assert deals[0].departure_city == self.ISTANBUL
        assert deals[0].currency == LIRA

    @pytest.mark.asyncio
    async def test_turkish_language_sets_domestic(self, api: FakeApi) -> None:
        async with PegasusClient(ClientConfig(default_language="TR"), http_client=api.http_client()) as client:
            await client.get_best_deals(self.ISTANBUL, LIRA)
        body = json.loads(api.last(DEALS_PATH).content)
        assert body["domestic"] is True
        assert body["language"] == "tr"
        assert body["page"] == 0

    @pytest.mark.asyncio
    async def test_negative_page(self, api: FakeApi) -> None:
        async with PegasusClient(http_client=api.http_client()) as client:
            with pytest.raises(InvalidArgumentError):
                await client.get_best_deals(self.ISTANBUL, LIRA, page=-1)
        assert api.calls(DEALS_PATH) == 0
