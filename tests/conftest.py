"""Shared test fixtures for pgsfares.

Provides canned API payloads, a :class:`FakeApi` that serves them through
:class:`httpx.MockTransport` while recording every request, a controllable
clock for cache tests, and isolation of global output and configuration
state. These fixtures are discovered by pytest and available to all test
modules without explicit imports.
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any

import httpx
import pytest

from pgsfares.output import reset_output

WEB = "/pegasus/"
API = "/apint/"

STATUS_PATH = WEB + "cheapest-fare/status"
LANGUAGES_PATH = WEB + "common/languages"
CURRENCIES_PATH = WEB + "common/currencies"
PORT_MATRIX_PATH = WEB + "port-matrix"
CITIES_PATH = WEB + "best-deals/cities"
DEALS_PATH = WEB + "best-deals"
DEPARTURES_PATH = API + "pm/dep/en"
ARRIVALS_SAW_PATH = API + "pm/arr/en/SAW"
FARES_PATH = API + "cheapfare/flight-calender-prices"


# ---------------------------------------------------------------------------
# Canned payloads
# ---------------------------------------------------------------------------


def port_node(code: str, name: str, city: str | None, **extra: Any) -> dict[str, Any]:
    node: dict[str, Any] = {
        "id": "6b1f1a8e-3c1d-4a55-9a4b-0e6f0c1d2e3f",
        "portName": name,
        "portCode": code,
        "cityName": city,
        "domestic": True,
        "filter": [city.lower()] if city else [],
    }
    node.update(extra)
    return node


def matrix_item(code: str, city: str) -> dict[str, Any]:
    return {
        "portName": f"{city} Airport",
        "portCode": code,
        "countryName": "Turkey",
        "countryCode": "TR",
        "cityName": city,
        "cityCode": code,
        "eligibleSoldierStudent": True,
        "multiplePort": False,
    }


STATUS_PAYLOAD = {"status": True}

LANGUAGES_PAYLOAD = {
    "languageList": [
        {"code": "EN", "name": "English"},
        {"code": "TR", "name": "Türkçe"},
        {"code": "DE", "name": "Deutsch"},
    ]
}

CURRENCIES_PAYLOAD = {
    "currencyList": ["TL", "EUR", "USD", "GBP"],
    "cheapFareCurrencyList": ["TRY", "EUR", "USD"],
}

DEPARTURES_PAYLOAD = {
    "list": [
        {
            "id": "3f2504e0-4f89-11d3-9a0c-0305e82c3301",
            "countryName": "Turkey",
            "countryCode": "TR",
            "portMatrixPorts": [
                port_node("SAW", "Istanbul Sabiha Gokcen", "Istanbul"),
                port_node("ADB", "Izmir Adnan Menderes", "Izmir"),
            ],
        },
        {
            "countryName": "Germany",
            "countryCode": "DE",
            "portMatrixPorts": [port_node("BER", "Berlin Brandenburg", None, domestic=False)],
        },
    ]
}

ARRIVALS_PAYLOAD = {
    "list": [
        {
            "countryName": "Turkey",
            "countryCode": "TR",
            "portMatrixPorts": [
                port_node("ADB", "Izmir Adnan Menderes", "Izmir", directFlight=True),
            ],
        }
    ]
}

FARES_PAYLOAD = {
    "cheapFareFlightCalenderModelList": [
        {
            "month": "2024-07",
            "days": [
                {"flightDate": "2024-07-01T00:00:00", "campaignFare": False, "cheapFare": {"amount": 1299.99}},
                {"availFlightMessage": "NO_FARE"},
                {"flightDate": "2024-07-03", "campaignFare": True, "cheapFare": {"amount": 899}},
            ],
        },
        {"month": "2024-08", "days": []},
    ]
}

PORT_MATRIX_PAYLOAD = {
    "destinationList": [
        {"departure": matrix_item("SAW", "Istanbul"), "arrivalList": [matrix_item("ADB", "Izmir")]},
        {"departure": matrix_item("ADB", "Izmir"), "arrivalList": []},
    ]
}

CITIES_PAYLOAD = {
    "cityList": [
        {"code": "IST", "title": "Istanbul"},
        {"code": "ANK", "title": "Ankara"},
    ]
}

DEALS_PAYLOAD = {
    "bestDealList": [
        {
            "arrCityName": "Izmir",
            "arrPort": "ADB",
            "imagePath": "https://images.example.com/adb.jpg",
            "promotion": True,
            "bestDeal": {"amount": 499.5},
            "bestDealsDays": ["2024-08-05T00:00:00", "2024-08-12T00:00:00"],
        }
    ]
}


def default_routes() -> dict[str, Any]:
    return copy.deepcopy(
        {
            STATUS_PATH: STATUS_PAYLOAD,
            LANGUAGES_PATH: LANGUAGES_PAYLOAD,
            CURRENCIES_PATH: CURRENCIES_PAYLOAD,
            PORT_MATRIX_PATH: PORT_MATRIX_PAYLOAD,
            CITIES_PATH: CITIES_PAYLOAD,
            DEALS_PATH: DEALS_PAYLOAD,
            DEPARTURES_PATH: DEPARTURES_PAYLOAD,
            ARRIVALS_SAW_PATH: ARRIVALS_PAYLOAD,
            FARES_PATH: FARES_PAYLOAD,
        }
    )


# ---------------------------------------------------------------------------
# Fake API and clock
# ---------------------------------------------------------------------------


class FakeApi:
    """Serve canned JSON by URL path and record every request.

    A route value may be a JSON-compatible object (served with status 200)
    or a ready :class:`httpx.Response`. Unknown paths answer 404.
    """

    def __init__(self, routes: dict[str, Any] | None = None) -> None:
        self.routes = default_routes() if routes is None else routes
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        payload = self.routes.get(request.url.path)
        if payload is None:
            return httpx.Response(404, text="not found")
        if isinstance(payload, httpx.Response):
            return payload
        return httpx.Response(200, json=payload)

    def calls(self, path: str) -> int:
        return sum(1 for request in self.requests if request.url.path == path)

    def last(self, path: str) -> httpx.Request:
        return [request for request in self.requests if request.url.path == path][-1]

    def http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


class FakeClock:
    """Monotonic clock whose time only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Global state isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time; CliRunner swaps those streams per invocation.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point configuration at an empty temporary directory and clear PGSFARES_* variables."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    for var in [
        "PGSFARES_LANGUAGE",
        "PGSFARES_CACHING_MODE",
        "PGSFARES_TIMEOUT",
        "PGSFARES_CONFIG",
    ]:
        monkeypatch.delenv(var, raising=False)
    return tmp_path


@pytest.fixture(autouse=True)
def _reset_pgsfares_logger() -> None:
    """Undo OutputManager.configure_logging, which replaces the package logger's handlers."""
    yield
    logger = logging.getLogger("pgsfares")
    logger.handlers = []
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
