"""Tests for the domain models and the code-lookup helpers."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from pgsfares.exceptions import LookupAmbiguityError
from pgsfares.models import (
    LIRA,
    NO_FLIGHT,
    BestDeal,
    BestDealsCity,
    Country,
    CountryRef,
    Currency,
    Flight,
    Language,
    NoFlight,
    Port,
    YearMonth,
    find_by_code,
    find_port,
)


def _port(code: str, country: CountryRef) -> Port:
    return Port(country=country, name=f"{code} Airport", code=code, domestic=True)


def _countries() -> list[Country]:
    tr = CountryRef(code="TR", name="Turkey")
    de = CountryRef(code="DE", name="Germany")
    return [
        Country(name="Turkey", code="TR", ports=[_port("SAW", tr), _port("ADB", tr)]),
        Country(name="Germany", code="DE", ports=[_port("BER", de)]),
    ]


def _deal(dates: list[date]) -> BestDeal:
    return BestDeal(
        departure_city=BestDealsCity(code="IST", title="Istanbul"),
        arrival_city_name="Izmir",
        arrival_port_code="ADB",
        amount=Decimal("499"),
        currency=LIRA,
        dates=dates,
        image_url="https://images.example.com/adb.jpg",
        promotion=False,
    )


# ---------------------------------------------------------------------------
# find_by_code / find_port
# ---------------------------------------------------------------------------


class TestFindByCode:
    def test_case_insensitive(self) -> None:
        langs = [Language(code="EN", name="English"), Language(code="TR", name="Türkçe")]
        assert find_by_code(langs, "tr").name == "Türkçe"

    def test_no_match_returns_none(self) -> None:
        assert find_by_code([Language(code="EN", name="English")], "fr") is None

    def test_empty_collection(self) -> None:
        assert find_by_code([], "EN") is None

    def test_ambiguous_raises(self) -> None:
        langs = [Language(code="EN", name="English"), Language(code="en", name="English (US)")]
        with pytest.raises(LookupAmbiguityError):
            find_by_code(langs, "EN")


class TestFindPort:
    def test_found(self) -> None:
        port = find_port(_countries(), "tr", "adb")
        assert port is not None
        assert port.code == "ADB"
        assert port.country.code == "TR"

    def test_unknown_country(self) -> None:
        assert find_port(_countries(), "FR", "CDG") is None

    def test_port_in_other_country(self) -> None:
        assert find_port(_countries(), "DE", "SAW") is None

    def test_country_ref(self) -> None:
        assert _countries()[1].ref == CountryRef(code="DE", name="Germany")


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


class TestEntities:
    def test_lira_supports_cheapest_fare(self) -> None:
        assert LIRA.code == "TRY"
        assert LIRA.supports_cheapest_fare is True

    def test_currency_defaults_to_unsupported(self) -> None:
        assert Currency(code="GBP").supports_cheapest_fare is False

    def test_language_requires_non_empty_fields(self) -> None:
        with pytest.raises(ValidationError):
            Language(code="", name="English")

    def test_port_direct_flight_defaults_false(self) -> None:
        port = _port("SAW", CountryRef(code="TR", name="Turkey"))
        assert port.is_direct_flight is False
        assert port.keywords == []
        assert port.id is None

    def test_entities_are_frozen(self) -> None:
        with pytest.raises(ValidationError):
            LIRA.code = "EUR"  # type: ignore[misc]

    def test_no_flight_sentinel_equality(self) -> None:
        assert NoFlight() == NO_FLIGHT
        flight = Flight(date=date(2024, 7, 1), campaign_fare=False, amount=Decimal("10"), currency=LIRA)
        assert flight != NO_FLIGHT
        assert flight.kind == "flight"
        assert NO_FLIGHT.kind == "no_flight"


class TestBestDealDerived:
    def test_first_date_and_month(self) -> None:
        deal = _deal([date(2024, 8, 12), date(2024, 9, 1)])
        assert deal.date == date(2024, 8, 12)
        assert deal.year_month == YearMonth(2024, 8)

    def test_no_dates(self) -> None:
        deal = _deal([])
        assert deal.date is None
        assert deal.year_month is None
