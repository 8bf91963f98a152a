"""Decode API payloads into validated :mod:`pgsfares.models` entities.

Every entity decoder takes one raw JSON node plus the already-validated
context objects it refers back to, and returns one fully-populated frozen
model or raises :class:`~pgsfares.exceptions.InvalidInputError`. Decoders
read every field through a :class:`~pgsfares.parser.nodes.NodeReader`
first and validate the required set afterwards, so one error names all the
fields a node got wrong.

The ``decode_*_response`` functions unwrap the envelope of each endpoint
and decode its list, building a fresh list every call. A batch either
decodes completely or fails; the only elements dropped on purpose are
:data:`~pgsfares.models.NO_FLIGHT` days.
"""

from __future__ import annotations

from collections.abc import Collection
from datetime import date
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from pgsfares.exceptions import InvalidInputError
from pgsfares.models import (
    LIRA,
    NO_FLIGHT,
    BestDeal,
    BestDealsCity,
    Country,
    CountryRef,
    Currency,
    FaresMonth,
    Flight,
    FlightDay,
    Language,
    Port,
    PortMatrixItem,
    PortMatrixRow,
    YearMonth,
)
from pgsfares.parser.nodes import NodeReader, parse_date, require_envelope, string_items

# Envelope keys
LANGUAGES_NODE = "languageList"
CURRENCIES_NODE = "currencyList"
CHEAP_FARE_CURRENCIES_NODE = "cheapFareCurrencyList"
COUNTRIES_NODE = "list"
FARES_MONTHS_NODE = "cheapFareFlightCalenderModelList"  # sic, the API's spelling
PORT_MATRIX_ROWS_NODE = "destinationList"
BEST_DEALS_CITIES_NODE = "cityList"
BEST_DEALS_NODE = "bestDealList"
STATUS_NODE = "status"

NO_FARE_MESSAGE = "NO_FARE"
LIRA_ALIAS = "TL"

_M = TypeVar("_M", bound=BaseModel)


def _build(model: type[_M], what: str, **fields: Any) -> _M:
    """Instantiate *model*, turning Pydantic validation failures into decode errors."""
    try:
        return model(**fields)
    except ValidationError as exc:
        names = [".".join(str(part) for part in err["loc"]) for err in exc.errors()]
        raise InvalidInputError(
            f"JSON node does not provide proper {what} data ({exc.error_count()} invalid value(s)).",
            fields=names,
        ) from None


# ------------------------------------------------------------------ #
# Entities
# ------------------------------------------------------------------ #


def decode_language(node: Any) -> Language:
    reader = NodeReader(node, "language")
    code = reader.string("code")
    name = reader.string("name")
    reader.raise_if_missing()
    return _build(Language, "language", code=code, name=name)


def decode_currency(node: Any, fare_capable_codes: Collection[str]) -> Currency:
    """Decode a bare currency code.

    ``"TL"`` in any case is the legacy spelling of Turkish Lira and yields
    :data:`~pgsfares.models.LIRA`. Any other code supports cheapest-fare
    requests iff it appears (case-sensitively) in *fare_capable_codes*.
    """
    if not isinstance(node, str) or not node:
        raise InvalidInputError("JSON node does not provide proper currency data.")
    if node.upper() == LIRA_ALIAS:
        return LIRA
    return Currency(code=node, supports_cheapest_fare=node in fare_capable_codes)


def decode_port(node: Any, country: CountryRef) -> Port:
    reader = NodeReader(node, "port")
    name = reader.string("portName")
    code = reader.string("portCode")
    city_name = reader.string("cityName", required=False)
    domestic = reader.boolean("domestic")
    direct = reader.boolean("directFlight", required=False)
    keywords = reader.array("filter")
    port_id = reader.uuid("id")
    reader.raise_if_missing()
    return _build(
        Port,
        "port",
        country=country,
        name=name,
        code=code,
        city_name=city_name,
        domestic=domestic,
        is_direct_flight=bool(direct),
        keywords=string_items(keywords, "port keyword"),
        id=port_id,
    )


def decode_country(node: Any) -> Country:
    reader = NodeReader(node, "country")
    name = reader.string("countryName")
    code = reader.string("countryCode")
    ports_node = reader.array("portMatrixPorts")
    country_id = reader.uuid("id")
    reader.raise_if_missing()

    ref = CountryRef(code=code, name=name)
    ports = [decode_port(port_node, ref) for port_node in ports_node]
    return _build(Country, "country", name=name, code=code, ports=ports, id=country_id)


def decode_port_matrix_item(node: Any) -> PortMatrixItem:
    reader = NodeReader(node, "port matrix item")
    fields = dict(
        name=reader.string("portName"),
        code=reader.string("portCode"),
        country_name=reader.string("countryName"),
        country_code=reader.string("countryCode"),
        city_name=reader.string("cityName"),
        city_code=reader.string("cityCode"),
        eligible_soldier_student=reader.boolean("eligibleSoldierStudent"),
        multiple_port=reader.boolean("multiplePort"),
    )
    reader.raise_if_missing()
    return _build(PortMatrixItem, "port matrix item", **fields)


def decode_port_matrix_row(node: Any) -> PortMatrixRow:
    reader = NodeReader(node, "port matrix row")
    departure_node = reader.obj("departure")
    arrivals_node = reader.array("arrivalList")
    reader.raise_if_missing()

    return PortMatrixRow(
        departure=decode_port_matrix_item(departure_node),
        arrivals=[decode_port_matrix_item(item) for item in arrivals_node],
    )


def decode_flight(node: Any, currency: Currency) -> FlightDay:
    """Decode one day of a fare calendar.

    A day flagged ``NO_FARE`` carries no date or fare and decodes straight
    to :data:`~pgsfares.models.NO_FLIGHT`.
    """
    reader = NodeReader(node, "flight")
    if reader.raw("availFlightMessage") == NO_FARE_MESSAGE:
        return NO_FLIGHT

    flight_date = reader.date("flightDate")
    campaign_fare = reader.boolean("campaignFare")
    amount = reader.child("cheapFare").decimal("amount")
    reader.raise_if_missing()
    return _build(
        Flight,
        "flight",
        date=flight_date,
        campaign_fare=campaign_fare,
        amount=amount,
        currency=currency,
    )


def decode_fares_month(
    node: Any,
    departure_port: Port,
    arrival_port: Port,
    currency: Currency,
) -> FaresMonth:
    reader = NodeReader(node, "fares month")
    month = reader.string("month")
    days = reader.array("days")
    year_month = YearMonth.try_parse(month) if month is not None else None
    if month is not None and year_month is None:
        reader.flag("month")
    reader.raise_if_missing()

    flights = [
        day for day in (decode_flight(day_node, currency) for day_node in days)
        if day != NO_FLIGHT
    ]
    return FaresMonth(
        departure_port=departure_port,
        arrival_port=arrival_port,
        year_month=year_month,
        flights=flights,
    )


def decode_best_deals_city(node: Any) -> BestDealsCity:
    reader = NodeReader(node, "best-deals city")
    code = reader.string("code")
    title = reader.string("title")
    reader.raise_if_missing()
    return _build(BestDealsCity, "best-deals city", code=code, title=title)


def decode_best_deal(node: Any, departure_city: BestDealsCity, currency: Currency) -> BestDeal:
    reader = NodeReader(node, "best deal")
    arrival_city_name = reader.string("arrCityName")
    arrival_port_code = reader.string("arrPort")
    image_url = reader.string("imagePath")
    promotion = reader.boolean("promotion")
    amount = reader.child("bestDeal").decimal("amount")
    days = reader.array("bestDealsDays")
    reader.raise_if_missing()

    return _build(
        BestDeal,
        "best deal",
        departure_city=departure_city,
        arrival_city_name=arrival_city_name,
        arrival_port_code=arrival_port_code,
        amount=amount,
        currency=currency,
        dates=[_decode_deal_date(day) for day in days],
        image_url=image_url,
        promotion=promotion,
    )


def _decode_deal_date(value: Any) -> date:
    parsed = parse_date(value)
    if parsed is None:
        raise InvalidInputError(
            f"JSON node does not provide proper best deal data (bad date {value!r}).",
            fields=["bestDealsDays"],
        )
    return parsed


# ------------------------------------------------------------------ #
# Response envelopes
# ------------------------------------------------------------------ #


def decode_status_response(payload: Any) -> bool:
    status = payload.get(STATUS_NODE) if isinstance(payload, dict) else None
    if not isinstance(status, bool):
        raise InvalidInputError("Response does not contain a boolean status.", fields=[STATUS_NODE])
    return status


def decode_languages_response(payload: Any) -> list[Language]:
    return [decode_language(node) for node in require_envelope(payload, LANGUAGES_NODE)]


def decode_currencies_response(payload: Any) -> list[Currency]:
    codes = require_envelope(payload, CURRENCIES_NODE)
    fare_capable = frozenset(
        string_items(require_envelope(payload, CHEAP_FARE_CURRENCIES_NODE), "currency")
    )
    return [decode_currency(node, fare_capable) for node in codes]


def decode_port_matrix_response(payload: Any) -> list[PortMatrixRow]:
    return [decode_port_matrix_row(node) for node in require_envelope(payload, PORT_MATRIX_ROWS_NODE)]


def decode_countries_response(payload: Any) -> list[Country]:
    return [decode_country(node) for node in require_envelope(payload, COUNTRIES_NODE)]


def decode_fares_months_response(
    payload: Any,
    departure_port: Port,
    arrival_port: Port,
    currency: Currency,
) -> list[FaresMonth]:
    return [
        decode_fares_month(node, departure_port, arrival_port, currency)
        for node in require_envelope(payload, FARES_MONTHS_NODE)
    ]


def decode_best_deals_cities_response(payload: Any) -> list[BestDealsCity]:
    return [decode_best_deals_city(node) for node in require_envelope(payload, BEST_DEALS_CITIES_NODE)]


def decode_best_deals_response(
    payload: Any,
    departure_city: BestDealsCity,
    currency: Currency,
) -> list[BestDeal]:
    return [
        decode_best_deal(node, departure_city, currency)
        for node in require_envelope(payload, BEST_DEALS_NODE)
    ]
