"""Canonical Pydantic models shared across all pgsfares modules.

This is the single source of truth for data shapes in the project. The models
fall into two groups:

**Configuration models** -- loaded from ``config.json`` and the environment:
    :class:`CachingMode`, :class:`CacheTTLConfig`, :class:`OutputConfig` and
    :class:`ClientConfig`.

**Domain models** -- produced by :mod:`pgsfares.parser.decoders` from API
payloads:
    :class:`Language`, :class:`Currency`, :class:`CountryRef`,
    :class:`Port`, :class:`Country`, :class:`PortMatrixItem`,
    :class:`PortMatrixRow`, :class:`YearMonth`, :class:`Flight`,
    :class:`NoFlight`, :class:`FaresMonth`, :class:`BestDealsCity` and
    :class:`BestDeal`.

Domain models are frozen: once a decoder returns one, it is fully valid and
cannot change. Back-references (a port's country, a fares month's ports, a
deal's departure city) are plain values with no lifetime implication.
"""

from __future__ import annotations

import enum
import re
from datetime import date as date_type
from decimal import Decimal
from typing import Iterable, Literal, Optional, Protocol, TypeVar, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field

from pgsfares.exceptions import InvalidArgumentError, LookupAmbiguityError


# --- Configuration ---


class CachingMode(str, enum.Enum):
    """How the client treats its in-memory response cache.

    ``NONE`` always queries the API and stores nothing. ``SMART`` serves a
    non-empty cached value while it is younger than the resource's TTL.
    ``FORCED`` serves any non-empty cached value regardless of age.
    """

    NONE = "none"
    SMART = "smart"
    FORCED = "forced"


class CacheTTLConfig(BaseModel):
    """Per-resource cache lifetimes in seconds, used in ``SMART`` mode."""

    languages: float = Field(default=24 * 3600, gt=0)
    currencies: float = Field(default=30 * 60, gt=0)
    port_matrix: float = Field(default=12 * 3600, gt=0)
    departure_countries: float = Field(default=12 * 3600, gt=0)
    best_deals_cities: float = Field(default=3 * 3600, gt=0)


class OutputConfig(BaseModel):
    """Default output format for the ``pgsfares`` command."""

    format: Literal["auto", "json", "plain", "rich"] = Field(
        default="auto", description="Output format used when no --json/--plain flag is given"
    )


class ClientConfig(BaseModel):
    """Settings for :class:`~pgsfares.client.PegasusClient`.

    Loaded by :func:`~pgsfares.config.resolve_config`, which layers the
    ``config.json`` file and ``PGSFARES_*`` environment variables over these
    defaults.
    """

    api_base_url: str = Field(
        default="https://www.flypgs.com/apint/",
        description="Backend serving countries, ports and fare calendars",
    )
    web_api_base_url: str = Field(
        default="https://web.flypgs.com/pegasus/",
        description="Backend serving status, languages, currencies, port matrix and best deals",
    )
    timeout: float = Field(default=30, gt=0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    user_agent: str = Field(
        default="Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:125.0) Gecko/20100101 Firefox/125.0"
    )
    default_language: str = Field(default="en", min_length=1)
    caching_mode: CachingMode = CachingMode.SMART
    ttl: CacheTTLConfig = Field(default_factory=CacheTTLConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- Lookup helpers ---


class _HasCode(Protocol):
    code: str


_T = TypeVar("_T", bound=_HasCode)


def find_by_code(items: Iterable[_T], code: str) -> Optional[_T]:
    """Return the single item whose ``code`` matches *code*, ignoring case.

    Returns ``None`` when nothing matches.

    Raises:
        LookupAmbiguityError: If more than one item matches.
    """
    wanted = code.casefold()
    matches = [item for item in items if item.code.casefold() == wanted]
    if len(matches) > 1:
        raise LookupAmbiguityError(
            f"{len(matches)} entries share the code '{code}'"
        )
    return matches[0] if matches else None


# --- Domain ---


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class Language(_Frozen):
    """An API response language."""

    code: str = Field(min_length=1)
    name: str = Field(min_length=1)


class Currency(_Frozen):
    """A currency the API can quote fares in."""

    code: str = Field(min_length=1)
    supports_cheapest_fare: bool = False


LIRA = Currency(code="TRY", supports_cheapest_fare=True)
"""Turkish Lira, always accepted by the fare calendar."""


class CountryRef(_Frozen):
    """Handle a :class:`Port` keeps to the country it belongs to."""

    code: str
    name: str


class Port(_Frozen):
    """An airport entry, identified by its 3-letter IATA code.

    ``is_direct_flight`` is only meaningful for arrival-side lists; the
    departure list does not carry it and it defaults to ``False``.
    """

    country: CountryRef
    name: str
    code: str
    city_name: Optional[str] = None
    domestic: bool
    is_direct_flight: bool = False
    keywords: list[str] = Field(default_factory=list)
    id: Optional[UUID] = None


class Country(_Frozen):
    """A country together with the ports listed under it."""

    name: str
    code: str
    ports: list[Port] = Field(default_factory=list)
    id: Optional[UUID] = None

    @property
    def ref(self) -> CountryRef:
        return CountryRef(code=self.code, name=self.name)

    def find_port_by_code(self, code: str) -> Optional[Port]:
        """Return the port with *code* (case-insensitive), or ``None``."""
        return find_by_code(self.ports, code)


def find_port(countries: Iterable[Country], country_code: str, port_code: str) -> Optional[Port]:
    """Look a port up by its country code and port code."""
    country = find_by_code(countries, country_code)
    if country is None:
        return None
    return country.find_port_by_code(port_code)


class PortMatrixItem(_Frozen):
    """One side of a route in the port matrix."""

    name: str
    code: str
    country_name: str
    country_code: str
    city_name: str
    city_code: str
    eligible_soldier_student: bool
    multiple_port: bool


class PortMatrixRow(_Frozen):
    """A departure port and every port reachable from it."""

    departure: PortMatrixItem
    arrivals: list[PortMatrixItem] = Field(default_factory=list)


_YEAR_MONTH_PATTERN = re.compile(r"^[0-9]{4}-(0[1-9]|1[0-2])$")


class YearMonth(_Frozen):
    """A calendar month.

    Construction validates ``0 <= year <= 9999`` and ``1 <= month <= 12``
    and raises :class:`~pgsfares.exceptions.InvalidArgumentError`
    otherwise.

    Example::

        YearMonth(2024, 7) == YearMonth.parse("2024-07")
    """

    year: int
    month: int

    def __init__(self, year: int, month: int) -> None:
        if not 0 <= year <= 9999:
            raise InvalidArgumentError(f"Year {year} is out of range.")
        if not 1 <= month <= 12:
            raise InvalidArgumentError(f"Month {month} is out of range.")
        super().__init__(year=year, month=month)

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @classmethod
    def parse(cls, text: str) -> YearMonth:
        """Parse ``YYYY-MM`` text.

        Raises:
            InvalidArgumentError: If *text* is not exactly a four-digit year,
                a hyphen and a month between ``01`` and ``12``.
        """
        result = cls.try_parse(text)
        if result is None:
            raise InvalidArgumentError(f"'{text}' is not in 'yyyy-MM' format.")
        return result

    @classmethod
    def try_parse(cls, text: str) -> Optional[YearMonth]:
        """Like :meth:`parse` but return ``None`` instead of raising."""
        if not isinstance(text, str) or not _YEAR_MONTH_PATTERN.fullmatch(text):
            return None
        return cls(int(text[:4]), int(text[5:]))

    @classmethod
    def from_date(cls, value: date_type) -> YearMonth:
        return cls(value.year, value.month)


class Flight(_Frozen):
    """The cheapest fare on one day of a :class:`FaresMonth`."""

    kind: Literal["flight"] = "flight"
    date: date_type
    campaign_fare: bool
    amount: Decimal
    currency: Currency


class NoFlight(_Frozen):
    """Marker for a day without any fare on offer."""

    kind: Literal["no_flight"] = "no_flight"


NO_FLIGHT = NoFlight()

FlightDay = Union[Flight, NoFlight]


class FaresMonth(_Frozen):
    """Daily cheapest fares for one route over one calendar month."""

    departure_port: Port
    arrival_port: Port
    year_month: YearMonth
    flights: list[Flight] = Field(default_factory=list)


class BestDealsCity(_Frozen):
    """A departure city offered on the best-deals page."""

    code: str
    title: str


class BestDeal(_Frozen):
    """A promotional fare from a best-deals city, valid on one or more dates."""

    departure_city: BestDealsCity
    arrival_city_name: str
    arrival_port_code: str
    amount: Decimal
    currency: Currency
    dates: list[date_type] = Field(default_factory=list)
    image_url: str
    promotion: bool

    @computed_field  # type: ignore[prop-decorator]
    @property
    def date(self) -> Optional[date_type]:
        return self.dates[0] if self.dates else None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def year_month(self) -> Optional[YearMonth]:
        first = self.date
        return YearMonth.from_date(first) if first is not None else None
