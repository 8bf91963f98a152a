"""Typer application and CLI entry point for pgsfares.

Every command opens a :class:`~pgsfares.client.PegasusClient` for the
duration of one call, so the in-memory cache only spans that call. Data
goes to stdout through :mod:`pgsfares.output`; diagnostics and log records
go to stderr.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. Known :class:`~pgsfares.exceptions.PgsfaresError`
failures exit with the error's ``exit_code``.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from datetime import date
from typing import Any, Awaitable, Callable, Optional, TypeVar

import typer

from pgsfares import __version__
from pgsfares.exit_codes import EXIT_GENERIC_FAILURE

T = TypeVar("T")

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="pgsfares",
    help="Query Pegasus fares, routes and best deals.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"pgsfares {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    language: Optional[str] = typer.Option(
        None, "--language", "-l", help="Response language code (default: en)."
    ),
    check_status: bool = typer.Option(
        False, "--check-status", help="Refuse to run when the API reports itself unavailable."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~pgsfares.output.OutputManager`, routes
    library logging to stderr, and stores the resolved
    :class:`~pgsfares.models.ClientConfig` in ``ctx.obj``.
    """
    from pgsfares.config import resolve_config
    from pgsfares.output import OutputFormat, OutputManager, set_output

    config = resolve_config(default_language=language)

    fmt = OutputFormat(config.output.format)
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    output.configure_logging()
    set_output(output)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["check_status"] = check_status


def _run(ctx: typer.Context, action: Callable[[Any], Awaitable[T]]) -> T:
    """Open a client, run *action* with it, and close it again."""
    from pgsfares.client import PegasusClient
    from pgsfares.exceptions import InvalidArgumentError

    async def runner() -> T:
        async with PegasusClient(ctx.obj["config"], check_status=ctx.obj["check_status"]) as client:
            if client.language is None:
                raise InvalidArgumentError(
                    f"Unknown language '{ctx.obj['config'].default_language}'"
                )
            return await action(client)

    return asyncio.run(runner())


async def _departure_port(client: Any, code: str) -> Any:
    from pgsfares.exceptions import InvalidArgumentError

    for country in await client.get_departure_countries():
        port = country.find_port_by_code(code)
        if port is not None:
            return port
    raise InvalidArgumentError(f"'{code}' is not a departure port")


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #


@app.command()
def status(ctx: typer.Context) -> None:
    """Show whether the fare API reports itself available."""
    from pgsfares.output import get_output

    available = _run(ctx, lambda client: client.get_status())
    get_output().show_mapping({"available": available}, title="Pegasus API")


@app.command()
def languages(ctx: typer.Context) -> None:
    """List API response languages."""
    from pgsfares.output import get_output

    result = _run(ctx, lambda client: client.get_languages())
    get_output().show_records(
        ["Code", "Name"],
        [{"Code": lang.code, "Name": lang.name} for lang in result],
        title="Languages",
    )


@app.command()
def currencies(ctx: typer.Context) -> None:
    """List currencies and whether fare calendars accept them."""
    from pgsfares.output import get_output

    result = _run(ctx, lambda client: client.get_currencies())
    get_output().show_records(
        ["Code", "Cheapest fare"],
        [{"Code": cur.code, "Cheapest fare": cur.supports_cheapest_fare} for cur in result],
        title="Currencies",
    )


@app.command()
def countries(ctx: typer.Context) -> None:
    """List departure countries and their ports."""
    from pgsfares.output import get_output

    result = _run(ctx, lambda client: client.get_departure_countries())
    records = [
        {
            "Country": country.code,
            "Country name": country.name,
            "Port": port.code,
            "Port name": port.name,
            "City": port.city_name,
        }
        for country in result
        for port in country.ports
    ]
    get_output().show_records(
        ["Country", "Country name", "Port", "Port name", "City"], records, title="Departure ports"
    )


@app.command()
def arrivals(
    ctx: typer.Context,
    departure: str = typer.Argument(..., help="Departure port code, e.g. SAW."),
) -> None:
    """List ports reachable from a departure port."""
    from pgsfares.output import get_output

    async def action(client: Any) -> Any:
        port = await _departure_port(client, departure)
        return await client.get_arrival_countries(port)

    result = _run(ctx, action)
    records = [
        {"Country": country.code, "Port": port.code, "Port name": port.name, "Direct": port.is_direct_flight}
        for country in result
        for port in country.ports
    ]
    get_output().show_records(
        ["Country", "Port", "Port name", "Direct"], records, title=f"Arrivals from {departure.upper()}"
    )


@app.command()
def fares(
    ctx: typer.Context,
    departure: str = typer.Argument(..., help="Departure port code."),
    arrival: str = typer.Argument(..., help="Arrival port code."),
    flight_date: Optional[str] = typer.Option(
        None, "--date", "-d", help="First date to quote (YYYY-MM-DD, default: today)."
    ),
    currency_code: str = typer.Option("TRY", "--currency", "-c", help="Currency code."),
) -> None:
    """Show the cheapest fare per day for a route."""
    from pgsfares.exceptions import InvalidArgumentError
    from pgsfares.models import find_by_code
    from pgsfares.output import get_output

    try:
        start = date.fromisoformat(flight_date) if flight_date else date.today()
    except ValueError as exc:
        raise InvalidArgumentError(f"Invalid date '{flight_date}': {exc}") from exc

    async def action(client: Any) -> Any:
        currency = find_by_code(await client.get_currencies(), currency_code)
        if currency is None:
            raise InvalidArgumentError(f"Unknown currency '{currency_code}'")
        dep_port = await _departure_port(client, departure)
        arr_port = None
        for country in await client.get_arrival_countries(dep_port):
            arr_port = arr_port or country.find_port_by_code(arrival)
        if arr_port is None:
            raise InvalidArgumentError(f"No route from {dep_port.code} to '{arrival}'")
        return await client.get_fares_months(dep_port, arr_port, start, currency)

    months = _run(ctx, action)
    records = [
        {
            "Date": flight.date,
            "Amount": flight.amount,
            "Currency": flight.currency.code,
            "Campaign": flight.campaign_fare,
        }
        for month in months
        for flight in month.flights
    ]
    output = get_output()
    if not records:
        output.message(f"No fares on offer from {start.isoformat()}.")
    output.show_records(
        ["Date", "Amount", "Currency", "Campaign"],
        records,
        title=f"{departure.upper()} -> {arrival.upper()}",
    )


@app.command()
def matrix(ctx: typer.Context) -> None:
    """Show every departure port with the ports it serves."""
    from pgsfares.output import get_output

    rows = _run(ctx, lambda client: client.get_port_matrix())
    records = [
        {
            "Departure": row.departure.code,
            "City": row.departure.city_name,
            "Arrivals": " ".join(item.code for item in row.arrivals),
        }
        for row in rows
    ]
    get_output().show_records(["Departure", "City", "Arrivals"], records, title="Port matrix")


@app.command()
def cities(ctx: typer.Context) -> None:
    """List best-deals departure cities."""
    from pgsfares.output import get_output

    result = _run(ctx, lambda client: client.get_cities_for_best_deals())
    get_output().show_records(
        ["Code", "Title"],
        [{"Code": city.code, "Title": city.title} for city in result],
        title="Best-deals cities",
    )


@app.command()
def deals(
    ctx: typer.Context,
    city_code: str = typer.Argument(..., help="Best-deals city code."),
    currency_code: str = typer.Option("TRY", "--currency", "-c", help="Currency code."),
    page: int = typer.Option(0, "--page", "-p", min=0, help="Zero-based page number."),
) -> None:
    """Show one page of best deals from a city."""
    from pgsfares.exceptions import InvalidArgumentError
    from pgsfares.models import find_by_code
    from pgsfares.output import get_output

    async def action(client: Any) -> Any:
        city = find_by_code(await client.get_cities_for_best_deals(), city_code)
        if city is None:
            raise InvalidArgumentError(f"Unknown best-deals city '{city_code}'")
        currency = find_by_code(await client.get_currencies(), currency_code)
        if currency is None:
            raise InvalidArgumentError(f"Unknown currency '{currency_code}'")
        return await client.get_best_deals(city, currency, page)

    result = _run(ctx, action)
    records = [
        {
            "Arrival": deal.arrival_city_name,
            "Port": deal.arrival_port_code,
            "Fare": f"{deal.amount} {deal.currency.code}",
            "Date": deal.date,
            "Promotion": deal.promotion,
        }
        for deal in result
    ]
    output = get_output()
    if not records:
        output.message(f"No deals on page {page}.")
    output.show_records(
        ["Arrival", "Port", "Fare", "Date", "Promotion"],
        records,
        title=f"Best deals from {city_code.upper()}",
    )


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``pgsfares`` console script.

    Unhandled :class:`~pgsfares.exceptions.PgsfaresError` instances cause a
    clean exit with the error's ``exit_code``. Anything else is logged with
    its traceback and exits with :data:`~pgsfares.exit_codes.EXIT_GENERIC_FAILURE`.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from pgsfares.exceptions import PgsfaresError
        from pgsfares.output import error

        if isinstance(exc, PgsfaresError):
            error(str(exc))
            sys.exit(exc.exit_code)
        logger.exception("Unexpected error")
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
