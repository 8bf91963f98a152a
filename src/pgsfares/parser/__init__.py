"""Payload decoding -- lenient JSON access and the domain decoders.

This sub-package turns the untyped JSON trees returned by the Pegasus
backends into the frozen models of :mod:`pgsfares.models`.

Typical usage::

    from pgsfares.parser import decode_countries_response

    countries = decode_countries_response(response.json())

Sub-modules:

* :mod:`~pgsfares.parser.nodes` -- :class:`NodeReader`, optimistic field
  extraction that records every missing required field.
* :mod:`~pgsfares.parser.decoders` -- one decoder per entity plus one per
  endpoint envelope.
"""

from pgsfares.parser.decoders import (
    decode_best_deal,
    decode_best_deals_cities_response,
    decode_best_deals_city,
    decode_best_deals_response,
    decode_countries_response,
    decode_country,
    decode_currencies_response,
    decode_currency,
    decode_fares_month,
    decode_fares_months_response,
    decode_flight,
    decode_language,
    decode_languages_response,
    decode_port,
    decode_port_matrix_item,
    decode_port_matrix_response,
    decode_port_matrix_row,
    decode_status_response,
)
from pgsfares.parser.nodes import NodeReader

__all__ = [
    "NodeReader",
    "decode_best_deal",
    "decode_best_deals_cities_response",
    "decode_best_deals_city",
    "decode_best_deals_response",
    "decode_countries_response",
    "decode_country",
    "decode_currencies_response",
    "decode_currency",
    "decode_fares_month",
    "decode_fares_months_response",
    "decode_flight",
    "decode_language",
    "decode_languages_response",
    "decode_port",
    "decode_port_matrix_item",
    "decode_port_matrix_response",
    "decode_port_matrix_row",
    "decode_status_response",
]
