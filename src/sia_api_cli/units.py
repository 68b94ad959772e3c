"""Conversion of human-friendly parameter values into Sia API units."""

from __future__ import annotations

import re
from decimal import ROUND_DOWN, Context, Decimal, InvalidOperation
from enum import Enum
from typing import Callable, Dict, Mapping

from .errors import ParamFormatError


class ParamFormat(str, Enum):
    """How a parameter value is written on the command line."""

    DEFAULT = ""
    DATA = "data"
    PRICE = "price"
    MONTHLY_PRICE = "monthlyprice"
    BLOCK_TIME = "blocktime"


HASTINGS_PER_SC = Decimal(10) ** 24
BYTES_PER_TB = Decimal(10) ** 12
BLOCKS_PER_MONTH = Decimal(4320)

# Hastings values exceed the default 28 digit precision.
_CTX = Context(prec=80)

DATA_UNITS: Mapping[str, Decimal] = {
    "b": Decimal(1),
    "kb": Decimal(10) ** 3,
    "mb": Decimal(10) ** 6,
    "gb": Decimal(10) ** 9,
    "tb": Decimal(10) ** 12,
    "pb": Decimal(10) ** 15,
    "kib": Decimal(2) ** 10,
    "mib": Decimal(2) ** 20,
    "gib": Decimal(2) ** 30,
    "tib": Decimal(2) ** 40,
    "pib": Decimal(2) ** 50,
}

# Case matters: mS is a millisiacoin, MS a megasiacoin.
PRICE_UNITS: Mapping[str, Decimal] = {
    "H": Decimal(1),
    "pS": HASTINGS_PER_SC / Decimal(10) ** 12,
    "nS": HASTINGS_PER_SC / Decimal(10) ** 9,
    "uS": HASTINGS_PER_SC / Decimal(10) ** 6,
    "mS": HASTINGS_PER_SC / Decimal(10) ** 3,
    "SC": HASTINGS_PER_SC,
    "KS": HASTINGS_PER_SC * Decimal(10) ** 3,
    "MS": HASTINGS_PER_SC * Decimal(10) ** 6,
    "GS": HASTINGS_PER_SC * Decimal(10) ** 9,
    "TS": HASTINGS_PER_SC * Decimal(10) ** 12,
}

BLOCK_UNITS: Mapping[str, Decimal] = {
    "b": Decimal(1),
    "h": Decimal(6),
    "d": Decimal(144),
    "w": Decimal(1008),
}

_VALUE = re.compile(r"^\s*(?P<number>\d+(?:\.\d+)?|\.\d+)\s*(?P<unit>[A-Za-z]*)\s*$")


def _split(value: str, kind: str) -> tuple[Decimal, str]:
    match = _VALUE.match(value)
    if not match:
        raise ParamFormatError(f"Could not parse {kind} value {value!r}")
    try:
        number = Decimal(match.group("number"))
    except InvalidOperation as exc:  # pragma: no cover - regex guards the input
        raise ParamFormatError(f"Could not parse {kind} value {value!r}") from exc
    return number, match.group("unit")


def _integral(value: Decimal) -> str:
    return str(value.quantize(Decimal(1), rounding=ROUND_DOWN, context=_CTX))


def _whole(number: Decimal, value: str, kind: str) -> str:
    # A bare number is already in base units.
    if number != number.to_integral_value(context=_CTX):
        raise ParamFormatError(f"{kind.capitalize()} value {value!r} needs a unit or a whole number")
    return _integral(number)


def parse_data_size(value: str) -> str:
    """Convert ``10TB``/``512MiB`` style sizes into a byte count."""

    number, unit = _split(value, "data size")
    if not unit:
        return _whole(number, value, "data size")
    scale = DATA_UNITS.get(unit.lower())
    if scale is None:
        raise ParamFormatError(
            f"Unknown data unit {unit!r} in {value!r}; expected one of {', '.join(DATA_UNITS)}"
        )
    return _integral(_CTX.multiply(number, scale))


def parse_currency(value: str) -> str:
    """Convert ``100SC``/``250mS`` style amounts into hastings."""

    number, unit = _split(value, "currency")
    if not unit:
        return _whole(number, value, "currency")
    scale = PRICE_UNITS.get(unit)
    if scale is None:
        raise ParamFormatError(
            f"Unknown currency unit {unit!r} in {value!r}; expected one of {', '.join(PRICE_UNITS)}"
        )
    return _integral(_CTX.multiply(number, scale))


def parse_monthly_price(value: str) -> str:
    """Convert a price per TB per month into hastings per byte per block."""

    number, unit = _split(value, "price")
    if not unit:
        return _whole(number, value, "price")
    hastings = Decimal(parse_currency(value))
    return _integral(_CTX.divide(hastings, _CTX.multiply(BYTES_PER_TB, BLOCKS_PER_MONTH)))


def parse_block_time(value: str) -> str:
    """Convert ``12w``/``3d`` style durations into a block count."""

    number, unit = _split(value, "duration")
    if not unit:
        return _whole(number, value, "duration")
    scale = BLOCK_UNITS.get(unit.lower())
    if scale is None:
        raise ParamFormatError(
            f"Unknown duration unit {unit!r} in {value!r}; expected one of {', '.join(BLOCK_UNITS)}"
        )
    return _integral(_CTX.multiply(number, scale))


_CONVERTERS: Dict[ParamFormat, Callable[[str], str]] = {
    ParamFormat.DATA: parse_data_size,
    ParamFormat.PRICE: parse_currency,
    ParamFormat.MONTHLY_PRICE: parse_monthly_price,
    ParamFormat.BLOCK_TIME: parse_block_time,
}


def format_value(value: str, fmt: ParamFormat) -> str:
    """Return `value` converted for the API; unformatted and empty values pass through."""

    if fmt is ParamFormat.DEFAULT or not value or value.isdigit():
        return value
    return _CONVERTERS[fmt](value)
