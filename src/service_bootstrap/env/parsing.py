"""
Value Parsers
=============

Strict parsers for environment values.

Durations follow the usual `<number><unit>` grammar ("300ms", "1.5h",
"1h30m", "-2m"); integers are plain base-10 with an optional sign.
Both raise `EnvParseError` on malformed input.
"""

import re
from datetime import timedelta

from service_bootstrap.core.exceptions import EnvParseError


# Nanoseconds per unit
_NANOSECOND = 1
_MICROSECOND = 1000 * _NANOSECOND
_MILLISECOND = 1000 * _MICROSECOND
_SECOND = 1000 * _MILLISECOND
_MINUTE = 60 * _SECOND
_HOUR = 60 * _MINUTE

DURATION_UNITS = {
    "ns": _NANOSECOND,
    "us": _MICROSECOND,
    "µs": _MICROSECOND,  # micro sign
    "μs": _MICROSECOND,  # greek mu
    "ms": _MILLISECOND,
    "s": _SECOND,
    "m": _MINUTE,
    "h": _HOUR,
}

# Signed 64-bit limits shared by both parsers
_INT64_MAX = (1 << 63) - 1
_INT64_MIN = -(1 << 63)

_DURATION_COMPONENT = re.compile(r"([0-9]*)(?:\.([0-9]*))?([^0-9.]*)")
_INTEGER = re.compile(r"[+-]?[0-9]+")

# Enough digits for any signed 64-bit magnitude, and far below the
# interpreter's limit on int() string conversion
_MAX_DIGITS = 19


def _digits(text: str) -> str:
    """Strip leading zeros; anything left longer than `_MAX_DIGITS` cannot fit."""
    return text.lstrip("0") or "0"


def parse_duration(text: str) -> timedelta:
    """
    Parse a duration string such as "5s", "10m" or "1h15m30.5s".

    A bare "0" (optionally signed) is accepted without a unit. Precision
    below one microsecond is truncated toward zero.

    Raises:
        EnvParseError: If the string is empty, lacks a unit, uses an unknown
            unit or overflows a signed 64-bit nanosecond count
    """
    original = text
    if not text:
        raise EnvParseError('invalid duration ""', original)

    negative = False
    if text[0] in "+-":
        negative = text[0] == "-"
        text = text[1:]

    if text == "0":
        return timedelta(0)
    if not text:
        raise EnvParseError(f'invalid duration "{original}"', original)

    total_ns = 0
    pos = 0
    while pos < len(text):
        match = _DURATION_COMPONENT.match(text, pos)
        whole, frac, unit = match.group(1), match.group(2), match.group(3)
        if not whole and not frac:
            raise EnvParseError(f'invalid duration "{original}"', original)
        if not unit:
            raise EnvParseError(f'missing unit in duration "{original}"', original)
        if unit not in DURATION_UNITS:
            raise EnvParseError(f'unknown unit "{unit}" in duration "{original}"', original)

        whole = _digits(whole)
        if len(whole) > _MAX_DIGITS:
            raise EnvParseError(f'invalid duration "{original}"', original)
        # Digits past the cap are below nanosecond precision
        frac = frac[:_MAX_DIGITS] if frac else ""

        scale = DURATION_UNITS[unit]
        total_ns += int(whole) * scale
        if frac:
            total_ns += int(frac) * scale // 10 ** len(frac)
        if total_ns > (-_INT64_MIN if negative else _INT64_MAX):
            raise EnvParseError(f'invalid duration "{original}"', original)
        pos = match.end()

    micros = total_ns // _MICROSECOND
    return timedelta(microseconds=-micros if negative else micros)


def parse_int(text: str) -> int:
    """
    Parse a base-10 integer with an optional sign.

    Whitespace, underscores, non-ASCII digits and values outside the
    signed 64-bit range are rejected.

    Raises:
        EnvParseError: If the string is not a valid integer
    """
    if not _INTEGER.fullmatch(text):
        raise EnvParseError(f'invalid integer "{text}"', text)
    digits = _digits(text.lstrip("+-"))
    if len(digits) > _MAX_DIGITS:
        raise EnvParseError(f'integer "{text}" out of range', text)
    value = -int(digits) if text[0] == "-" else int(digits)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise EnvParseError(f'integer "{text}" out of range', text)
    return value


def format_duration(value: timedelta) -> str:
    """Render a timedelta in the same grammar `parse_duration` accepts."""
    micros = (value.days * 86400 + value.seconds) * 1_000_000 + value.microseconds
    if micros == 0:
        return "0s"

    sign = "-" if micros < 0 else ""
    micros = abs(micros)
    if micros < 1000:
        return f"{sign}{micros}us"
    if micros < 1_000_000:
        millis, frac = divmod(micros, 1000)
        out = f"{sign}{millis}"
        if frac:
            out += f".{frac:03d}".rstrip("0")
        return out + "ms"

    hours, rem = divmod(micros, _HOUR // _MICROSECOND)
    minutes, rem = divmod(rem, _MINUTE // _MICROSECOND)
    seconds, frac = divmod(rem, 1_000_000)

    out = sign
    if hours:
        out += f"{hours}h"
    if hours or minutes:
        out += f"{minutes}m"
    out += f"{seconds}"
    if frac:
        out += f".{frac:06d}".rstrip("0")
    return out + "s"
