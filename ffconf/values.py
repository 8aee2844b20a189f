"""Typed flag values that parse from and render to strings."""

from __future__ import annotations

import abc
import math
import re
from datetime import timedelta
from decimal import Decimal
from typing import Any, Callable, ClassVar, Generic, Iterable, Optional, TypeVar

__all__ = [
    "Value",
    "BoolValue",
    "StringValue",
    "IntValue",
    "UintValue",
    "FloatValue",
    "DurationValue",
    "ListValue",
    "UniqueListValue",
    "EnumValue",
    "FuncValue",
    "parse_bool",
    "parse_duration",
    "format_duration",
]

T = TypeVar("T")

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_UINT64_MAX = 2**64 - 1

_TRUE_WORDS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_WORDS = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def _syntax_error(text: str) -> ValueError:
    return ValueError(f'parsing "{text}": invalid syntax')


def _range_error(text: str) -> ValueError:
    return ValueError(f'parsing "{text}": value out of range')


def parse_bool(text: str) -> bool:
    """Parse 1, t, T, TRUE, true, True, 0, f, F, FALSE, false or False."""
    if text in _TRUE_WORDS:
        return True
    if text in _FALSE_WORDS:
        return False
    raise _syntax_error(text)


_OCTAL_LEGACY = re.compile(r"0_?[0-7](?:_?[0-7])*")


def _parse_integer(text: str, *, signed: bool) -> int:
    if not text or not text.isascii() or any(ch.isspace() for ch in text):
        raise _syntax_error(text)
    sign = ""
    body = text
    if body[0] in "+-":
        if not signed:
            raise _syntax_error(text)
        sign, body = body[0], body[1:]
    if not body:
        raise _syntax_error(text)
    try:
        if _OCTAL_LEGACY.fullmatch(body):
            number = int(body, 8)
        else:
            number = int(body, 0)
    except ValueError:
        raise _syntax_error(text) from None
    return -number if sign == "-" else number


def _parse_float(text: str) -> float:
    if not text or not text.isascii() or any(ch.isspace() for ch in text):
        raise _syntax_error(text)
    body = text.lstrip("+-")
    if len(text) - len(body) > 1:
        raise _syntax_error(text)
    is_hex = body[:2].lower() == "0x"
    try:
        if is_hex:
            number = float.fromhex(text.replace("_", ""))
        else:
            if "_" in text:
                raise ValueError
            number = float(text)
    except (ValueError, OverflowError):
        raise _syntax_error(text) from None
    if math.isinf(number) and body.lower() not in ("inf", "infinity"):
        raise _range_error(text)
    return number


def _format_float(value: float) -> str:
    """Shortest representation that round-trips, in %g style."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"

    sign, digit_tuple, exponent = Decimal(repr(value)).as_tuple()
    raw = "".join(map(str, digit_tuple))
    digits = raw.rstrip("0")
    exponent += len(raw) - len(digits)

    count = len(digits)
    point = count + exponent
    exp = point - 1
    prefix = "-" if sign else ""

    if exp < -4 or exp >= 6:
        mantissa = digits[0] + ("." + digits[1:] if count > 1 else "")
        exp_sign = "-" if exp < 0 else "+"
        return f"{prefix}{mantissa}e{exp_sign}{abs(exp):02d}"
    if point <= 0:
        body = "0." + "0" * (-point) + digits
    elif point >= count:
        body = digits + "0" * (point - count)
    else:
        body = digits[:point] + "." + digits[point:]
    return prefix + body


_NANOSECOND = 1
_MICROSECOND = 1000 * _NANOSECOND
_MILLISECOND = 1000 * _MICROSECOND
_SECOND = 1000 * _MILLISECOND
_MINUTE = 60 * _SECOND
_HOUR = 60 * _MINUTE

_DURATION_UNITS = {
    "ns": _NANOSECOND,
    "us": _MICROSECOND,
    "\u00b5s": _MICROSECOND,
    "\u03bcs": _MICROSECOND,
    "ms": _MILLISECOND,
    "s": _SECOND,
    "m": _MINUTE,
    "h": _HOUR,
}

_DURATION_COMPONENT = re.compile(r"([0-9]*)(?:\.([0-9]*))?([^0-9.]*)")


def _parse_duration_ns(text: str) -> int:
    rest = text
    negative = False
    if rest and rest[0] in "+-":
        negative = rest[0] == "-"
        rest = rest[1:]
    if rest == "0":
        return 0
    if not rest:
        raise ValueError(f'invalid duration "{text}"')

    total = 0
    while rest:
        match = _DURATION_COMPONENT.match(rest)
        whole, fraction, unit_name = match.group(1), match.group(2), match.group(3)
        if not whole and not fraction:
            raise ValueError(f'invalid duration "{text}"')
        if not unit_name:
            raise ValueError(f'missing unit in duration "{text}"')
        unit = _DURATION_UNITS.get(unit_name)
        if unit is None:
            raise ValueError(f'unknown unit "{unit_name}" in duration "{text}"')

        amount = int(whole or "0") * unit
        if fraction:
            amount += int(fraction) * unit // 10 ** len(fraction)
        total += amount
        if total > 2**63:
            raise ValueError(f'invalid duration "{text}"')
        rest = rest[match.end():]

    if not negative and total > _INT64_MAX:
        raise ValueError(f'invalid duration "{text}"')
    return -total if negative else total


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as "300ms", "-1.5h" or "2h45m".

    Valid units are ns, us (or µs), ms, s, m and h. Precision finer than a
    microsecond is truncated.
    """
    nanoseconds = _parse_duration_ns(text)
    micro = abs(nanoseconds) // _MICROSECOND
    delta = timedelta(microseconds=micro)
    return -delta if nanoseconds < 0 else delta


def _split_fraction(value: int, precision: int) -> tuple[int, str]:
    scale = 10**precision
    whole, frac = divmod(value, scale)
    frac_digits = f"{frac:0{precision}d}".rstrip("0") if precision else ""
    return whole, ("." + frac_digits if frac_digits else "")


def format_duration(value: timedelta) -> str:
    """Render a duration in the form "72h3m0.5s", "1.5ms" or "0s"."""
    microseconds = (value.days * 86400 + value.seconds) * 1_000_000 + value.microseconds
    nanoseconds = microseconds * _MICROSECOND
    sign = "-" if nanoseconds < 0 else ""
    amount = abs(nanoseconds)

    if amount == 0:
        return "0s"
    if amount < _SECOND:
        if amount < _MICROSECOND:
            precision, unit = 0, "ns"
        elif amount < _MILLISECOND:
            precision, unit = 3, "\u00b5s"
        else:
            precision, unit = 6, "ms"
        whole, frac = _split_fraction(amount, precision)
        return f"{sign}{whole}{frac}{unit}"

    whole_seconds, frac = _split_fraction(amount, 9)
    minutes, seconds = divmod(whole_seconds, 60)
    text = f"{seconds}{frac}s"
    if minutes:
        hours, minutes = divmod(minutes, 60)
        text = f"{minutes}m{text}"
        if hours:
            text = f"{hours}h{text}"
    return sign + text


class Value(abc.ABC, Generic[T]):
    """A flag value: holds a typed current value and its default."""

    placeholder: ClassVar[str] = ""
    is_bool_flag: ClassVar[bool] = False

    def __init__(self, default: T) -> None:
        self.default = default
        self.value = default

    def set(self, text: str) -> None:
        """Parse text and make it the current value."""
        self.value = self._parse(text)

    def reset(self) -> None:
        """Restore the default value."""
        self.value = self.default

    @abc.abstractmethod
    def _parse(self, text: str) -> T:
        """Convert text to the value type, raising ValueError if invalid."""

    def _format(self, value: T) -> str:
        return str(value)

    def __str__(self) -> str:
        return self._format(self.value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.value!r})"


class BoolValue(Value[bool]):
    """A boolean value; flags using it need no argument."""

    placeholder = "BOOL"
    is_bool_flag = True

    def __init__(self, default: bool = False) -> None:
        super().__init__(default)

    def _parse(self, text: str) -> bool:
        return parse_bool(text)

    def _format(self, value: bool) -> str:
        if value:
            return "true"
        return "false"


class StringValue(Value[str]):
    """An arbitrary string."""

    placeholder = "STRING"

    def __init__(self, default: str = "") -> None:
        super().__init__(default)

    def _parse(self, text: str) -> str:
        return text


class IntValue(Value[int]):
    """A signed 64-bit integer; 0x, 0o, 0b and leading-0 octal are accepted."""

    placeholder = "INT"

    def __init__(self, default: int = 0) -> None:
        super().__init__(default)

    def _parse(self, text: str) -> int:
        number = _parse_integer(text, signed=True)
        if not _INT64_MIN <= number <= _INT64_MAX:
            raise _range_error(text)
        return number


class UintValue(Value[int]):
    """An unsigned 64-bit integer."""

    placeholder = "UINT"

    def __init__(self, default: int = 0) -> None:
        super().__init__(default)

    def _parse(self, text: str) -> int:
        number = _parse_integer(text, signed=False)
        if number > _UINT64_MAX:
            raise _range_error(text)
        return number


class FloatValue(Value[float]):
    """A double-precision float."""

    placeholder = "FLOAT64"

    def __init__(self, default: float = 0.0) -> None:
        super().__init__(float(default))

    def _parse(self, text: str) -> float:
        return _parse_float(text)

    def _format(self, value: float) -> str:
        return _format_float(value)


class DurationValue(Value[timedelta]):
    """A duration written like "1h30m" or "250ms"."""

    placeholder = "DURATION"

    def __init__(self, default: timedelta = timedelta(0)) -> None:
        super().__init__(default)

    def _parse(self, text: str) -> timedelta:
        return parse_duration(text)

    def _format(self, value: timedelta) -> str:
        return format_duration(value)


class ListValue(Value[list]):
    """A list of strings; every set appends, duplicates included."""

    placeholder = "STRING"

    def __init__(self, default: Iterable[str] = ()) -> None:
        initial = list(default)
        super().__init__(initial)
        self.value = list(initial)

    def set(self, text: str) -> None:
        self.value.append(self._parse(text))

    def reset(self) -> None:
        self.value = list(self.default)

    def _parse(self, text: str) -> str:
        return text

    def _format(self, value: list) -> str:
        return ", ".join(value)


class UniqueListValue(ListValue):
    """A list of strings in which repeated values are silently dropped."""

    def set(self, text: str) -> None:
        item = self._parse(text)
        if item not in self.value:
            self.value.append(item)


class EnumValue(Value[str]):
    """A string restricted to a fixed set; the first valid value is the default."""

    placeholder = "STRING"

    def __init__(self, *valid: str) -> None:
        if not valid:
            raise ValueError("at least one valid value is required")
        self.valid = tuple(valid)
        super().__init__(self.valid[0])

    def _parse(self, text: str) -> str:
        if text not in self.valid:
            raise ValueError(
                f'"{text}": invalid value (must be one of {", ".join(self.valid)})'
            )
        return text


class FuncValue(Value[None]):
    """Hands every set to a callback; holds no state and renders as empty."""

    placeholder = "FUNC"

    def __init__(self, fn: Callable[[str], Any]) -> None:
        super().__init__(None)
        self.fn = fn

    def set(self, text: str) -> None:
        self.fn(text)

    def reset(self) -> None:
        """Func values hold no state, so there is nothing to revert."""

    def _parse(self, text: str) -> None:
        return None

    def _format(self, value: Optional[None]) -> str:
        return ""