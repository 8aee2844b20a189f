"""Flatten nested mappings into name/value pairs for config parsers."""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Any, Callable, Mapping

__all__ = ["traverse_map"]

SetValue = Callable[[str, str], None]


def traverse_map(mapping: Mapping[Any, Any], delimiter: str, set_value: SetValue) -> None:
    """Walk mapping recursively, calling set_value(name, value) for each leaf.

    Sequences call set_value once per element under the same name, and the
    keys of nested mappings are joined with delimiter.
    """
    _traverse("", mapping, delimiter, set_value)


def _traverse(key: str, value: Any, delimiter: str, set_value: SetValue) -> None:
    if isinstance(value, str):
        set_value(key, value)
    elif value is None:
        set_value(key, "")
    elif isinstance(value, bool):
        set_value(key, "true" if value else "false")
    elif isinstance(value, int):
        set_value(key, str(value))
    elif isinstance(value, float):
        set_value(key, _format_float(value))
    elif isinstance(value, Decimal):
        set_value(key, str(value))
    elif isinstance(value, (list, tuple)):
        for element in value:
            _traverse(key, element, delimiter, set_value)
    elif isinstance(value, Mapping):
        for k, v in value.items():
            name = _key_string(k)
            if key:
                name = key + delimiter + name
            _traverse(name, v, delimiter, set_value)
    else:
        raise TypeError(
            f"couldn't convert {value!r} (type {type(value).__name__}) to string"
        )


def _key_string(key: Any) -> str:
    if isinstance(key, bool):
        return "true" if key else "false"
    if isinstance(key, float):
        return _format_float(key)
    return str(key)


def _format_float(value: float) -> str:
    """Shortest round-trip form, exponent notation outside [1e-4, 1e21)."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"

    sign, digit_tuple, exponent = Decimal(repr(value)).as_tuple()
    digits = "".join(map(str, digit_tuple))
    stripped = digits.rstrip("0")
    exponent += len(digits) - len(stripped)
    digits = stripped or "0"

    count = len(digits)
    point = count + exponent
    exp = point - 1
    prefix = "-" if sign else ""

    if exp < -4 or exp >= 21:
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