"""Define flags from the fields of a dataclass instance.

A field takes part when its metadata holds an "ff" tag, for example::

    @dataclass
    class Options:
        name: str = field(default="", metadata={"ff": "short: n, long: name, usage: your name"})

The tag is a sequence of comma- or pipe-delimited items. Each item is empty
(ignored), a key, or a key/value pair written key=value or key:value. Values
may be 'single quoted'. Valid keys are s/short/shortname, l/long/longname,
u/usage, d/def/default, p/placeholder, noplaceholder and nodefault.
"""

from __future__ import annotations

import dataclasses
import json
import typing
from datetime import timedelta
from typing import Any, Callable, Iterator, Optional

from ffconf.flag_set import FlagConfig, FlagSet
from ffconf.flags import FlagsError
from ffconf.values import (
    BoolValue,
    DurationValue,
    FloatValue,
    IntValue,
    ListValue,
    StringValue,
    UintValue,
    UniqueListValue,
    Value,
)

__all__ = ["parse_tag", "add_struct", "new_flag_set_from"]

_SIMPLE_FACTORIES: dict[Any, Callable[..., Value]] = {
    bool: BoolValue,
    str: StringValue,
    int: IntValue,
    float: FloatValue,
    timedelta: DurationValue,
    list: ListValue,
}

_FACTORIES_BY_NAME: dict[str, Callable[..., Value]] = {
    "bool": BoolValue,
    "str": StringValue,
    "int": IntValue,
    "float": FloatValue,
    "timedelta": DurationValue,
    "datetime.timedelta": DurationValue,
    "list": ListValue,
    "list[str]": ListValue,
    "List[str]": ListValue,
    "typing.List[str]": ListValue,
}

_VALUE_CLASSES_BY_NAME: dict[str, type] = {
    cls.__name__: cls
    for cls in (
        BoolValue,
        StringValue,
        IntValue,
        UintValue,
        FloatValue,
        DurationValue,
        ListValue,
        UniqueListValue,
    )
}


def _split_items(tag: str) -> Iterator[str]:
    """Split on commas and pipes that aren't inside single quotes, dropping empties."""
    quoted = False
    current: list[str] = []
    for char in tag:
        if char == "'":
            quoted = not quoted
        if not quoted and char in ",|":
            if current:
                yield "".join(current)
            current = []
        else:
            current.append(char)
    if current:
        yield "".join(current)


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] == "'" and text[-1] == "'":
        return text[1:-1]
    if len(text) >= 2 and text[0] == '"' and text[-1] == '"':
        try:
            decoded = json.loads(text)
        except ValueError:
            return text
        return decoded if isinstance(decoded, str) else text
    if (
        len(text) >= 2
        and text[0] == "`"
        and text[-1] == "`"
        and not any(ch in text[1:-1] for ch in "`\r")
    ):
        return text[1:-1]
    return text


def parse_tag(tag: str) -> Optional[tuple[FlagConfig, Optional[str]]]:
    """Parse an "ff" tag into a flag config (without a value) and a default.

    Returns None if the tag holds no items at all. The default is None when
    the tag doesn't give one. Raises FlagsError on any invalid item.
    """
    items = list(_split_items(tag))
    if not items:
        return None

    config = FlagConfig()
    default: Optional[str] = None
    for raw_item in items:
        item = raw_item.strip()
        if not item:
            continue

        separators = [pos for pos in (item.find("="), item.find(":")) if pos >= 0]
        if separators:
            sep = min(separators)
            key, value = item[:sep], item[sep + 1:]
        else:
            key, value = item, ""

        key = key.lower().strip()
        if not key:
            raise FlagsError(f'"{item}": no key')
        value = _unquote(value.strip())

        if key in ("s", "short", "shortname"):
            if len(value) != 1:
                raise FlagsError(f'"{item}": invalid short name')
            config.short_name = value
        elif key in ("l", "long", "longname"):
            if not value:
                raise FlagsError(f"{item}: invalid (empty) long name")
            config.long_name = value
        elif key in ("u", "usage"):
            if not value:
                raise FlagsError(f"{item}: invalid (empty) usage")
            config.usage = value
        elif key in ("d", "def", "default"):
            if value in ("", "-"):
                config.no_default = True
            else:
                default = value
        elif key == "nodefault":
            if value:
                raise FlagsError(f"{item}: nodefault should not have a value")
            config.no_default = True
        elif key in ("p", "placeholder"):
            if value in ("", "-"):
                config.no_placeholder = True
            else:
                config.placeholder = value
        elif key == "noplaceholder":
            if value:
                raise FlagsError(f"{item}: noplaceholder should not have a value")
            config.no_placeholder = True
        else:
            raise FlagsError(f"{key}: unknown key")

    return config, default


class _FieldValue:
    """Wraps a typed value and mirrors every change into a dataclass field."""

    def __init__(self, target: Any, attribute: str, inner: Value) -> None:
        self._target = target
        self._attribute = attribute
        self.inner = inner
        self.placeholder = inner.placeholder
        self.is_bool_flag = inner.is_bool_flag
        self._sync()

    def _sync(self) -> None:
        setattr(self._target, self._attribute, self.inner.value)

    def set(self, text: str) -> None:
        self.inner.set(text)
        self._sync()

    def reset(self) -> None:
        self.inner.reset()
        self._sync()

    def __str__(self) -> str:
        return str(self.inner)


def _factory_for(annotation: Any) -> Optional[Callable[..., Value]]:
    if isinstance(annotation, str):
        return _FACTORIES_BY_NAME.get(annotation.replace(" ", ""))
    factory = _SIMPLE_FACTORIES.get(annotation)
    if factory is not None:
        return factory
    if typing.get_origin(annotation) is list:
        args = typing.get_args(annotation)
        if not args or args == (str,):
            return ListValue
    return None


def _value_class_for(annotation: Any) -> Optional[type]:
    if isinstance(annotation, str):
        return _VALUE_CLASSES_BY_NAME.get(annotation.strip())
    if isinstance(annotation, type) and issubclass(annotation, Value):
        return annotation
    return None


def _value_for(obj: Any, name: str, annotation: Any, default: Optional[str]) -> Any:
    current = getattr(obj, name)
    if callable(getattr(current, "set", None)):
        return current

    value_class = _value_class_for(annotation)
    if value_class is not None:
        try:
            created = value_class()
        except TypeError as err:
            raise FlagsError(f"{name}: cannot construct {value_class.__name__}: {err}") from err
        setattr(obj, name, created)
        return created

    factory = _factory_for(annotation)
    if factory is None:
        raise FlagsError(f"{name}: unsupported field type {annotation!r}")

    try:
        inner = factory() if current is None else factory(current)
    except (TypeError, ValueError) as err:
        raise FlagsError(f"{name}: invalid initial value {current!r}: {err}") from err

    if default is not None:
        try:
            inner.set(default)
        except ValueError as err:
            raise FlagsError(f"{name}: default {default!r}: {err}") from err
        inner.default = list(inner.value) if isinstance(inner.value, list) else inner.value

    return _FieldValue(obj, name, inner)


def add_struct(flag_set: FlagSet, obj: Any) -> None:
    """Add a flag to flag_set for every field of obj carrying an "ff" tag.

    obj must be a dataclass instance. Tagged fields must be bool, str, int,
    float, timedelta or list[str], or hold a value object with a set method.
    Field values follow the flags: defaults are written into the fields at
    once, and every later set or reset updates them.
    """
    if not dataclasses.is_dataclass(obj) or isinstance(obj, type):
        raise FlagsError(f"value ({type(obj).__name__}) must be a dataclass instance")

    configs: list[FlagConfig] = []
    for dc_field in dataclasses.fields(obj):
        tag = dc_field.metadata.get("ff")
        if tag is None:
            continue
        try:
            parsed = parse_tag(tag)
        except FlagsError as err:
            raise FlagsError(f"{dc_field.name}: {err}") from err
        if parsed is None:
            continue
        config, default = parsed
        config.value = _value_for(obj, dc_field.name, dc_field.type, default)
        configs.append(config)

    for config in configs:
        flag_set.add_flag(config)


def new_flag_set_from(name: str, obj: Any) -> FlagSet:
    """Create a flag set called name holding the flags defined by obj's fields."""
    flag_set = FlagSet(name)
    add_struct(flag_set, obj)
    return flag_set