"""A getopt-style flag set with short and long names and parent chaining."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Iterable, Iterator, Optional, Sequence

from ffconf.flags import (
    AlreadyParsedError,
    DuplicateFlagError,
    Flag,
    FlagError,
    Flags,
    FlagsError,
    HelpRequested,
    UnknownFlagError,
    is_valid_long_name,
    is_valid_short_name,
    name_string,
)
from ffconf.values import (
    BoolValue,
    DurationValue,
    EnumValue,
    FloatValue,
    FuncValue,
    IntValue,
    ListValue,
    StringValue,
    UintValue,
    UniqueListValue,
    parse_bool,
)

__all__ = ["FlagConfig", "CoreFlag", "FlagSet", "std_flag_set"]


@dataclass
class FlagConfig:
    """Everything needed to define one flag in a FlagSet.

    At least one of short_name and long_name is required, and value must be
    an object with a set(text) method whose str() is the current value.
    """

    short_name: Optional[str] = None
    long_name: Optional[str] = None
    usage: str = ""
    value: Any = None
    placeholder: str = ""
    no_placeholder: bool = False
    no_default: bool = False


def _attribute(value: Any, name: str, fallback: Any) -> Any:
    attr = getattr(value, name, fallback)
    return attr() if callable(attr) else attr


def _is_bool_value(value: Any) -> bool:
    return bool(_attribute(value, "is_bool_flag", False))


def _is_false_bool(value: Any) -> bool:
    if not _is_bool_value(value):
        return False
    try:
        return not parse_bool(str(value))
    except ValueError:
        return False


def _backticked(usage: str) -> Optional[str]:
    start = usage.find("`")
    if start < 0:
        return None
    end = usage.find("`", start + 1)
    if end < 0:
        return None
    return usage[start + 1:end]


def _placeholder_for(config: FlagConfig) -> str:
    if config.no_placeholder:
        return ""
    if config.placeholder:
        return config.placeholder
    quoted = _backticked(config.usage)
    if quoted is not None:
        return quoted
    if _is_false_bool(config.value):
        return ""
    own = _attribute(config.value, "placeholder", "")
    if own:
        return str(own)
    return type(config.value).__name__.upper().removesuffix("VALUE")


def _help_default_for(config: FlagConfig) -> str:
    if config.no_default or _is_false_bool(config.value):
        return ""
    return str(config.value)


def _has_short(short: Optional[str]) -> bool:
    return bool(short) and short != "\x00"


class CoreFlag(Flag):
    """A flag defined in a FlagSet."""

    def __init__(
        self,
        flag_set: "FlagSet",
        short_name: Optional[str],
        long_name: Optional[str],
        usage: str,
        flag_value: Any,
        true_default: str,
        is_bool_flag: bool,
        placeholder: str,
        help_default: str,
    ) -> None:
        self._flag_set = flag_set
        self._short_name = short_name
        self._long_name = long_name
        self._usage = usage
        self.flag_value = flag_value
        self._true_default = true_default
        self.is_bool_flag = is_bool_flag
        self._is_set = False
        self._placeholder = placeholder
        self._help_default = help_default

    @property
    def flags(self) -> "FlagSet":
        return self._flag_set

    @property
    def short_name(self) -> Optional[str]:
        return self._short_name if is_valid_short_name(self._short_name) else None

    @property
    def long_name(self) -> Optional[str]:
        return self._long_name if is_valid_long_name(self._long_name) else None

    @property
    def usage(self) -> str:
        return self._usage

    @property
    def placeholder(self) -> str:
        return self._placeholder

    @property
    def default(self) -> str:
        return self._help_default

    @property
    def value(self) -> str:
        return str(self.flag_value)

    @property
    def is_set(self) -> bool:
        return self._is_set

    @property
    def is_std_flag(self) -> bool:
        """True if the flag belongs to a standard-style adapter flag set."""
        return self._flag_set._is_std_adapter

    def set_value(self, text: str) -> None:
        """Parse text into the flag value and mark the flag as set."""
        self.flag_value.set(text)
        self._is_set = True

    def reset(self) -> None:
        """Restore the flag's default value and clear its set state."""
        resetter = getattr(self.flag_value, "reset", None)
        if callable(resetter):
            resetter()
        else:
            self.flag_value.set(self._true_default)
        self._is_set = False

    def _assign(self, text: str) -> None:
        try:
            self.set_value(text)
        except ValueError as err:
            raise FlagError(self, f'set "{text}": {err}') from err


def _is_duplicate(incoming: CoreFlag, existing: CoreFlag) -> bool:
    in_short, in_long = incoming.short_name, incoming.long_name
    ex_short, ex_long = existing.short_name, existing.long_name
    same_short = in_short is not None and in_short == ex_short
    same_long = in_long is not None and in_long == ex_long
    short_is_long = in_short is not None and ex_long is not None and in_short == ex_long
    long_is_short = in_long is not None and ex_short is not None and in_long == ex_short
    return same_short or same_long or short_is_long or long_is_short


class FlagSet(Flags):
    """A set of flags parsed getopt-style: -abc, -sVALUE, --long=VALUE, --long VALUE."""

    def __init__(self, name: str) -> None:
        self._name = name
        self._flags: list[CoreFlag] = []
        self._is_parsed = False
        self._args: list[str] = []
        self._is_std_adapter = False
        self._parent: Optional[FlagSet] = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_parsed(self) -> bool:
        return self._is_parsed

    @property
    def args(self) -> list[str]:
        return self._args

    def set_parent(self, parent: Optional["FlagSet"]) -> "FlagSet":
        """Make every flag of parent, recursively, available here; returns self."""
        self._parent = parent
        return self

    def _lineage(self) -> Iterator["FlagSet"]:
        cursor: Optional[FlagSet] = self
        while cursor is not None:
            yield cursor
            cursor = cursor._parent

    def walk_flags(self) -> Iterator[CoreFlag]:
        """Yield every flag in this set, then those of each parent in turn."""
        for flag_set in self._lineage():
            yield from flag_set._flags

    def _find(self, short: Optional[str], long: Optional[str]) -> Optional[CoreFlag]:
        have_short = is_valid_short_name(short)
        have_long = is_valid_long_name(long)
        for candidate in self.walk_flags():
            if have_short and candidate.short_name == short:
                return candidate
            if have_long and candidate.long_name == long:
                return candidate
        return None

    def get_flag(self, name: str) -> Optional[CoreFlag]:
        """Find a flag by long name, or by short name if name is one character."""
        if not name:
            return None
        short = name if len(name) == 1 else None
        return self._find(short, name)

    def parse(self, args: Sequence[str]) -> None:
        """Parse args, setting flags; leftover arguments end up in args."""
        if self._is_parsed:
            raise AlreadyParsedError()
        try:
            self._parse_args(list(args))
        except Exception:
            self._args = []
            raise
        self._is_parsed = True

    def _parse_args(self, args: list[str]) -> None:
        self._args = args
        while args:
            arg, args = args[0], args[1:]
            if arg == "" or arg[0] != "-":
                return
            if arg == "--":
                self._args = args
                return

            is_long = len(arg) > 2 and arg.startswith("--")
            is_short = len(arg) > 1 and not is_long
            if is_short and self._is_std_adapter:
                is_short, is_long = False, True
                arg = "-" + arg

            if is_short:
                args = self._parse_short(arg, args)
            elif is_long:
                args = self._parse_long(arg, args)
            self._args = args

    def _parse_short(self, arg: str, args: list[str]) -> list[str]:
        arg = arg[1:]
        for index, char in enumerate(arg):
            flag = self._find(char, None)
            if flag is None:
                if arg == "-":
                    return args
                if char == "h":
                    raise HelpRequested()
                raise UnknownFlagError(f'unknown flag "{char}"')

            if flag.is_bool_flag:
                value = "true"
            else:
                value = arg[index + 1:]
                if value == "":
                    if not args:
                        raise FlagError(flag, "set: missing argument")
                    value, args = args[0], args[1:]

            flag._assign(value)
            if not flag.is_bool_flag:
                return args
        return args

    def _parse_long(self, arg: str, args: list[str]) -> list[str]:
        name, sep, value = arg.partition("=")
        eq_found = sep == "="
        name = name.removeprefix("--")

        flag = self._find(None, name)
        if flag is None:
            if name.lower() == "help":
                raise HelpRequested()
            if self._is_std_adapter and name.lower() == "h":
                raise HelpRequested()
            raise UnknownFlagError(f'unknown flag "{name}"')

        if eq_found and flag.is_bool_flag and value == "":
            value = "true"

        if value == "" and not eq_found:
            if flag.is_bool_flag:
                value = "true"
                if args:
                    try:
                        parse_bool(args[0])
                    except ValueError:
                        pass
                    else:
                        value, args = args[0], args[1:]
            elif args:
                value, args = args[0], args[1:]
            else:
                raise FlagsError("missing value")

        flag._assign(value)
        return args

    def reset(self) -> None:
        """Restore every flag of this set to its default and forget the parse."""
        for flag in self._flags:
            try:
                flag.reset()
            except ValueError as err:
                raise FlagError(flag, str(err)) from err
        self._args = []
        self._is_parsed = False

    def add_flag(self, config: FlagConfig) -> CoreFlag:
        """Define a flag from config; raises on invalid or duplicate names."""
        if self._is_std_adapter:
            raise FlagsError("cannot add flags to standard flag set adapter")
        value = config.value
        if value is None:
            raise FlagsError("value is required")

        short = config.short_name
        long = (config.long_name or "").strip()
        has_short = _has_short(short)
        valid_short = has_short and is_valid_short_name(short)
        valid_long = is_valid_long_name(long)
        is_bool = _is_bool_value(value)
        true_default = str(value)

        if has_short and not valid_short:
            raise FlagsError(f"-{short}: invalid short name")
        if long and not valid_long:
            raise FlagsError(f"--{long}: invalid long name")
        if not valid_short and not valid_long:
            raise FlagsError("at least one valid name is required")
        if valid_short and valid_long and short == long:
            raise FlagsError(f"-{short}, --{long}: same short and long name")
        if is_bool and not valid_long:
            try:
                default_true = parse_bool(true_default)
            except ValueError:
                default_true = False
            if default_true:
                raise FlagsError(
                    f"-{short}: default true boolean flag requires a long name"
                )

        flag = CoreFlag(
            flag_set=self,
            short_name=short if valid_short else None,
            long_name=long if valid_long else None,
            usage=config.usage,
            flag_value=value,
            true_default=true_default,
            is_bool_flag=is_bool,
            placeholder=_placeholder_for(config),
            help_default=_help_default_for(config),
        )

        for existing in self._flags:
            if _is_duplicate(flag, existing):
                raise DuplicateFlagError(
                    f"{name_string(flag)}: duplicate flag ({name_string(existing)})"
                )

        self._flags.append(flag)
        return flag

    def value(self, short=None, long=None, value=None, usage="") -> CoreFlag:
        """Define a flag backed by an arbitrary value object."""
        return self.add_flag(
            FlagConfig(short_name=short, long_name=long, usage=usage, value=value)
        )

    def bool(self, short=None, long=None, usage="", default=False) -> BoolValue:
        """Define a boolean flag; prefer the default of False."""
        holder = BoolValue(default)
        self.value(short, long, holder, usage)
        return holder

    def string(self, short=None, long=None, default="", usage="") -> StringValue:
        """Define a string flag."""
        holder = StringValue(default)
        self.value(short, long, holder, usage)
        return holder

    def string_list(self, short=None, long=None, usage="") -> ListValue:
        """Define a repeatable string flag; each use appends a value."""
        holder = ListValue()
        self.value(short, long, holder, usage)
        return holder

    def string_set(self, short=None, long=None, usage="") -> UniqueListValue:
        """Define a repeatable string flag that drops duplicate values."""
        holder = UniqueListValue()
        self.value(short, long, holder, usage)
        return holder

    def string_enum(self, short=None, long=None, usage="", *args: str) -> EnumValue:
        """Define a flag restricted to args; the first one is the default."""
        holder = EnumValue(*args)
        self.value(short, long, holder, usage)
        return holder

    def float(self, short=None, long=None, default=0.0, usage="") -> FloatValue:
        """Define a floating-point flag."""
        holder = FloatValue(default)
        self.value(short, long, holder, usage)
        return holder

    def int(self, short=None, long=None, default=0, usage="") -> IntValue:
        """Define a signed integer flag."""
        holder = IntValue(default)
        self.value(short, long, holder, usage)
        return holder

    def uint(self, short=None, long=None, default=0, usage="") -> UintValue:
        """Define an unsigned integer flag."""
        holder = UintValue(default)
        self.value(short, long, holder, usage)
        return holder

    def duration(
        self, short=None, long=None, default=timedelta(0), usage=""
    ) -> DurationValue:
        """Define a duration flag, written like 250ms or 1h30m."""
        holder = DurationValue(default)
        self.value(short, long, holder, usage)
        return holder

    def func(self, short=None, long=None, fn: Callable[[str], Any] = None, usage="") -> CoreFlag:
        """Define a flag that passes each value to fn, which may raise ValueError."""
        if fn is None:
            raise FlagsError("func is required")
        return self.value(short, long, FuncValue(fn), usage)


def std_flag_set(name: str, entries: Iterable[tuple[str, Any, str]]) -> FlagSet:
    """Build a fixed flag set from (name, value, usage) entries, sorted by name.

    Every name is a long name, -abc parses the same as --abc, -h requests
    help, and no further flags can be added.
    """
    flag_set = FlagSet(name)
    for flag_name, value, usage in sorted(entries, key=lambda entry: entry[0]):
        try:
            flag_set.add_flag(FlagConfig(long_name=flag_name, usage=usage, value=value))
        except FlagsError as err:
            raise FlagsError(f"add {flag_name}: {err}") from err
    flag_set._is_std_adapter = True
    return flag_set