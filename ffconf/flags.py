"""Core flag abstractions, errors and name helpers."""

from __future__ import annotations

import abc
from typing import Iterator, Optional, Sequence

__all__ = [
    "FlagsError",
    "HelpRequested",
    "UnknownFlagError",
    "DuplicateFlagError",
    "AlreadyParsedError",
    "FlagError",
    "Flag",
    "Flags",
    "is_valid_short_name",
    "is_valid_long_name",
    "name_strings",
    "name_string",
]


class FlagsError(Exception):
    """Base class for every error raised while defining or parsing flags."""

    default_message = "flag error"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(self.default_message if message is None else message)


class HelpRequested(FlagsError):
    """Raised when the user asks for help with -h or --help."""

    default_message = "flag: help requested"


class UnknownFlagError(FlagsError):
    """Raised when an argument or config entry names a flag that doesn't exist."""

    default_message = "unknown flag"


class DuplicateFlagError(FlagsError):
    """Raised when a flag name collides with an existing flag."""

    default_message = "duplicate flag"


class AlreadyParsedError(FlagsError):
    """Raised when a flag set is parsed a second time without a reset."""

    default_message = "flag set already parsed"


class FlagError(FlagsError):
    """An error tied to one specific flag; the message is prefixed by its names."""

    def __init__(self, flag: "Flag", reason: str) -> None:
        self.flag = flag
        self.reason = reason
        super().__init__(f"{name_string(flag)}: {reason}")


class Flag(abc.ABC):
    """A single runtime configuration parameter, settable from a string."""

    @property
    @abc.abstractmethod
    def flags(self) -> "Flags":
        """The flag set in which this flag is defined."""

    @property
    @abc.abstractmethod
    def short_name(self) -> Optional[str]:
        """The single-character short name, or None."""

    @property
    @abc.abstractmethod
    def long_name(self) -> Optional[str]:
        """The long name, or None."""

    @property
    @abc.abstractmethod
    def placeholder(self) -> str:
        """Placeholder for the value in help text; may be empty."""

    @property
    @abc.abstractmethod
    def usage(self) -> str:
        """Short description of the flag."""

    @property
    @abc.abstractmethod
    def default(self) -> str:
        """Default value as shown in help text; may be empty."""

    @property
    @abc.abstractmethod
    def value(self) -> str:
        """The current value rendered as a string."""

    @property
    @abc.abstractmethod
    def is_set(self) -> bool:
        """True once set_value has succeeded."""

    @abc.abstractmethod
    def set_value(self, text: str) -> None:
        """Parse text and assign it to the flag."""


class Flags(abc.ABC):
    """A collection of flags, typically belonging to one command."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """The name of the flag set."""

    @abc.abstractmethod
    def parse(self, args: Sequence[str]) -> None:
        """Parse args against the flag set, keeping leftovers in args."""

    @property
    @abc.abstractmethod
    def is_parsed(self) -> bool:
        """True after a successful parse."""

    @abc.abstractmethod
    def walk_flags(self) -> Iterator[Flag]:
        """Yield every flag known to the set, parents included."""

    @abc.abstractmethod
    def get_flag(self, name: str) -> Optional[Flag]:
        """Return the first flag matching name, or None."""

    @property
    @abc.abstractmethod
    def args(self) -> list[str]:
        """Arguments left over after a successful parse."""


_BAD_LONG_NAME_CHARS = frozenset(
    "\x00" " " "\t\n\v\f\r" "\x85" "\xa0" "\"'" "`" "\\"
)


def is_valid_short_name(short: Optional[str]) -> bool:
    """A short name is exactly one character, neither NUL nor U+FFFD."""
    return (
        isinstance(short, str)
        and len(short) == 1
        and short not in ("\x00", "\ufffd")
    )


def is_valid_long_name(long: Optional[str]) -> bool:
    """A long name is non-empty and free of whitespace, quotes and backslashes."""
    return (
        isinstance(long, str)
        and long != ""
        and not any(ch in _BAD_LONG_NAME_CHARS for ch in long)
    )


def name_strings(flag: Flag) -> list[str]:
    """The valid names of a flag, short name first, without dashes."""
    names = []
    if is_valid_short_name(flag.short_name):
        names.append(flag.short_name)
    if is_valid_long_name(flag.long_name):
        names.append(flag.long_name)
    return names


def name_string(flag: Flag) -> str:
    """The names of a flag as they're typed, e.g. '-f, --foo'."""
    names = []
    if is_valid_short_name(flag.short_name):
        names.append(f"-{flag.short_name}")
    if is_valid_long_name(flag.long_name):
        names.append(f"--{flag.long_name}")
    return ", ".join(names)