"""Parse a flag set from the command line, the environment and a config file."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import IO, Callable, Iterable, Mapping, Optional, Sequence

from ffconf.flags import (
    DuplicateFlagError,
    Flag,
    Flags,
    FlagsError,
    UnknownFlagError,
    name_string,
    name_strings,
)

__all__ = ["ParseOptions", "parse", "plain_parser", "env_var_key", "split_escape"]

SetValue = Callable[[str, str], None]
ConfigFileParser = Callable[[IO[str], SetValue], None]
Opener = Callable[[str], IO[str]]


@dataclass
class ParseOptions:
    """Options that control where parse looks for flag values.

    Environment variables are consulted when env_vars is true, or when a
    prefix or split delimiter is given. A config file is read only when both
    a file name (config_file, or the value of the flag named by
    config_file_flag) and config_file_parser are available.
    """

    env_vars: bool = False
    env_var_prefix: str = ""
    env_var_split: str = ""
    config_file: str = ""
    config_file_flag: str = ""
    config_file_parser: Optional[ConfigFileParser] = None
    config_allow_missing_file: bool = False
    config_ignore_undefined_flags: bool = False
    open_file: Optional[Opener] = None
    environ: Optional[Mapping[str, str]] = None

    @property
    def env_vars_enabled(self) -> bool:
        """True if flags should be read from environment variables."""
        return self.env_vars or bool(self.env_var_prefix) or bool(self.env_var_split)


def _prefix(err: Exception, prefix: str) -> None:
    err.args = (f"{prefix}: {err}",)


def _open_text(path: str) -> IO[str]:
    return open(path, encoding="utf-8")


def _index_env_keys(flags: Flags, prefix: str) -> dict[str, Flag]:
    index: dict[str, Flag] = {}
    for flag in flags.walk_flags():
        for name in name_strings(flag):
            key = env_var_key(name, prefix)
            existing = index.get(key)
            if existing is not None:
                raise DuplicateFlagError(
                    f"{name_string(flag)}: duplicate flag ({name_string(existing)})"
                )
            index[key] = flag
    return index


def _apply_environment(
    flags: Flags,
    options: ParseOptions,
    environ: Mapping[str, str],
    provided: set,
) -> None:
    for flag in flags.walk_flags():
        if flag in provided:
            continue
        for name in name_strings(flag):
            key = env_var_key(name, options.env_var_prefix)
            raw = environ.get(key, "")
            if not raw:
                continue
            values = split_escape(raw, options.env_var_split) if options.env_var_split else [raw]
            for value in values:
                try:
                    flag.set_value(value)
                except ValueError as err:
                    raise FlagsError(f'{key}="{raw}": {err}') from err


def _config_file_name(flags: Flags, options: ParseOptions) -> str:
    if options.config_file:
        return options.config_file
    if options.config_file_flag:
        flag = flags.get_flag(options.config_file_flag)
        if flag is not None:
            return flag.value
    return ""


def _apply_config_file(
    flags: Flags,
    options: ParseOptions,
    env_to_flag: Mapping[str, Flag],
    provided: set,
) -> None:
    path = _config_file_name(flags, options)
    parser = options.config_file_parser
    if not path or parser is None:
        return

    opener = options.open_file or _open_text
    try:
        stream = opener(path)
    except FileNotFoundError:
        if options.config_allow_missing_file:
            return
        raise

    def set_value(name: str, value: str) -> None:
        target = flags.get_flag(name)
        if target is None:
            target = env_to_flag.get(name)
        if target is None:
            if options.config_ignore_undefined_flags:
                return
            raise UnknownFlagError(f"{name}: unknown flag")
        # Flags from higher-priority stages win; repeats within the file still apply.
        if target in provided:
            return
        try:
            target.set_value(value)
        except ValueError as err:
            raise FlagsError(f"{name}: {err}") from err

    with stream:
        try:
            parser(stream, set_value)
        except FlagsError as err:
            _prefix(err, "parse config file")
            raise
        except ValueError as err:
            raise FlagsError(f"parse config file: {err}") from err


def parse(flags: Flags, args: Sequence[str], options: Optional[ParseOptions] = None) -> None:
    """Set flags from args, then the environment, then a config file.

    Each source only sets flags that no higher-priority source has set.
    Raises FlagsError (or a subclass) on any problem, and TypeError if flags
    isn't a flag set.
    """
    if not isinstance(flags, Flags):
        raise TypeError(f"unsupported flag set {type(flags).__name__}")
    opts = options if options is not None else ParseOptions()
    environ = os.environ if opts.environ is None else opts.environ

    env_to_flag: dict[str, Flag] = {}
    if opts.env_vars_enabled:
        env_to_flag = _index_env_keys(flags, opts.env_var_prefix)

    provided: set = set()

    def mark_provided() -> None:
        provided.update(flag for flag in flags.walk_flags() if flag.is_set)

    try:
        flags.parse(args)
    except FlagsError as err:
        _prefix(err, "parse args")
        raise
    mark_provided()

    if opts.env_vars_enabled:
        try:
            _apply_environment(flags, opts, environ, provided)
        except FlagsError as err:
            _prefix(err, "parse environment")
            raise
    mark_provided()

    _apply_config_file(flags, opts, env_to_flag, provided)
    mark_provided()


def plain_parser(stream: Iterable[str], set_value: SetValue) -> None:
    """Read a plain config file: one "name value" pair per line.

    The first space-delimited token is the name and the rest of the line,
    trimmed, is the value. A name alone means "true". Lines starting with
    "#" are comments, and " #" starts an end-of-line comment. Values are
    otherwise passed through literally.
    """
    for raw in stream:
        line = raw.strip()
        if not line or line[0] == "#":
            continue
        name, sep, rest = line.partition(" ")
        value = rest.strip() if sep else "true"
        comment = value.find(" #")
        if comment >= 0:
            value = value[:comment].strip()
        set_value(name, value)


_ENV_SEPARATORS = str.maketrans({"-": "_", ".": "_", "/": "_"})


def env_var_key(flag_name: str, prefix: str = "") -> str:
    """The environment variable name for a flag, e.g. "log-level" -> "PREFIX_LOG_LEVEL"."""
    key = flag_name.lstrip("-").upper().translate(_ENV_SEPARATORS)
    if prefix:
        key = f"{prefix.upper()}_{key}"
    return key


def split_escape(text: str, separator: str) -> list[str]:
    """Split text on separator, except where it follows a single backslash."""
    escape = "\\"
    tokens = list(text) if separator == "" else text.split(separator)
    for index in range(len(tokens) - 2, -1, -1):
        if tokens[index].endswith(escape):
            tokens[index] = tokens[index][: -len(escape)] + separator + tokens[index + 1]
            del tokens[index + 1]
    return tokens