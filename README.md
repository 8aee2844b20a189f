# ffconf

Flag sets for command-line programs, with getopt-style parsing and two
optional, lower-priority sources of values: environment variables and a
config file.

Values are taken in this order of priority:

1. the command line,
2. environment variables (when enabled),
3. a config file (when both a file name and a parser are given).

A flag that a higher-priority source has set is never overwritten by a
lower one. Within a config file, a repeated name sets the flag again.

## Install

```
pip install ffconf
```

The package has no dependencies outside the standard library.

## Defining flags

```python
from datetime import timedelta

from ffconf.flag_set import FlagSet
from ffconf.parse import parse

fs = FlagSet("myprogram")
listen = fs.string(None, "listen", "localhost:8080", "listen address")
refresh = fs.duration("r", "refresh", timedelta(seconds=15), "refresh interval")
debug = fs.bool("d", "debug", "log debug information")

parse(fs, ["--refresh=1s", "-d"])

listen.value   # 'localhost:8080'
str(refresh)   # '1s'
debug.value    # True
```

Each helper on `FlagSet` returns the flag's value object (from
`ffconf.values`); its `value` attribute holds the current typed value and
`str()` renders it. The helpers and their argument order:

- `bool(short, long, usage, default=False)` → `BoolValue`
- `string(short, long, default, usage)` → `StringValue`
- `int(short, long, default, usage)` → `IntValue` (signed 64-bit; `0x`, `0o`,
  `0b` and leading-zero octal are accepted)
- `uint(short, long, default, usage)` → `UintValue`
- `float(short, long, default, usage)` → `FloatValue`
- `duration(short, long, default, usage)` → `DurationValue` (`timedelta`,
  written like `250ms`, `1h30m`, `-1.5h`)
- `string_list(short, long, usage)` → `ListValue`, each use appends
- `string_set(short, long, usage)` → `UniqueListValue`, duplicates dropped
- `string_enum(short, long, usage, *valid)` → `EnumValue`, the first valid
  value is the default
- `func(short, long, fn, usage)` calls `fn` with each value; `fn` may raise
  `ValueError` to reject it

`value(short, long, value, usage)` and `add_flag(FlagConfig(...))` define a
flag backed by any object that has a `set(text)` method and renders its
current value with `str()`; it may also offer `reset()`, `placeholder` and
`is_bool_flag`. `FlagConfig` additionally takes `placeholder`,
`no_placeholder` and `no_default`, which control the `placeholder` and
`default` strings a flag reports for help text. A backticked word in the
usage text is used as the placeholder when none is given.

A short name is one character; a long name is non-empty and may not contain
whitespace, quotes, backticks or backslashes. A default-true boolean flag
needs a long name. Names that clash with an existing flag raise
`DuplicateFlagError`.

## Parsing rules

- Short flags may be combined (`-abc`). A short flag that takes a value may
  have it attached (`-sfoo`) or given as the next argument (`-s foo`).
- Long flags take `--name=value` or `--name value`. A boolean long flag
  alone means true; `--name=` also means true, and `--name false` consumes
  the following argument only if it is a boolean word.
- Parsing stops at the first argument that doesn't start with `-`, or after
  `--`; the remaining arguments are in `fs.args`.
- `-h` and `--help` raise `HelpRequested` unless flags with those names are
  defined.

`FlagSet.set_parent(parent)` makes every flag of the parent (recursively)
available to the child for parsing, lookup and `walk_flags()`; it returns the
child. `get_flag(name)` looks a flag up by long name, or by short name for a
single character. `reset()` restores every flag of the set to its default and
allows it to be parsed again; parsing twice without a reset raises
`AlreadyParsedError`.

`ffconf.flag_set.std_flag_set(name, entries)` builds a fixed flag set from
`(name, value, usage)` entries, sorted by name. Every name is a long name,
`-abc` parses the same as `--abc`, `-h` requests help, and no further flags
can be added.

## Flags from a dataclass

`ffconf.structs.new_flag_set_from(name, obj)` and
`ffconf.structs.add_struct(flag_set, obj)` add a flag for every field of a
dataclass instance whose metadata carries an `"ff"` tag:

```python
from dataclasses import dataclass, field

from ffconf.parse import parse
from ffconf.structs import new_flag_set_from


@dataclass
class Options:
    alpha: str = field(default="", metadata={"ff": "short: a, long: alpha, usage: alpha string, default: abc"})
    beta: int = field(default=0, metadata={"ff": "long=beta | usage='beta: an int' | placeholder=N"})
    debug: bool = field(default=False, metadata={"ff": "s=d, usage=debug output, nodefault"})


opts = Options()
fs = new_flag_set_from("mycommand", opts)
parse(fs, ["--beta", "7", "-d"])
opts.alpha, opts.beta, opts.debug   # ('abc', 7, True)
```

Tag items are separated by commas or pipes and written `key=value` or
`key:value`; values may be single-quoted. The keys are `s`/`short`/`shortname`,
`l`/`long`/`longname`, `u`/`usage`, `d`/`def`/`default`, `p`/`placeholder`,
`noplaceholder` and `nodefault`. Supported field types are `bool`, `str`,
`int`, `float`, `timedelta` and `list[str]`; a field annotated with one of the
value classes, or already holding an object with a `set` method, is used
directly. Defaults are written into the fields at once, and every later set
or reset updates them. `parse_tag(tag)` exposes the tag parser on its own.

## Environment variables and config files

```python
from ffconf.parse import ParseOptions, parse, plain_parser

parse(
    fs,
    ["-c", "app.conf"],
    ParseOptions(
        env_var_prefix="MY_PROGRAM",
        config_file_flag="config",
        config_file_parser=plain_parser,
    ),
)
```

`ParseOptions` fields:

- `env_vars` — read flags from the environment. Also enabled by setting
  `env_var_prefix` or `env_var_split`.
- `env_var_prefix` — with `MY_PROGRAM`, the variable `MY_PROGRAM_REFRESH`
  sets the flag `refresh`. Names are upper-cased and `-`, `.` and `/` become
  `_` (see `env_var_key`).
- `env_var_split` — split each value on this delimiter and set the flag once
  per piece; a backslash before the delimiter keeps it literal (see
  `split_escape`).
- `environ` — a mapping to use instead of `os.environ`.
- `config_file` — a config file path; takes precedence over
  `config_file_flag`.
- `config_file_flag` — the name of a flag whose value is the config file path.
- `config_file_parser` — a callable `(stream, set_value)`; without it no
  config file is read.
- `config_allow_missing_file` — ignore a config file that doesn't exist.
- `config_ignore_undefined_flags` — ignore unknown names in the config file
  instead of raising `UnknownFlagError`.
- `open_file` — a callable used instead of `open()` to open the config file.

Names in a config file may be flag names or, when environment variables are
enabled, their environment-variable form.

`plain_parser` reads one `name value` pair per line; a name with no value
means `true`, lines starting with `#` are comments, and ` #` starts an
end-of-line comment. Values are trimmed but otherwise passed through as
written:

```
# full-line comment
timeout 250ms     # end-of-line comment
listen  localhost:9999
verbose
```

`ffconf.traverse.traverse_map(mapping, delimiter, set_value)` flattens nested
mappings (for example, decoded JSON) into `set_value(name, value)` calls,
joining nested keys with the delimiter and calling once per list element, so
a parser for another format can be written on top of it.

## Errors

All errors raised for flag problems derive from `ffconf.flags.FlagsError`:
`HelpRequested`, `UnknownFlagError`, `DuplicateFlagError`,
`AlreadyParsedError`, and `FlagError` for an error tied to one flag (its
message starts with the flag's names). Errors from `parse` carry a prefix
naming the stage: `parse args`, `parse environment` or `parse config file`.
Passing something other than a flag set to `parse` raises `TypeError`.

## What is not included

The package defines, parses and reports on flags; it does not print help or
usage text, though each flag exposes `usage`, `placeholder` and `default` for
building it. It has no sub-command framework beyond parent flag sets, and
the only config file parser included is `plain_parser`.