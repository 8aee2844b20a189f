from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

import pytest

from ffconf.flag_set import FlagSet
from ffconf.flags import DuplicateFlagError, FlagsError, UnknownFlagError, name_string
from ffconf.structs import add_struct, new_flag_set_from, parse_tag
from ffconf.values import IntValue, UniqueListValue


def ff(tag, default=None, factory=None):
    if factory is not None:
        return field(default_factory=factory, metadata={"ff": tag})
    return field(default=default, metadata={"ff": tag})


@dataclass
class MyFlags:
    alpha: str = ff("short: a, long: alpha, default: alpha-default, usage: alpha string", "")
    beta: int = ff("          long: beta,  placeholder: β,         usage: beta int", 0)
    delta: bool = ff("short: d,              nodefault,              usage: delta bool", False)
    epsilon: bool = ff("| short=e | long=epsilon | nodefault    | usage: epsilon bool          |", False)
    gamma: str = ff("| short=g | long=gamma   |              | usage: 'usage, with a comma' |", "")
    iota: float = ff("|         | long=iota    | default=0.43 | usage: iota float            |", 0.0)


def _help_rows(fs):
    return [(name_string(f), f.placeholder, f.usage, f.default) for f in fs.walk_flags()]


def test_struct_help_rows():
    fs = new_flag_set_from("TestFlagSet_structs", MyFlags())
    assert fs.name == "TestFlagSet_structs"
    assert _help_rows(fs) == [
        ("-a, --alpha", "STRING", "alpha string", "alpha-default"),
        ("--beta", "β", "beta int", "0"),
        ("-d", "", "delta bool", ""),
        ("-e, --epsilon", "", "epsilon bool", ""),
        ("-g, --gamma", "STRING", "usage, with a comma", ""),
        ("--iota", "FLOAT64", "iota float", "0.43"),
    ]


@pytest.mark.parametrize(
    "args, want",
    [
        ("--alpha=x", MyFlags(alpha="x", iota=0.43)),
        ("-e --iota=1.23", MyFlags(alpha="alpha-default", epsilon=True, iota=1.23)),
        ("-gabc -d", MyFlags(alpha="alpha-default", delta=True, gamma="abc", iota=0.43)),
    ],
)
def test_struct_parse_cases(args, want):
    flags = MyFlags()
    fs = new_flag_set_from("structs", flags)
    fs.parse(args.split())
    assert flags == want
    fs.reset()
    fs.parse(args.split())
    assert flags == want


def test_struct_reset_and_reparse():
    flags = MyFlags()
    fs = new_flag_set_from("structs", flags)

    fs.parse([])
    assert flags.alpha == "alpha-default"
    assert flags.beta == 0
    assert flags.delta is False

    fs.reset()
    fs.parse(["-afoo", "--beta", "7", "-d"])
    assert flags.alpha == "foo"
    assert flags.beta == 7
    assert flags.delta is True

    fs.reset()
    assert flags == MyFlags(alpha="alpha-default", iota=0.43)


def test_struct_fields_implementing_value():
    @dataclass
    class Implements:
        foo: UniqueListValue = ff("longname=foo , usage=foo strings", factory=UniqueListValue)
        bar: IntValue = ff("longname=bar , usage=bar int", factory=IntValue)

    flags = Implements()
    fs = FlagSet("implements")
    add_struct(fs, flags)
    fs.parse(["--foo=a", "--foo", "b", "--foo", "a", "--bar", "5"])
    assert flags.foo.value == ["a", "b"]
    assert flags.bar.value == 5


@dataclass
class BadKey:
    a: int = ff("x", 0)


@dataclass
class BadLong:
    b: int = ff("short = a, longname=, usage=some usage", 0)


@dataclass
class BadShort:
    c: int = ff("short = ,", 0)


@dataclass
class BadType:
    d: dict = ff("long=alpha", factory=dict)


@dataclass
class SameNames:
    e: bool = ff("s=e,l=e", False)


@dataclass
class WeirdLong:
    f: str = ff("long:' usage='value,u=this is a weird one", "")


@dataclass
class BlankLong:
    g: str = ff("long:'  '", "")


@pytest.mark.parametrize(
    "obj", [BadKey(), BadLong(), BadShort(), BadType(), SameNames(), WeirdLong(), BlankLong()]
)
def test_struct_invalid(obj):
    fs = FlagSet("invalid")
    with pytest.raises(FlagsError):
        add_struct(fs, obj)
    assert list(fs.walk_flags()) == []


def test_struct_duplicate_with_existing_flag():
    @dataclass
    class Dupe:
        apple: str = ff("short=a, long=apple", "")

    fs = FlagSet("dupe")
    fs.bool("a", "alpha", "some bool flag")
    with pytest.raises(DuplicateFlagError):
        add_struct(fs, Dupe())


def test_struct_ignore_untagged_and_reset():
    @dataclass
    class A:
        foo: str = ff("long=foo, usage=foo string, default=xxx", "")
        bar: str = ""
        baz: str = ff("long=baz, usage=baz string", "")
        qux: str = ""

    aval = A()
    fs = FlagSet("ignore")
    add_struct(fs, aval)

    with pytest.raises(UnknownFlagError):
        fs.parse(["--foo=abc", "--bar=def", "--baz=ghi"])

    fs.parse(["--foo=1", "--baz=2"])
    assert aval.foo == "1"
    assert aval.baz == "2"

    fs.reset()
    assert aval.foo == "xxx"
    assert aval.baz == ""


@dataclass
class EmbA:
    foo: str = ff("short=f, long=foo, usage=foo string", "")
    bar: int = ff("         long=bar, usage=bar int, default=32", 0)


@dataclass
class EmbB:
    a: EmbA = field(default_factory=EmbA)
    quux: bool = ff("short=q, long=quux, usage=quux bool", False)


@dataclass
class EmbC:
    a: Optional[EmbA] = None
    zombo: bool = ff("short=z, long=zombo, usage=zombo bool", False)


def test_struct_nested_untagged_fields_are_skipped():
    fs = FlagSet("embedded")
    aflags = EmbA()
    add_struct(fs, aflags)
    add_struct(fs, EmbB())
    add_struct(fs, EmbC())
    assert [name_string(f) for f in fs.walk_flags()] == [
        "-f, --foo",
        "--bar",
        "-q, --quux",
        "-z, --zombo",
    ]
    assert aflags.bar == 32


@dataclass
class FirstFlags:
    alpha: str = ff("shortname: a, longname: alpha, usage: alpha string,    default: abc   ", "")
    beta: int = ff("              longname: beta,  usage: 'beta: an int',  placeholder: β ", 0)
    delta: bool = ff("shortname: d,                  usage: 'delta, a bool', nodefault      ", False)
    epsilon: bool = ff("short: e,     long: epsilon,   usage: epsilon bool,    nodefault      ", False)


@dataclass
class SecondFlags:
    gamma: str = ff(" short=g | long=gamma |              | usage: gamma string       ", "")
    iota: float = ff("         | long=iota  | default=0.43 | usage: 🦊                 ", 0.0)
    kappa: UniqueListValue = ff(" short=k | long=kappa |              | usage: kappa (repeatable) ", factory=UniqueListValue)


def test_example_add_struct():
    fs = FlagSet("mycommand")
    add_struct(fs, FirstFlags())
    add_struct(fs, SecondFlags())
    assert _help_rows(fs) == [
        ("-a, --alpha", "STRING", "alpha string", "abc"),
        ("--beta", "β", "beta: an int", "0"),
        ("-d", "", "delta, a bool", ""),
        ("-e, --epsilon", "", "epsilon bool", ""),
        ("-g, --gamma", "STRING", "gamma string", ""),
        ("--iota", "FLOAT64", "🦊", "0.43"),
        ("-k, --kappa", "STRING", "kappa (repeatable)", ""),
    ]


def test_other_field_types():
    @dataclass
    class Other:
        wait: timedelta = ff("long=wait, default=1m30s", timedelta(0))
        tags: list[str] = ff("short=t, long=tag", factory=list)

    flags = Other()
    fs = new_flag_set_from("other", flags)
    assert flags.wait == timedelta(seconds=90)
    assert fs.get_flag("wait").default == "1m30s"
    fs.parse(["--wait", "2s", "-t", "x", "-ty"])
    assert flags.wait == timedelta(seconds=2)
    assert flags.tags == ["x", "y"]
    fs.reset()
    assert flags.wait == timedelta(seconds=90)
    assert flags.tags == []


def test_invalid_default_raises():
    @dataclass
    class BadDefault:
        n: int = ff("long=n, default=abc", 0)

    with pytest.raises(FlagsError, match="n: default"):
        add_struct(FlagSet("x"), BadDefault())


@pytest.mark.parametrize("obj", [5, "text", MyFlags])
def test_add_struct_requires_dataclass_instance(obj):
    with pytest.raises(FlagsError, match="must be a dataclass instance"):
        add_struct(FlagSet("x"), obj)


def test_parse_tag_values():
    config, default = parse_tag("short: a, long: alpha, usage: 'x, y', default: abc, placeholder: P")
    assert config.short_name == "a"
    assert config.long_name == "alpha"
    assert config.usage == "x, y"
    assert config.placeholder == "P"
    assert default == "abc"
    assert config.value is None


def test_parse_tag_flags_and_dashes():
    config, default = parse_tag('long="quoted", default=-, placeholder=-')
    assert config.long_name == "quoted"
    assert config.no_default is True
    assert config.no_placeholder is True
    assert default is None


@pytest.mark.parametrize("tag", ["", ",,|"])
def test_parse_tag_without_items(tag):
    assert parse_tag(tag) is None


@pytest.mark.parametrize(
    "tag, message",
    [
        ("x", "unknown key"),
        ("=value", "no key"),
        ("short=ab", "invalid short name"),
        ("long=", "invalid (empty) long name"),
        ("usage=", "invalid (empty) usage"),
        ("nodefault=1", "nodefault should not have a value"),
        ("noplaceholder=1", "noplaceholder should not have a value"),
    ],
)
def test_parse_tag_errors(tag, message):
    with pytest.raises(FlagsError) as info:
        parse_tag(tag)
    assert message in str(info.value)