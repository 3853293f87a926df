import pytest

from mutagate.parser import ListNode, NodeType, ObjectNode, ParseError, Path, parse

O = ObjectNode
L = ListNode

VALID = [
    ("", []),
    ("single_field", [O("single_field")]),
    (
        "spec.containers[name: *].securityContext",
        [O("spec"), O("containers"), L("name", glob=True), O("securityContext")],
    ),
    (
        'spec.containers[name: "*"].securityContext',
        [O("spec"), O("containers"), L("name", key_value="*"), O("securityContext")],
    ),
    (
        "spec.containers[name: foo].securityContext",
        [O("spec"), O("containers"), L("name", key_value="foo"), O("securityContext")],
    ),
    (
        'spec.containers["my key": "foo bar"]',
        [O("spec"), O("containers"), L("my key", key_value="foo bar")],
    ),
    (
        'spec.containers[name: ""].securityContext',
        [O("spec"), O("containers"), L("name", key_value=""), O("securityContext")],
    ),
    (
        'spec.containers["": "someValue"].securityContext',
        [O("spec"), O("containers"), L("", key_value="someValue"), O("securityContext")],
    ),
    ('foo."".bar', [O("foo"), O(""), O("bar")]),
    ("    spec   .    containers    ", [O("spec"), O("containers")]),
    ('    spec   .    "containers"    ', [O("spec"), O("containers")]),
    ("-123-_456_", [O("-123-_456_")]),
    ("012345", [O("012345")]),
    ('spec."foo bar"', [O("spec"), O("foo bar")]),
    ('spec."foo\nbar"', [O("spec"), O("foo\nbar")]),
    (
        "spec.\"this object\".\"is very\"[\"much full\": 'of everyone\\'s'].'favorite thing'",
        [O("spec"), O("this object"), O("is very"),
         L("much full", key_value="of everyone's"), O("favorite thing")],
    ),
]

INVALID = [
    ".spec",
    "spec.",
    'spec.containers[my key: "foo bar"]',
    "spec.containers[key: foo bar]",
    "spec.containers[name: ].securityContext",
    "spec.containers[].securityContext",
    "spec.containers[:].securityContext",
    "spec.containers[:foo].securityContext",
    "spec.containers[foo].securityContext",
    "spec.containers[*].securityContext",
    "foo..bar",
    "[foo: bar]",
    "[foo: bar][bar: *]",
    "spec.containers[foo: bar][bar: *]",
    "spec.[foo: bar]",
    "spec.foo bar",
    "*",
    "][",
    "foo[",
    "[",
    ":",
]


@pytest.mark.parametrize("text,expected", VALID)
def test_parse_valid(text, expected):
    assert parse(text).nodes == expected


@pytest.mark.parametrize("text", INVALID)
def test_parse_invalid(text):
    with pytest.raises(ParseError):
        parse(text)


def test_trailing_separator_message():
    with pytest.raises(ParseError, match="trailing separators are forbidden"):
        parse("spec.")


def test_missing_key_field_message():
    with pytest.raises(ParseError) as info:
        parse("foo[")
    assert str(info.value) == 'expected keyField in listSpec, got: EOF: ""'


def test_unexpected_token_message():
    with pytest.raises(ParseError) as info:
        parse("*")
    assert str(info.value) == (
        'unexpected token: expected field name or eof, got: GLOB: "*"'
    )


def test_node_types():
    path = parse("a[b: c]")
    assert path.node_type() is NodeType.PATH
    assert [n.node_type() for n in path.nodes] == [NodeType.OBJECT, NodeType.LIST]


def test_list_value():
    assert L("name", key_value="x").value() == "x"
    assert L("name", glob=True).value() is None


def test_empty_path_default():
    assert Path().nodes == []