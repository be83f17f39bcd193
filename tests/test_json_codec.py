from __future__ import annotations

import pytest

from confmodel.config import Options
from confmodel.errors import (
    DuplicateKeyError,
    FormatError,
    Location,
    RootNotObjectError,
    UnexpectedEndError,
    UnsupportedTokenError,
)
from confmodel.formats import JsonCodec
from tests.utils import generate, parse, rewrite

LENIENT = """\
{
  // line comment
  'single': 'it\\'s',
  bare: 42,
  "flag": true,
  "nothing": null,
  /* block
     comment */ "f": 1.5e3,
}
"""


def test_parse_nested_objects():
    data = parse(JsonCodec(), '{"name":"test","address":{"street":"S","geo":{"lat":"1"}}}')
    assert list(data) == ["name", "address:street", "address:geo:lat"]
    assert data["ADDRESS:Street"] == "S"


def test_parse_lenient_syntax():
    data = parse(JsonCodec(), LENIENT)
    assert dict(data.items()) == {
        "single": "it's",
        "bare": "42",
        "flag": "true",
        "nothing": "",
        "f": "1.5e3",
    }


def test_parse_decodes_escapes():
    data = parse(JsonCodec(), r'{"a": "tab\tquote\" é"}')
    assert data["a"] == 'tab\tquote" é'


def test_dot_in_property_name_becomes_separator():
    data = parse(JsonCodec(), '{"a.b": "1", "c": {"d.e": "2"}}')
    assert dict(data.items()) == {"a:b": "1", "c:d:e": "2"}


def test_dotted_name_collides_with_nesting():
    with pytest.raises(DuplicateKeyError) as exc:
        parse(JsonCodec(), '{"a.b": 1, "A": {"B": 2}}')
    assert exc.value.key == "A:B"
    assert exc.value.location == Location(1, 23)


def test_empty_objects_yield_no_keys():
    assert len(parse(JsonCodec(), '{"a": {}, "b": {"c": {}}}')) == 0
    assert len(parse(JsonCodec(), "{}")) == 0


def test_array_is_unsupported():
    with pytest.raises(UnsupportedTokenError) as exc:
        parse(JsonCodec(), '{"a": [1]}')
    assert exc.value.kind == "StartArray"
    assert exc.value.path == "a"
    assert exc.value.location == Location(1, 7)


@pytest.mark.parametrize("text", ["[1]", '"x"', "42", "", "  // nothing\n"])
def test_root_must_be_object(text):
    with pytest.raises(RootNotObjectError):
        parse(JsonCodec(), text)


def test_content_after_root_is_unsupported():
    with pytest.raises(UnsupportedTokenError) as exc:
        parse(JsonCodec(), "{}\n{}")
    assert exc.value.location == Location(2, 1)


@pytest.mark.parametrize(
    "text",
    ['{"a": {"b": 1}', '{"a": "unterminated', '{"a": 1 /* open comment'],
)
def test_unexpected_end(text):
    with pytest.raises(UnexpectedEndError):
        parse(JsonCodec(), text)


def test_missing_colon_is_unsupported():
    with pytest.raises(UnsupportedTokenError) as exc:
        parse(JsonCodec(), '{\n  "a" "b"\n}')
    assert exc.value.kind == "String"
    assert exc.value.location == Location(2, 7)


def test_invalid_escape_is_a_format_error():
    with pytest.raises(FormatError) as exc:
        parse(JsonCodec(), r'{"a": "\q"}')
    assert exc.value.location == Location(1, 7)


def test_rewrite_changes_only_values():
    out = rewrite(JsonCodec(), LENIENT, {
        "single": "new",
        "bare": "7",
        "flag": "yes",
        "nothing": "",
        "f": "1.5e3",
    })
    assert out == LENIENT.replace("'it\\'s'", "'new'").replace("42", "7").replace(
        "true", '"yes"'
    )


def test_rewrite_string_escaping_follows_quote_style():
    out = rewrite(JsonCodec(), """{"a": "x", 'b': 'y'}""", {"a": 'say "hi"', "b": "it's"})
    assert out == """{"a": "say \\"hi\\"", 'b': 'it\\'s'}"""


def test_rewrite_literal_kinds():
    template = '{"n": 1, "z": null, "s": "1"}'
    out = rewrite(JsonCodec(), template, {"n": "false", "z": "null", "s": "2"})
    assert out == '{"n": false, "z": null, "s": "2"}'
    out = rewrite(JsonCodec(), template, {"n": "", "z": "x", "s": "1"})
    assert out == '{"n": "", "z": "x", "s": "1"}'


def test_generate_flat_object():
    out = generate(JsonCodec(), {"a:b": "1", "c": "2"})
    assert out == '{\n  "a:b": "1",\n  "c": "2"\n}'


def test_generate_empty_and_options():
    assert generate(JsonCodec(), {}) == "{}"
    codec = JsonCodec(Options(newline="\r\n", indent=4))
    assert generate(codec, {"k": "é"}) == '{\r\n    "k": "é"\r\n}'


def test_generated_document_parses_back():
    values = {"a:b": "1", "c": 'quote " and \\ slash'}
    assert parse(JsonCodec(), generate(JsonCodec(), values)) == values
