"""JSON documents.

The reader is lenient in the same places hand-edited configuration tends
to be: ``//`` and ``/* */`` comments, single-quoted strings, unquoted
property names and a trailing comma before ``}``.  Arrays are refused.

Nested property names are joined with ``:``.  A ``.`` inside a property
name is folded into ``:`` as well, so ``{"a.b": 1}`` and
``{"a": {"b": 1}}`` both flatten to ``a:b``.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import TextIO

from ..errors import (
    DuplicateKeyError,
    FormatError,
    RootNotObjectError,
    UnexpectedEndError,
    UnsupportedTokenError,
)
from ..keys import KEY_DELIMITER, FlatMap
from . import register_format
from .base import FormatCodec, Locator, Resolver

_TOKEN_RX = re.compile(
    r"""
    (?P<Whitespace>\s+)
   |(?P<Comment>//[^\r\n]*|/\*.*?\*/)
   |(?P<String>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
   |(?P<Punct>[{}\[\]:,])
   |(?P<Word>[^\s{}\[\]:,"'/]+)
    """,
    re.VERBOSE | re.DOTALL,
)
_NUMBER_RX = re.compile(r"-?(?:0|[1-9]\d*)(\.\d+)?([eE][+-]?\d+)?")
_PUNCT_KINDS = {
    "{": "StartObject",
    "}": "EndObject",
    "[": "StartArray",
    "]": "EndArray",
    ":": "Colon",
    ",": "Comma",
}
_TRIVIA = frozenset({"Whitespace", "Comment"})
_SCALARS = frozenset({"String", "Integer", "Float", "Boolean", "Null"})


@dataclass(frozen=True)
class _Token:
    kind: str
    text: str
    offset: int
    value: str | None = None


def _classify_word(word: str) -> str:
    if word in ("true", "false"):
        return "Boolean"
    if word == "null":
        return "Null"
    m = _NUMBER_RX.fullmatch(word)
    if m:
        return "Float" if m.group(1) or m.group(2) else "Integer"
    return "Identifier"


def _tokenize(text: str, locate: Locator) -> Iterator[_Token]:
    pos = 0
    while pos < len(text):
        m = _TOKEN_RX.match(text, pos)
        if m is None:
            if text.startswith(("/*", '"', "'"), pos):
                # unterminated comment or string
                raise UnexpectedEndError("", locate(len(text)))
            raise UnsupportedTokenError("Undefined", "", locate(pos))
        kind = m.lastgroup
        tok = m.group()
        value = None
        if kind == "Punct":
            kind = _PUNCT_KINDS[tok]
        elif kind == "Word":
            kind = _classify_word(tok)
        elif kind == "String":
            try:
                value = _decode_string(tok)
            except ValueError as exc:
                raise FormatError(f"Invalid string literal: {exc}", locate(pos)) from exc
        yield _Token(kind, tok, pos, value)
        pos = m.end()


def _decode_string(text: str) -> str:
    if text[0] == '"':
        return json.loads(text, strict=False)
    # re-quote a single-quoted literal so the json module can decode it
    body = re.sub(
        r"""\\(.)|(")""",
        lambda m: '\\"' if m.group(2) else (m.group(1) if m.group(1) == "'" else m.group()),
        text[1:-1],
        flags=re.DOTALL,
    )
    return json.loads(f'"{body}"', strict=False)


def _encode_string(value: str, quote: str = '"') -> str:
    encoded = json.dumps(value, ensure_ascii=False)
    if quote == '"':
        return encoded
    body = encoded[1:-1].replace('\\"', '"').replace("'", "\\'")
    return f"'{body}'"


def _scalar_value(token: _Token) -> str:
    if token.kind == "String":
        return token.value
    if token.kind == "Null":
        return ""
    return token.text


def _flatten_name(name: str) -> str:
    return name.replace(".", KEY_DELIMITER)


def _walk(text: str) -> Iterator[tuple[_Token, str | None]]:
    """Yield every token of *text* together with the key of scalar values.

    The walk validates the document structure; trivia (whitespace and
    comments) is yielded wherever it occurs so callers can copy it.
    """
    locate = Locator(text)
    names: list[str] = []
    current: str | None = None
    depth = 0
    expect = "root"

    def path() -> str:
        parts = names + ([current] if current is not None else [])
        return KEY_DELIMITER.join(parts)

    for token in _tokenize(text, locate):
        if token.kind in _TRIVIA:
            yield token, None
            continue
        kind = token.kind
        if expect == "root":
            if kind != "StartObject":
                raise RootNotObjectError(locate(token.offset))
            depth = 1
            expect = "name"
            yield token, None
            continue
        if expect == "done":
            raise UnsupportedTokenError(kind, "", locate(token.offset))

        if expect == "name" and kind in ("String", "Identifier", "Integer", "Float", "Boolean", "Null"):
            raw_name = token.value if kind == "String" else token.text
            current = _flatten_name(raw_name)
            expect = "colon"
            yield token, None
        elif expect == "colon" and kind == "Colon":
            expect = "value"
            yield token, None
        elif expect == "value" and kind == "StartObject":
            names.append(current)
            current = None
            depth += 1
            expect = "name"
            yield token, None
        elif expect == "value" and kind in _SCALARS:
            expect = "separator"
            yield token, path()
        elif expect == "separator" and kind == "Comma":
            expect = "name"
            yield token, None
        elif expect in ("name", "separator") and kind == "EndObject":
            depth -= 1
            if depth == 0:
                expect = "done"
            else:
                current = names.pop()
                expect = "separator"
            yield token, None
        else:
            raise UnsupportedTokenError(kind, path(), locate(token.offset))

    if expect == "root":
        raise RootNotObjectError(locate(len(text)))
    if expect != "done":
        raise UnexpectedEndError(path(), locate(len(text)))


_BARE_LITERAL_RX = re.compile(r"true|false|null|" + _NUMBER_RX.pattern)


def _render(token: _Token, value: str) -> str:
    if value == _scalar_value(token):
        return token.text
    if token.kind == "String":
        return _encode_string(value, token.text[0])
    if _BARE_LITERAL_RX.fullmatch(value):
        return value
    return _encode_string(value)


@register_format
class JsonCodec(FormatCodec):
    suffixes = (".json",)

    def parse(self, stream: TextIO) -> FlatMap:
        text = stream.read()
        locate = Locator(text)
        data = FlatMap()
        for token, key in _walk(text):
            if key is None:
                continue
            if key in data:
                raise DuplicateKeyError(key, locate(token.offset))
            data[key] = _scalar_value(token)
        return data

    def rewrite(self, template: TextIO, output: TextIO, resolve: Resolver) -> None:
        for token, key in _walk(template.read()):
            if key is None:
                output.write(token.text)
            else:
                output.write(_render(token, resolve(key)))

    def generate(self, data: Mapping[str, str], output: TextIO) -> None:
        text = json.dumps(dict(data.items()), indent=self.options.indent, ensure_ascii=False)
        if self.options.newline != "\n":
            text = text.replace("\n", self.options.newline)
        output.write(text)
