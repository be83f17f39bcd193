"""XML documents.

Keys are built from element names below the root element::

    <settings Port="8008">
      <Data Name="Inventory" Provider="MySql">
        <ConnectionString>Server=db</ConnectionString>
      </Data>
    </settings>

flattens to ``Port``, ``Data:Inventory:Provider`` and
``Data:Inventory:ConnectionString``.  A ``Name`` attribute adds its value
as an extra path segment so repeated sibling tags stay distinguishable;
every other attribute is a leaf key of its own.

DTDs and namespaces are refused.  Comments, processing instructions and
the XML declaration are kept on rewrite but never produce keys.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import TextIO
from xml.sax.saxutils import escape

from ..errors import (
    DtdProhibitedError,
    DuplicateKeyError,
    Location,
    NamespaceNotSupportedError,
    UnexpectedEndError,
    XmlSyntaxError,
)
from ..keys import KEY_DELIMITER, FlatMap, combine_key, split_key
from . import register_format
from .base import FormatCodec, Locator, Resolver

NAME_ATTRIBUTE = "name"

_START_TAG_RX = re.compile(
    r"""<(?P<name>[^\s/>]+)
        (?P<attrs>(?:\s+[^\s=/>]+\s*=\s*(?:"[^"]*"|'[^']*'))*)
        \s*(?P<close>/?)>""",
    re.VERBOSE,
)
_ATTR_RX = re.compile(r"""\s+([^\s=/>]+)\s*=\s*(?:"([^"]*)"|'([^']*)')""")
_END_TAG_RX = re.compile(r"</([^\s>]+)\s*>")
_REF_RX = re.compile(r"&(?:(#x[0-9a-fA-F]+|#[0-9]+|[A-Za-z_][\w.-]*);)?")
_VALID_NAME_RX = re.compile(r"[A-Za-z_][\w.-]*")
_ENTITIES = {"lt": "<", "gt": ">", "amp": "&", "quot": '"', "apos": "'"}
_DELIMITED = (
    ("<!--", "-->", "Comment"),
    ("<![CDATA[", "]]>", "CData"),
    ("<?", "?>", "Instruction"),
)


@dataclass(frozen=True)
class _Attr:
    name: str
    value: str
    quote: str
    start: int
    end: int


@dataclass(frozen=True)
class _Token:
    kind: str
    text: str
    offset: int
    name: str | None = None
    attrs: tuple[_Attr, ...] = ()
    self_closing: bool = False


@dataclass
class _Element:
    name: str
    path: list[str]
    pieces: list[int] = field(default_factory=list)
    has_children: bool = False


@dataclass(frozen=True)
class _Slot:
    """A value-bearing spot in the document."""

    key: str
    value: str
    location: Location
    token: int
    attr: _Attr | None = None
    pieces: tuple[int, ...] = ()


def _is_xml_char(code: int) -> bool:
    # the Char production of XML 1.0
    return (
        code in (0x9, 0xA, 0xD)
        or 0x20 <= code <= 0xD7FF
        or 0xE000 <= code <= 0xFFFD
        or 0x10000 <= code <= 0x10FFFF
    )


def _decode(text: str, location: Location) -> str:
    def repl(m: re.Match[str]) -> str:
        ref = m.group(1)
        if ref is None:
            raise XmlSyntaxError("An unescaped '&' was found", location)
        if ref.startswith("#"):
            code = int(ref[2:], 16) if ref.startswith("#x") else int(ref[1:])
            if not _is_xml_char(code):
                raise XmlSyntaxError(f"Invalid character reference '&{ref};'", location)
            return chr(code)
        try:
            return _ENTITIES[ref]
        except KeyError:
            raise XmlSyntaxError(f"Reference to undeclared entity '{ref}'", location) from None

    return _REF_RX.sub(repl, text)


def _check_name(name: str, location: Location) -> None:
    if name == "xmlns" or name.startswith("xmlns:") or ":" in name:
        raise NamespaceNotSupportedError(location)


def _tokenize(text: str, locate: Locator) -> Iterator[_Token]:
    pos = 0
    while pos < len(text):
        if text[pos] != "<":
            end = text.find("<", pos)
            end = len(text) if end < 0 else end
            yield _Token("Text", text[pos:end], pos)
            pos = end
            continue
        for opener, closer, kind in _DELIMITED:
            if text.startswith(opener, pos):
                end = text.find(closer, pos + len(opener))
                if end < 0:
                    raise UnexpectedEndError("", locate(len(text)))
                end += len(closer)
                yield _Token(kind, text[pos:end], pos)
                pos = end
                break
        else:
            if text.startswith("<!DOCTYPE", pos):
                raise DtdProhibitedError(locate(pos))
            if text.startswith("<!", pos):
                raise XmlSyntaxError("Unsupported markup declaration", locate(pos))
            if text.startswith("</", pos):
                m = _END_TAG_RX.match(text, pos)
                if m is None:
                    raise XmlSyntaxError("Malformed end tag", locate(pos))
                _check_name(m.group(1), locate(pos + 2))
                yield _Token("EndTag", m.group(), pos, name=m.group(1))
                pos = m.end()
                continue
            m = _START_TAG_RX.match(text, pos)
            if m is None:
                raise XmlSyntaxError("Malformed markup", locate(pos))
            _check_name(m.group("name"), locate(pos + 1))
            attrs = []
            base = m.start("attrs") - pos
            for am in _ATTR_RX.finditer(m.group("attrs")):
                name = am.group(1)
                _check_name(name, locate(m.start("attrs") + am.start(1)))
                group = 2 if am.group(2) is not None else 3
                start, end = base + am.start(group), base + am.end(group)
                quote = m.group()[start - 1]
                value = _decode(am.group(group), locate(pos + start))
                attrs.append(_Attr(name, value, quote, start, end))
            yield _Token(
                "StartTag",
                m.group(),
                pos,
                name=m.group("name"),
                attrs=tuple(attrs),
                self_closing=bool(m.group("close")),
            )
            pos = m.end()


def _piece_value(token: _Token, locate: Locator) -> str:
    if token.kind == "CData":
        return token.text[len("<![CDATA["):-len("]]>")]
    return _decode(token.text, locate(token.offset))


def _name_attr(token: _Token) -> _Attr | None:
    for attr in token.attrs:
        if attr.name.lower() == NAME_ATTRIBUTE:
            return attr
    return None


def _analyze(text: str) -> tuple[list[_Token], list[_Slot]]:
    """Tokenize *text* and locate every value-bearing slot in document order."""
    locate = Locator(text)
    tokens = list(_tokenize(text, locate))
    slots: list[_Slot] = []
    stack: list[_Element] = []
    seen_root = False

    def close(elem: _Element, end_index: int) -> None:
        if not elem.path:
            return
        values = [_piece_value(tokens[i], locate) for i in elem.pieces]
        if elem.has_children:
            # whitespace between child elements is layout, not a value
            significant = [
                (i, v) for i, v in zip(elem.pieces, values)
                if tokens[i].kind == "CData" or v.strip()
            ]
            if not significant:
                return
            pieces = [i for i, _ in significant]
            value = "".join(v for _, v in significant)
        else:
            pieces = elem.pieces
            value = "".join(values)
            if not any(tokens[i].kind == "CData" for i in pieces) and not value.strip():
                value = ""
        anchor = tokens[pieces[0]].offset if pieces else tokens[end_index].offset
        slots.append(
            _Slot(combine_key(*elem.path), value, locate(anchor), end_index, pieces=tuple(pieces))
        )

    for index, token in enumerate(tokens):
        if token.kind in ("Comment", "Instruction"):
            continue
        if token.kind in ("Text", "CData"):
            if stack:
                stack[-1].pieces.append(index)
            elif token.kind == "CData" or token.text.strip():
                raise XmlSyntaxError("Text is not allowed outside the root element", locate(token.offset))
            continue
        if token.kind == "StartTag":
            if stack:
                stack[-1].has_children = True
                path = stack[-1].path + [token.name]
            elif seen_root:
                raise XmlSyntaxError("Multiple root elements", locate(token.offset))
            else:
                seen_root = True
                path = []
            name_attr = _name_attr(token)
            if name_attr is not None:
                path = path + [name_attr.value]
            for attr in token.attrs:
                if attr is name_attr:
                    continue
                slots.append(
                    _Slot(
                        combine_key(*path, attr.name),
                        attr.value,
                        locate(token.offset + attr.start),
                        index,
                        attr=attr,
                    )
                )
            if not token.self_closing:
                stack.append(_Element(token.name, path))
            continue
        # EndTag
        if not stack or stack[-1].name != token.name:
            raise XmlSyntaxError(f"Unexpected end tag '{token.name}'", locate(token.offset))
        close(stack.pop(), index)

    if stack:
        raise UnexpectedEndError(combine_key(*stack[-1].path), locate(len(text)))
    if not seen_root:
        raise XmlSyntaxError("Root element is missing", locate(len(text)))
    return tokens, slots


def _render_piece(token: _Token, value: str) -> str:
    if token.kind == "CData" and "]]>" not in value:
        return f"<![CDATA[{value}]]>"
    return escape(value)


def _render_start_tag(token: _Token, changes: list[tuple[_Attr, str]]) -> str:
    text = token.text
    for attr, value in sorted(changes, key=lambda c: c[0].start, reverse=True):
        entities = {'"': "&quot;"} if attr.quote == '"' else {"'": "&apos;"}
        text = text[:attr.start] + escape(value, entities) + text[attr.end:]
    return text


@register_format
class XmlCodec(FormatCodec):
    suffixes = (".xml", ".config")

    def parse(self, stream: TextIO) -> FlatMap:
        _, slots = _analyze(stream.read())
        data = FlatMap()
        for slot in slots:
            if slot.key in data:
                raise DuplicateKeyError(slot.key, slot.location)
            data[slot.key] = slot.value
        return data

    def rewrite(self, template: TextIO, output: TextIO, resolve: Resolver) -> None:
        tokens, slots = _analyze(template.read())
        replaced: dict[int, str] = {}
        dropped: set[int] = set()
        inserted: dict[int, str] = {}
        attr_changes: dict[int, list[tuple[_Attr, str]]] = {}
        for slot in slots:
            value = resolve(slot.key)
            if value == slot.value:
                continue
            if slot.attr is not None:
                attr_changes.setdefault(slot.token, []).append((slot.attr, value))
            elif slot.pieces:
                first, *rest = slot.pieces
                replaced[first] = _render_piece(tokens[first], value)
                dropped.update(rest)
            else:
                inserted[slot.token] = escape(value)
        for index, changes in attr_changes.items():
            replaced[index] = _render_start_tag(tokens[index], changes)

        for index, token in enumerate(tokens):
            if index in dropped:
                continue
            output.write(inserted.get(index, ""))
            output.write(replaced.get(index, token.text))

    def generate(self, data: Mapping[str, str], output: TextIO) -> None:
        nl = self.options.newline
        indent = " " * self.options.indent
        root = self.options.xml_root
        output.write(f'<?xml version="1.0" encoding="{self.options.encoding}"?>{nl}')
        if not data:
            output.write(f"<{root} />")
            return
        output.write(f"<{root}>{nl}")
        for key, value in data.items():
            tag, *rest = split_key(key)
            if not _VALID_NAME_RX.fullmatch(tag):
                raise XmlSyntaxError(f"'{tag}' is not a valid element name")
            name = ""
            if rest:
                name = ' Name="{}"'.format(escape(KEY_DELIMITER.join(rest), {'"': "&quot;"}))
            output.write(f"{indent}<{tag}{name}>{escape(value)}</{tag}>{nl}")
        output.write(f"</{root}>")
