"""INI documents.

Files are simple line structures::

    [Section:Header]
    key1=value1
    key2 = " value2 "
    ; comment
    # comment
    / comment

Every key below a ``[Header]`` line is prefixed with ``Header:``.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import NamedTuple, TextIO

from ..errors import DuplicateKeyError, UnrecognizedLineError
from ..keys import KEY_DELIMITER, FlatMap
from . import register_format
from .base import FormatCodec, Resolver

_COMMENT_CHARS = (";", "#", "/")


class _Line(NamedTuple):
    raw: str
    ending: str
    key: str | None
    value: str | None


def _unquote(value: str) -> str:
    if len(value) > 1 and value[0] == '"' and value[-1] == '"':
        return value[1:-1]
    return value


def _scan(stream: TextIO) -> Iterator[_Line]:
    """Yield every line of *stream*, annotated with its key and value.

    ``key`` and ``value`` are ``None`` for blank lines, comments and
    section headers.
    """
    prefix = ""
    for chunk in stream:
        raw = chunk.rstrip("\r\n")
        ending = chunk[len(raw):]
        line = raw.strip()
        if not line or line[0] in _COMMENT_CHARS:
            yield _Line(raw, ending, None, None)
            continue
        if line[0] == "[" and line[-1] == "]":
            prefix = line[1:-1] + KEY_DELIMITER
            yield _Line(raw, ending, None, None)
            continue
        sep = line.find("=")
        if sep < 0:
            raise UnrecognizedLineError(raw)
        key = prefix + line[:sep].strip()
        value = _unquote(line[sep + 1:].strip())
        yield _Line(raw, ending, key, value)


@register_format
class IniCodec(FormatCodec):
    suffixes = (".ini",)

    def parse(self, stream: TextIO) -> FlatMap:
        data = FlatMap()
        for line in _scan(stream):
            if line.key is None:
                continue
            if line.key in data:
                raise DuplicateKeyError(line.key)
            data[line.key] = line.value
        return data

    def rewrite(self, template: TextIO, output: TextIO, resolve: Resolver) -> None:
        for line in _scan(template):
            if line.key is None:
                output.write(line.raw + line.ending)
                continue
            new_value = resolve(line.key)
            sep = line.raw.index("=")
            key_part = line.raw[:sep]
            value_part = line.raw[sep + 1:]
            if line.value:
                # literal replacement keeps quotes and padding around the value
                value_part = value_part.replace(line.value, new_value)
            elif value_part.strip() == '""':
                quote = value_part.index('"')
                value_part = value_part[:quote + 1] + new_value + value_part[quote + 1:]
            else:
                value_part = new_value + value_part
            output.write(f"{key_part}={value_part}{line.ending}")

    def generate(self, data: Mapping[str, str], output: TextIO) -> None:
        newline = self.options.newline
        for key, value in data.items():
            output.write(f"{key}={value}{newline}")
