from __future__ import annotations

import io
from collections.abc import Mapping
from typing import TextIO

from confmodel.formats import FormatCodec, IniCodec
from confmodel.keys import FlatMap
from confmodel.source import ConfigurationSource
from confmodel.streams import InMemoryStreamHandler

DOC_PATH = "settings"


def source_for(
    codec: FormatCodec, text: str | None = None, path: str = DOC_PATH
) -> tuple[ConfigurationSource, InMemoryStreamHandler]:
    """Return a source backed by an in-memory handler holding *text*.

    When *text* is ``None`` no document exists yet.
    """
    handler = InMemoryStreamHandler({path: text} if text is not None else None)
    return ConfigurationSource(path, codec, handler), handler


def loaded(codec: FormatCodec, text: str) -> tuple[ConfigurationSource, InMemoryStreamHandler]:
    source, handler = source_for(codec, text)
    source.load()
    return source, handler


def parse(codec: FormatCodec, text: str) -> FlatMap:
    return codec.parse(io.StringIO(text, newline=""))


def replace_document(handler: InMemoryStreamHandler, text: str, path: str = DOC_PATH) -> None:
    """Simulate someone editing the document between load and commit."""
    handler.write(text.encode("utf-8"), path)


class ExplodingIniCodec(IniCodec):
    """INI codec whose generation fails half way through."""

    def generate(self, data: Mapping[str, str], output: TextIO) -> None:
        output.write("partial=")
        raise RuntimeError("generation exploded")


def rewrite(codec: FormatCodec, text: str, values: Mapping[str, str]) -> str:
    """Run *codec* over template *text* resolving keys from *values*."""
    data = FlatMap(values)
    out = io.StringIO(newline="")
    codec.rewrite(io.StringIO(text, newline=""), out, data.__getitem__)
    return out.getvalue()


def generate(codec: FormatCodec, values: Mapping[str, str]) -> str:
    out = io.StringIO(newline="")
    codec.generate(FlatMap(values), out)
    return out.getvalue()
