from __future__ import annotations

import bisect
import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import TextIO

from ..config import Options
from ..errors import Location
from ..keys import FlatMap

Resolver = Callable[[str], str]
"""Callable mapping a flattened key found in a template to its new value."""

_NEWLINE_RX = re.compile(r"\r\n|\r|\n")


class FormatCodec(ABC):
    """Grammar knowledge for one document format.

    Codecs never touch storage.  They read from and write to text streams
    handed over by :class:`~confmodel.source.ConfigurationSource`.
    """

    suffixes: tuple[str, ...] = ()

    def __init__(self, options: Options | None = None) -> None:
        self.options = options or Options()

    @abstractmethod
    def parse(self, stream: TextIO) -> FlatMap:
        """Flatten the document in *stream*."""

    @abstractmethod
    def rewrite(self, template: TextIO, output: TextIO, resolve: Resolver) -> None:
        """Copy *template* to *output*, taking every value from *resolve*.

        Only value payloads may differ between input and output.
        """

    @abstractmethod
    def generate(self, data: Mapping[str, str], output: TextIO) -> None:
        """Write a brand new minimal document holding *data*."""


class Locator:
    """Translate string offsets to 1-based line/column pairs."""

    def __init__(self, text: str) -> None:
        self._starts = [0] + [m.end() for m in _NEWLINE_RX.finditer(text)]

    def __call__(self, offset: int) -> Location:
        line = bisect.bisect_right(self._starts, offset)
        return Location(line, offset - self._starts[line - 1] + 1)
