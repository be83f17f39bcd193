"""Load and commit configuration documents through a format codec.

:class:`ConfigurationSource` owns the commit protocol for every format:

* no document yet: a new one is generated from the in-memory keys and
  deleted again if generation fails;
* existing document: it is used as a template, the new contents are staged
  in memory and only written back once the whole pass succeeded.

Both paths refuse to write when the keys in memory and the keys in the
template have drifted apart.
"""

from __future__ import annotations

import codecs
import io
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, BinaryIO

from .config import Options
from .errors import ArgumentError, DocumentEncodingError, MissingKeysError, NewKeyFoundError
from .formats import FormatCodec, codec_for_path
from .formats.base import Locator
from .keys import FlatMap
from .paths import user_config_file
from .streams import FileStreamHandler, StreamHandler

logger = logging.getLogger("confmodel")


@contextmanager
def _text_stream(raw: BinaryIO, encoding: str) -> Iterator[io.TextIOWrapper]:
    # newline="" keeps \r\n and \r exactly as they appear in the document
    stream = io.TextIOWrapper(raw, encoding=encoding, newline="")
    try:
        yield stream
    finally:
        stream.detach()


def _decode_document(raw: bytes, encoding: str) -> tuple[str, bytes]:
    """Return the text of *raw* and the UTF-8 byte-order mark it started with.

    The mark is handed back so a rewrite can put it in front of the new
    contents again.
    """
    bom = b""
    if codecs.lookup(encoding).name == "utf-8" and raw.startswith(codecs.BOM_UTF8):
        bom = codecs.BOM_UTF8
        raw = raw[len(bom):]
    try:
        return raw.decode(encoding), bom
    except UnicodeDecodeError as exc:
        good = raw[:exc.start].decode(encoding, errors="replace")
        location = Locator(good)(len(good))
        raise DocumentEncodingError(encoding, exc.reason, location) from exc


class _CommitTracker:
    """Resolve template keys against the loaded data and record them."""

    def __init__(self, data: FlatMap) -> None:
        self._data = data
        self._seen: set[str] = set()

    def __call__(self, key: str) -> str:
        try:
            value = self._data[key]
        except KeyError:
            raise NewKeyFoundError(key) from None
        self._seen.add(key.casefold())
        return value

    def verify(self) -> None:
        if len(self._seen) != len(self._data):
            missing = [k for k in self._data if k.casefold() not in self._seen]
            raise MissingKeysError(missing)


class ConfigurationSource:
    """A single configuration document and its flattened key/value data.

    Parameters
    ----------
    path:
        Document location understood by *handler*.
    codec:
        Grammar of the document.
    handler:
        Storage the document is read from and written to.

    The text encoding of the stored document is ``codec.options.encoding``.
    """

    def __init__(
        self,
        path: str | Path,
        codec: FormatCodec,
        handler: StreamHandler,
    ) -> None:
        if path is None or (isinstance(path, str) and not path.strip()):
            raise ArgumentError("path must be a non-empty string")
        if codec is None:
            raise ArgumentError("codec is required")
        if handler is None:
            raise ArgumentError("stream handler is required")
        self.path = str(path)
        self.codec = codec
        self.handler = handler
        self._data = FlatMap()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.path!r}, {type(self.codec).__name__})"

    @property
    def encoding(self) -> str:
        return self.codec.options.encoding

    # ----- data access -----

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        if not key:
            raise ArgumentError("key must be a non-empty string")
        self._data[key] = str(value)

    def keys(self) -> list[str]:
        return list(self._data)

    def items(self) -> list[tuple[str, str]]:
        return list(self._data.items())

    @property
    def data(self) -> FlatMap:
        """Return a copy of the current key/value data."""
        return self._data.copy()

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self._data)

    # ----- IO -----

    def load(self) -> None:
        """Replace the in-memory data with the parsed document.

        The previous data is kept if parsing fails.
        """
        text, _ = self._read_document()
        data = self.codec.parse(io.StringIO(text, newline=""))
        self._data = data
        logger.debug("loaded %d keys from %s", len(data), self.path)

    def commit(self) -> None:
        """Write the in-memory data back to the document."""
        if self.handler.exists(self.path):
            self._commit_with_template()
        else:
            self._commit_new()

    def _commit_new(self) -> None:
        logger.debug("generating %s with %d keys", self.path, len(self._data))
        raw = self.handler.create(self.path)
        try:
            with raw, _text_stream(raw, self.encoding) as out:
                self.codec.generate(self._data, out)
        except Exception:
            logger.warning("generation of %s failed; removing partial document", self.path)
            if self.handler.exists(self.path):
                self.handler.delete(self.path)
            raise

    def _commit_with_template(self) -> None:
        logger.debug("rewriting %s with %d keys", self.path, len(self._data))
        tracker = _CommitTracker(self._data)
        text, bom = self._read_document()
        # newline="" keeps \r\n and \r exactly as they appear in the template
        out = io.StringIO(newline="")
        self.codec.rewrite(io.StringIO(text, newline=""), out, tracker)
        tracker.verify()
        self.handler.write(bom + out.getvalue().encode(self.encoding), self.path)

    def _read_document(self) -> tuple[str, bytes]:
        with self.handler.read(self.path) as raw:
            return _decode_document(raw.read(), self.encoding)


def open_source(
    path: str | Path,
    handler: StreamHandler | None = None,
    *,
    options: Options | None = None,
    load: bool = True,
) -> ConfigurationSource:
    """Return a :class:`ConfigurationSource` for *path*.

    The codec is picked from the file suffix.  Without *handler* documents
    live on the filesystem.  Existing documents are loaded right away unless
    *load* is false.
    """
    if path is None or (isinstance(path, str) and not path.strip()):
        raise ArgumentError("path must be a non-empty string")
    options = options or Options.from_env()
    codec = codec_for_path(path, options)
    source = ConfigurationSource(
        path,
        codec,
        handler if handler is not None else FileStreamHandler(),
    )
    if load and source.handler.exists(source.path):
        source.load()
    return source


def open_user_source(
    app_name: str,
    filename: str,
    *,
    options: Options | None = None,
    load: bool = True,
) -> ConfigurationSource:
    """Return the source for *filename* in the per-user config directory of *app_name*."""
    if not app_name or not filename:
        raise ArgumentError("app_name and filename are required")
    return open_source(user_config_file(app_name, filename), options=options, load=load)
