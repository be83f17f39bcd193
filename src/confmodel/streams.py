"""Stream handlers used by :class:`~confmodel.source.ConfigurationSource`.

A handler owns every byte that reaches storage.  The orchestrator only
ever calls the five operations of :class:`StreamHandler`, which keeps the
commit protocol independent of where documents actually live.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import BinaryIO, Protocol

from .paths import resolve_path

logger = logging.getLogger(__name__)


class StreamHandler(Protocol):
    """Protocol for document storage."""

    def create(self, path: str) -> BinaryIO:
        """Return a writable stream for a new document.

        Raises :class:`FileExistsError` when a document already exists.
        Closing the stream finalises the document.
        """

    def read(self, path: str) -> BinaryIO:
        """Return a readable stream or raise :class:`FileNotFoundError`."""

    def write(self, data: bytes, path: str) -> None:
        """Replace the document at *path* with *data*."""

    def delete(self, path: str) -> None:
        ...

    def exists(self, path: str) -> bool:
        ...


class FileStreamHandler:
    """Store documents on the filesystem.

    Relative paths are anchored at *base_dir* (or :func:`confmodel.paths.base_dir`
    when omitted).  Replacing a document goes through a temporary sibling
    file so readers never observe a truncated file.
    """

    def __init__(self, base_dir: str | Path | None = None) -> None:
        self.base_dir = Path(base_dir) if base_dir is not None else None

    def _resolve(self, path: str) -> Path:
        return resolve_path(path, self.base_dir)

    def create(self, path: str) -> BinaryIO:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        return target.open("xb")

    def read(self, path: str) -> BinaryIO:
        return self._resolve(path).open("rb")

    def write(self, data: bytes, path: str) -> None:
        target = self._resolve(path)
        tmp = target.with_suffix(target.suffix + ".tmp")
        with tmp.open("wb") as fh:
            fh.write(data)
        tmp.replace(target)

    def delete(self, path: str) -> None:
        target = self._resolve(path)
        logger.debug("deleting %s", target)
        target.unlink(missing_ok=True)

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()


class _PendingDocument(io.BytesIO):
    """Buffer that hands its contents to *publish* once closed."""

    def __init__(self, publish: Callable[[bytes], None]) -> None:
        super().__init__()
        self._publish = publish

    def close(self) -> None:
        if not self.closed:
            self._publish(self.getvalue())
        super().close()


class InMemoryStreamHandler:
    """Simple :class:`StreamHandler` keeping documents in a dict.

    Useful for tests and for callers that source configuration text from
    somewhere other than files.
    """

    def __init__(self, documents: Mapping[str, bytes | str] | None = None) -> None:
        self._docs: dict[str, bytes] = {}
        for path, data in (documents or {}).items():
            self._docs[path] = data.encode("utf-8") if isinstance(data, str) else bytes(data)

    def create(self, path: str) -> BinaryIO:
        if path in self._docs:
            raise FileExistsError(path)

        def publish(data: bytes) -> None:
            self._docs[path] = data

        # Reserve the path so a failed generation can still be rolled back.
        self._docs[path] = b""
        return _PendingDocument(publish)

    def read(self, path: str) -> BinaryIO:
        try:
            return io.BytesIO(self._docs[path])
        except KeyError as exc:
            raise FileNotFoundError(path) from exc

    def write(self, data: bytes, path: str) -> None:
        self._docs[path] = bytes(data)

    def delete(self, path: str) -> None:
        self._docs.pop(path, None)

    def exists(self, path: str) -> bool:
        return path in self._docs

    # ----- helpers -----

    def contents(self, path: str) -> bytes:
        return self._docs[path]

    def text(self, path: str, encoding: str = "utf-8") -> str:
        return self._docs[path].decode(encoding)
