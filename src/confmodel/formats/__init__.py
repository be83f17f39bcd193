"""Codec registry and factory."""
from __future__ import annotations

from pathlib import Path

from ..config import Options
from ..errors import ArgumentError
from .base import FormatCodec, Resolver

_REGISTRY: dict[str, type[FormatCodec]] = {}


def register_format(codec: type[FormatCodec]) -> type[FormatCodec]:
    """Register a codec class and return it for decorator use."""
    for suf in codec.suffixes:
        _REGISTRY[suf.lower()] = codec
    return codec


def codec_for_path(path: str | Path, options: Options | None = None) -> FormatCodec:
    suffix = Path(path).suffix.lower()
    codec_cls = _REGISTRY.get(suffix)
    if codec_cls is None:
        raise ArgumentError(f"No format registered for {suffix or path!r}")
    return codec_cls(options)


# register default formats
from .ini_codec import IniCodec  # noqa: E402
from .json_codec import JsonCodec  # noqa: E402
from .xml_codec import XmlCodec  # noqa: E402

__all__ = [
    "FormatCodec",
    "IniCodec",
    "JsonCodec",
    "Resolver",
    "XmlCodec",
    "codec_for_path",
    "register_format",
]
