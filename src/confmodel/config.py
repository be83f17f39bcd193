from __future__ import annotations

import codecs
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from .errors import ArgumentError

logger = logging.getLogger(__name__)

_NEWLINES = {"lf": "\n", "crlf": "\r\n", "cr": "\r"}


@dataclass(frozen=True)
class Options:
    """Engine settings shared by the codecs and the commit orchestrator.

    ``newline``, ``indent`` and ``xml_root`` only shape freshly generated
    documents; rewriting an existing document always keeps its own layout.
    """

    encoding: str = "utf-8"
    newline: str = "\n"
    indent: int = 2
    xml_root: str = "settings"

    def __post_init__(self) -> None:
        try:
            codecs.lookup(self.encoding)
        except LookupError as exc:
            raise ArgumentError(f"unknown encoding: {self.encoding!r}") from exc
        if self.newline not in _NEWLINES.values():
            raise ArgumentError(f"unsupported newline: {self.newline!r}")
        if self.indent < 0:
            raise ArgumentError("indent must not be negative")
        if not self.xml_root:
            raise ArgumentError("xml_root must not be empty")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Options:
        """Build options from ``CONFMODEL_*`` environment variables."""
        env = os.environ if environ is None else environ
        kwargs: dict[str, object] = {}
        enc = env.get("CONFMODEL_ENCODING")
        if enc:
            kwargs["encoding"] = enc
        nl = env.get("CONFMODEL_NEWLINE")
        if nl:
            try:
                kwargs["newline"] = _NEWLINES[nl.lower()]
            except KeyError as exc:
                raise ArgumentError(f"CONFMODEL_NEWLINE must be one of {sorted(_NEWLINES)}") from exc
        indent = env.get("CONFMODEL_INDENT")
        if indent:
            try:
                kwargs["indent"] = int(indent)
            except ValueError as exc:
                raise ArgumentError(f"CONFMODEL_INDENT must be an integer, got {indent!r}") from exc
        root = env.get("CONFMODEL_XML_ROOT")
        if root:
            kwargs["xml_root"] = root
        if kwargs:
            logger.debug("options from environment: %s", kwargs)
        return cls(**kwargs)
