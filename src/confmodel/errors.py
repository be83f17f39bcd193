from __future__ import annotations

from collections.abc import Iterable
from typing import NamedTuple


class Location(NamedTuple):
    """1-based position inside a document."""

    line: int
    column: int

    def __str__(self) -> str:
        return f"line {self.line}, position {self.column}"


def _at(location: Location | None) -> str:
    return f" ({location})" if location is not None else ""


class ConfigModelError(Exception):
    """Base class for confmodel errors."""


class ArgumentError(ConfigModelError, ValueError):
    """Raised for invalid construction input, before any IO happens."""


class FormatError(ConfigModelError, ValueError):
    """Raised when a document does not follow its grammar."""

    def __init__(self, message: str, location: Location | None = None) -> None:
        super().__init__(message + _at(location))
        self.location = location


class UnrecognizedLineError(FormatError):
    def __init__(self, line: str) -> None:
        super().__init__(f"Unrecognized line format: '{line}'")
        self.line = line


class DuplicateKeyError(FormatError):
    def __init__(self, key: str, location: Location | None = None) -> None:
        super().__init__(f"A duplicate key '{key}' was found", location)
        self.key = key


class RootNotObjectError(FormatError):
    def __init__(self, location: Location | None = None) -> None:
        super().__init__("Only an object can be the root", location)


class UnsupportedTokenError(FormatError):
    def __init__(self, kind: str, path: str, location: Location | None = None) -> None:
        super().__init__(f"Unsupported token '{kind}' was found at path '{path}'", location)
        self.kind = kind
        self.path = path


class UnexpectedEndError(FormatError):
    def __init__(self, path: str, location: Location | None = None) -> None:
        super().__init__(f"Unexpected end when parsing path '{path}'", location)
        self.path = path


class NamespaceNotSupportedError(FormatError):
    def __init__(self, location: Location | None = None) -> None:
        super().__init__("XML namespaces are not supported", location)


class DtdProhibitedError(FormatError):
    """DTD declarations are refused for security reasons."""

    def __init__(self, location: Location | None = None) -> None:
        super().__init__("For security reasons DTD is prohibited in this XML document", location)


class XmlSyntaxError(FormatError):
    """Raised for malformed XML markup."""


class DocumentEncodingError(FormatError):
    """Raised when the stored bytes are not valid in the configured encoding."""

    def __init__(self, encoding: str, reason: str, location: Location | None = None) -> None:
        super().__init__(f"Document is not valid {encoding}: {reason}", location)
        self.encoding = encoding


class StructuralDriftError(ConfigModelError, RuntimeError):
    """Raised when the in-memory keys and the document on disk diverge."""


class NewKeyFoundError(StructuralDriftError):
    def __init__(self, key: str) -> None:
        super().__init__(
            f"Commit failed: a new key '{key}' was found in the document since it was loaded"
        )
        self.key = key


class MissingKeysError(StructuralDriftError):
    def __init__(self, keys: Iterable[str]) -> None:
        self.keys = list(keys)
        super().__init__(
            "Commit failed: keys missing from the document: " + ", ".join(self.keys)
        )
