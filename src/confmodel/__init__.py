from .config import Options
from .errors import (
    ArgumentError,
    ConfigModelError,
    DocumentEncodingError,
    DuplicateKeyError,
    FormatError,
    MissingKeysError,
    NewKeyFoundError,
    StructuralDriftError,
)
from .formats import IniCodec, JsonCodec, XmlCodec, codec_for_path, register_format
from .keys import KEY_DELIMITER, FlatMap, combine_key, split_key
from .source import ConfigurationSource, open_source, open_user_source
from .streams import FileStreamHandler, InMemoryStreamHandler, StreamHandler


__all__ = [
    "ArgumentError",
    "ConfigModelError",
    "ConfigurationSource",
    "DocumentEncodingError",
    "DuplicateKeyError",
    "FileStreamHandler",
    "FlatMap",
    "FormatError",
    "InMemoryStreamHandler",
    "IniCodec",
    "JsonCodec",
    "KEY_DELIMITER",
    "MissingKeysError",
    "NewKeyFoundError",
    "Options",
    "StreamHandler",
    "StructuralDriftError",
    "XmlCodec",
    "codec_for_path",
    "combine_key",
    "open_source",
    "open_user_source",
    "register_format",
    "split_key",
]
