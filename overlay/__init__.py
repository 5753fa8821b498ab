from .base import EMPTY_OVERLAY, BaseDecoder, MetadataOverlay
from .errors import MetadataError, MetadataSyntaxError, UnknownField
from .json_decoder import JsonDecoder
from .store import DECODERS, FORMATS, OverlayStore, get_decoder, load
from .toml_decoder import TomlDecoder

__all__ = [
    "MetadataOverlay",
    "EMPTY_OVERLAY",
    "BaseDecoder",
    "JsonDecoder",
    "TomlDecoder",
    "MetadataError",
    "MetadataSyntaxError",
    "UnknownField",
    "DECODERS",
    "FORMATS",
    "get_decoder",
    "load",
    "OverlayStore",
]
