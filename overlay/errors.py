"""Errors raised while loading a metadata overlay."""

from __future__ import annotations

from rtmp.errors import ExporterError


class MetadataError(ExporterError):
    """The metadata file cannot be turned into a valid overlay."""


class MetadataSyntaxError(MetadataError):
    """Unreadable file, undecodable content or wrong document shape."""


class UnknownField(MetadataError):
    """A stream record uses a field missing from the declared ``fields`` list."""

    def __init__(self, stream: str, field: str) -> None:
        super().__init__(f"unknown metadata field {field!r} for stream {stream!r}")
        self.stream = stream
        self.field = field
