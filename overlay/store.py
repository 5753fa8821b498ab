"""Loading metadata files and holding the process-wide overlay snapshot."""

from __future__ import annotations

import logging
from pathlib import Path

from .base import EMPTY_OVERLAY, BaseDecoder, MetadataOverlay
from .errors import MetadataSyntaxError
from .json_decoder import JsonDecoder
from .toml_decoder import TomlDecoder

logger = logging.getLogger(__name__)

DECODERS: dict[str, BaseDecoder] = {
    d.format_name: d for d in (JsonDecoder(), TomlDecoder())
}

FORMATS = tuple(DECODERS)


def get_decoder(fmt: str) -> BaseDecoder:
    try:
        return DECODERS[fmt.lower()]
    except KeyError:
        raise MetadataSyntaxError(
            f"unknown metadata format {fmt!r} (expected one of: {', '.join(FORMATS)})"
        ) from None


def load(path: str | Path | None, fmt: str = "json") -> MetadataOverlay:
    """Load and validate a metadata file.

    ``path=None`` means no metadata was configured and yields the empty
    overlay. Raises :class:`MetadataError` subclasses on any problem.
    """
    if path is None:
        return EMPTY_OVERLAY
    decoder = get_decoder(fmt)
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise MetadataSyntaxError(f"cannot read metadata file {path}: {e}") from e
    overlay = decoder.load_bytes(data)
    logger.info(
        "loaded %s metadata from %s: %d fields, %d streams",
        decoder.format_name, path, len(overlay.fields), len(overlay.metadata),
    )
    return overlay


class OverlayStore:
    """Single reference to the current overlay, swapped whole on reload.

    Readers take ``store.current`` once per scrape and keep using that
    snapshot, so they never see a half-applied reload.
    """

    def __init__(self, path: str | Path | None = None, fmt: str = "json") -> None:
        self.path = path
        self.fmt = fmt
        self._current: MetadataOverlay = EMPTY_OVERLAY

    @property
    def current(self) -> MetadataOverlay:
        return self._current

    def reload(self) -> MetadataOverlay:
        """Load the configured file and swap it in.

        On failure the previous snapshot stays active and the error propagates.
        """
        overlay = load(self.path, self.fmt)
        self._current = overlay
        return overlay
