"""TOML encoding of the metadata file."""

from __future__ import annotations

import sys
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from .base import BaseDecoder
from .errors import MetadataSyntaxError


class TomlDecoder(BaseDecoder):
    format_name = "toml"

    def decode(self, data: bytes) -> Any:
        try:
            return tomllib.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
            raise MetadataSyntaxError(f"invalid TOML metadata: {e}") from e
