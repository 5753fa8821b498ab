"""JSON encoding of the metadata file."""

from __future__ import annotations

import json
from typing import Any

from .base import BaseDecoder
from .errors import MetadataSyntaxError


class JsonDecoder(BaseDecoder):
    format_name = "json"

    def decode(self, data: bytes) -> Any:
        try:
            return json.loads(data)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise MetadataSyntaxError(f"invalid JSON metadata: {e}") from e
