"""Metadata overlay snapshot and the decoder interface behind the loader."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from .errors import MetadataSyntaxError, UnknownField

LABEL_NAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

# Labels the per-stream families already carry.
RESERVED_LABELS = frozenset({"application", "stream"})

# Global fields are appended to every family, so they must not collide with
# any label the exporter emits itself.
EMITTED_LABELS = RESERVED_LABELS | {
    "field", "value", "version", "python_version", "compiler", "rtmp_version",
}


def _check_label_name(name: Any, what: str) -> str:
    if not isinstance(name, str) or not LABEL_NAME_RE.match(name) or name.startswith("__"):
        raise MetadataSyntaxError(f"{what} {name!r} is not a valid label name")
    if name in RESERVED_LABELS:
        raise MetadataSyntaxError(f"{what} {name!r} shadows a built-in label")
    return name


def _check_value(value: Any, where: str) -> str:
    if not isinstance(value, str):
        raise MetadataSyntaxError(f"{where} must be a string, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class MetadataOverlay:
    """Immutable set of extra labels keyed by stream name.

    Never mutated after construction; reloads build a new instance.
    """

    fields: tuple[str, ...] = ()
    metadata: Mapping[str, Mapping[str, str]] = field(default_factory=lambda: MappingProxyType({}))
    global_fields: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def build(
        cls,
        fields: Any,
        metadata: Any = None,
        global_fields: Any = None,
    ) -> MetadataOverlay:
        """Validate decoded content and freeze it into an overlay."""
        if not isinstance(fields, list):
            raise MetadataSyntaxError("'fields' must be a list of field names")
        declared = tuple(_check_label_name(f, "field") for f in fields)
        if len(set(declared)) != len(declared):
            raise MetadataSyntaxError("'fields' contains duplicates")

        metadata = {} if metadata is None else metadata
        if not isinstance(metadata, dict):
            raise MetadataSyntaxError("'metadata' must be a table of stream records")
        records: dict[str, Mapping[str, str]] = {}
        for stream, record in metadata.items():
            if not isinstance(record, dict):
                raise MetadataSyntaxError(f"metadata for stream {stream!r} must be a table")
            checked: dict[str, str] = {}
            for name, value in record.items():
                if name not in declared:
                    raise UnknownField(stream, name)
                checked[name] = _check_value(value, f"metadata.{stream}.{name}")
            records[str(stream)] = MappingProxyType(checked)

        global_fields = {} if global_fields is None else global_fields
        if not isinstance(global_fields, dict):
            raise MetadataSyntaxError("'global_fields' must be a table")
        constants: dict[str, str] = {}
        for name, value in sorted(global_fields.items()):
            _check_label_name(name, "global field")
            if name in EMITTED_LABELS:
                raise MetadataSyntaxError(f"global field {name!r} shadows a built-in label")
            if name in declared:
                raise MetadataSyntaxError(f"global field {name!r} is also a stream field")
            constants[name] = _check_value(value, f"global_fields.{name}")

        return cls(
            fields=declared,
            metadata=MappingProxyType(records),
            global_fields=MappingProxyType(constants),
        )

    @property
    def is_empty(self) -> bool:
        return not self.fields and not self.global_fields

    def values_for(self, stream: str) -> list[str]:
        """Field values of ``stream`` in declaration order, ``""`` where unset."""
        record = self.metadata.get(stream, {})
        return [record.get(f, "") for f in self.fields]

    def entries(self, streams: Any = None) -> list[tuple[str, str, str]]:
        """``(stream, field, value)`` triples sorted by stream then field order.

        When ``streams`` is given only those stream names are included.
        """
        names = sorted(self.metadata if streams is None else set(streams) & self.metadata.keys())
        out: list[tuple[str, str, str]] = []
        for name in names:
            record = self.metadata[name]
            out.extend((name, f, record[f]) for f in self.fields if f in record)
        return out


EMPTY_OVERLAY = MetadataOverlay()


class BaseDecoder(ABC):
    """Turns the bytes of one metadata encoding into a plain document."""

    format_name: str = ""

    @abstractmethod
    def decode(self, data: bytes) -> Any:
        """Return the decoded top-level document. Raise MetadataSyntaxError on bad input."""
        ...

    def load_bytes(self, data: bytes) -> MetadataOverlay:
        doc = self.decode(data)
        if not isinstance(doc, dict):
            raise MetadataSyntaxError(f"{self.format_name} metadata must be a table at top level")
        if "fields" not in doc:
            raise MetadataSyntaxError("missing 'fields'")
        return MetadataOverlay.build(
            doc["fields"],
            doc.get("metadata"),
            doc.get("global_fields"),
        )
