"""CBOR transaction payloads.

A payload carries one or more raw Bitcoin transactions plus optional
metadata:

    {"data": {"rawtx": <bytes>, ...}, "meta": {...}}
    {"data": [{"rawtx": <bytes>, ...}, ...], "meta": {...}}

Keys other than ``rawtx`` inside a data entry are kept as given. ``meta``
is omitted from the encoding when empty.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional, Union

from txpost.codec import decode_map, encode_map
from txpost.errors import InvalidStructure


def _is_entry(value: Any) -> bool:
    return isinstance(value, Mapping) and isinstance(value.get("rawtx"), (bytes, bytearray))


@dataclass(frozen=True)
class Single:
    """A single transaction entry."""

    __hash__ = None

    entry: dict

    def __post_init__(self):
        if not _is_entry(self.entry):
            raise InvalidStructure("data")
        object.__setattr__(self, "entry", dict(self.entry))

    @property
    def rawtx(self) -> bytes:
        return self.entry["rawtx"]

    @property
    def entries(self) -> tuple:
        return (self.entry,)

    def to_wire(self) -> dict:
        return dict(self.entry)


@dataclass(frozen=True)
class Batch:
    """An ordered batch of transaction entries."""

    __hash__ = None

    entries: tuple

    def __post_init__(self):
        entries = self.entries
        if not isinstance(entries, (list, tuple)) or not entries:
            raise InvalidStructure("data")
        if not all(_is_entry(e) for e in entries):
            raise InvalidStructure("data")
        object.__setattr__(self, "entries", tuple(dict(e) for e in entries))

    def to_wire(self) -> list:
        return [dict(e) for e in self.entries]


DataShape = Union[Single, Batch]


def shape_data(data: Any) -> DataShape:
    """Classify raw data as a Single entry or a Batch.

    Args:
        data: A mapping with a bytes ``rawtx``, or a list of such mappings

    Returns:
        Single or Batch

    Raises:
        InvalidStructure: If data matches neither shape
    """
    if isinstance(data, (Single, Batch)):
        return data
    if isinstance(data, Mapping):
        return Single(data)
    if isinstance(data, (list, tuple)):
        return Batch(tuple(data))
    raise InvalidStructure("data")


@dataclass(frozen=True)
class Payload:
    """Transaction data plus optional metadata.

    Instances are immutable but unhashable, since entries and meta are dicts.
    """

    __hash__ = None

    data: DataShape
    meta: Optional[dict] = None

    def __post_init__(self):
        if not isinstance(self.data, (Single, Batch)):
            raise InvalidStructure("data")
        if self.meta is not None:
            if not isinstance(self.meta, Mapping):
                raise InvalidStructure("meta")
            object.__setattr__(self, "meta", dict(self.meta) or None)

    @classmethod
    def build(cls, data: Any = None, meta: Any = None) -> "Payload":
        """Build a payload from plain values.

        Args:
            data: Mapping with a bytes ``rawtx`` key, or a list of them
            meta: Optional mapping of arbitrary metadata

        Raises:
            InvalidStructure: If data or meta has the wrong shape
        """
        return cls(data=shape_data(data), meta=meta)

    @classmethod
    def decode(cls, data: bytes) -> "Payload":
        """Decode a CBOR payload.

        Raises:
            MalformedEncoding: If data is not exactly one CBOR map
            InvalidStructure: If the decoded map has the wrong shape
        """
        params = decode_map(data)
        return cls.build(data=params.get("data"), meta=params.get("meta"))

    @property
    def is_batch(self) -> bool:
        return isinstance(self.data, Batch)

    @property
    def entries(self) -> tuple:
        """All transaction entries, one for a single payload."""
        return self.data.entries

    @property
    def rawtxs(self) -> tuple:
        """Raw transaction bytes of every entry, in order."""
        return tuple(e["rawtx"] for e in self.entries)

    def to_dict(self) -> dict:
        """Canonical map form: ``data`` then ``meta``, empty meta omitted."""
        result = {"data": self.data.to_wire()}
        if self.meta:
            result["meta"] = dict(self.meta)
        return result

    def encode(self) -> bytes:
        """Encode as CBOR bytes."""
        return encode_map(self.to_dict())
