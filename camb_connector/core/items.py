"""Host item model: input items, binary payloads, and output records.

WHY: Work arrives as a batch of items. Each item carries operation
parameters (json) and optionally input media (binary). Every output record
must point back at the input item it came from, even when that item failed.

HOW: Item is the input unit. BinaryData is the opaque binary handle that
crosses the host boundary (bytes + suggested file name + MIME type).
ItemResult is one output record with its paired_item index.

RULES:
- paired_item is the zero-based index of the input item in the batch
- Error records are ItemResult(json={"error": message}) with no binary
"""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict


@dataclass
class BinaryData:
    """A binary payload with a suggested file name and MIME type."""

    data: bytes
    file_name: str
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: Path) -> BinaryData:
        """Read a local file into a BinaryData, guessing its MIME type."""
        path = Path(path)
        mime_type, _ = mimetypes.guess_type(path.name)
        return cls(
            data=path.read_bytes(),
            file_name=path.name,
            mime_type=mime_type or "application/octet-stream",
        )


@dataclass
class Item:
    """One unit of input work."""

    json: Dict[str, Any] = field(default_factory=dict)
    binary: Dict[str, BinaryData] = field(default_factory=dict)


@dataclass
class ItemResult:
    """One output record, correlated to its input item."""

    json: Dict[str, Any]
    paired_item: int
    binary: Dict[str, BinaryData] = field(default_factory=dict)

    @classmethod
    def error(cls, message: str, paired_item: int) -> ItemResult:
        return cls(json={"error": message}, paired_item=paired_item)

    @property
    def is_error(self) -> bool:
        return "error" in self.json and not self.binary
