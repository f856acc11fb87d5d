"""
RESPONSIBILITIES
- Define the index record written per recipe by the image store.
- Define the blob value returned when images are read back.
PROCESS OVERVIEW
1. The image store builds an ImageIndexRecord after the blobs are on disk.
2. to_dict() serializes list-valued fields as JSON text for the XLSX index.
3. from_row() parses an index row back into typed fields.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Mapping, MutableMapping, Protocol, Sequence


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def _json_list(value: object) -> list:
    text = str(value or "").strip()
    if not text:
        return []
    parsed = json.loads(text)
    return parsed if isinstance(parsed, list) else []


class SupportsImageData(Protocol):
    """Anything carrying image bytes and their MIME type."""

    data: bytes
    mime_type: str


@dataclass(frozen=True, slots=True)
class ImageBlob:
    data: bytes
    mime_type: str
    file_name: str = ""


@dataclass(slots=True)
class ImageIndexRecord:
    recipe_name: str
    image_dir: str
    image_files: Sequence[str]
    mime_types: Sequence[str]
    transforms: Sequence[Mapping[str, object]]
    created_at: str = field(default_factory=utcnow_iso)
    updated_at: str = field(default_factory=utcnow_iso)

    @property
    def image_count(self) -> int:
        return len(self.image_files)

    def to_dict(self) -> MutableMapping[str, object]:
        return {
            "recipe_name": self.recipe_name,
            "image_dir": self.image_dir,
            "image_files": json.dumps(list(self.image_files)),
            "mime_types": json.dumps(list(self.mime_types)),
            "transforms": json.dumps([dict(item) for item in self.transforms], sort_keys=True),
            "image_count": self.image_count,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_row(cls, row: Mapping[str, object]) -> "ImageIndexRecord":
        return cls(
            recipe_name=str(row.get("recipe_name", "")),
            image_dir=str(row.get("image_dir", "")),
            image_files=[str(item) for item in _json_list(row.get("image_files"))],
            mime_types=[str(item) for item in _json_list(row.get("mime_types"))],
            transforms=[item for item in _json_list(row.get("transforms")) if isinstance(item, dict)],
            created_at=str(row.get("created_at", "")),
            updated_at=str(row.get("updated_at", "")),
        )
