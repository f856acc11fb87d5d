"""Media payload helpers: extension, MIME type and bytes for image references."""

# Module responsibilities:
# - Derive MIME types from media file extensions with a fixed table.
# - Load image bytes for mapped references, dropping entries whose media part is absent or corrupt.

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .errors import EntryNotFoundError, PackageError
from .models import ImageEntry, ImageTransform
from .package import PackageReader
from .utils.log import get_logger

logger = get_logger("media")

DEFAULT_MIME_TYPE = "image/png"
MIME_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "webp": "image/webp",
}


def file_extension(path: str) -> str:
    """Return the lower-case extension of ``path`` without the dot ('' when none)."""

    filename = posixpath.basename(path)
    if "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].lower()


def mime_type(extension: str) -> str:
    return MIME_TYPES.get(extension.lower().lstrip("."), DEFAULT_MIME_TYPE)


@dataclass(frozen=True, slots=True)
class ImagePayload:
    path: str
    data: bytes
    mime_type: str

    @property
    def extension(self) -> str:
        return file_extension(self.path) or "png"


def load_payloads(
    package: PackageReader, entries: Sequence[ImageEntry]
) -> Tuple[List[ImagePayload], List[ImageTransform], List[str]]:
    """Read image bytes for ``entries``.

    Returns:
        ``(payloads, transforms, missing_paths)``. Payloads and transforms stay
        index-aligned; references whose media entry is absent or unreadable are
        dropped from both and listed in ``missing_paths``.
    """

    payloads: List[ImagePayload] = []
    transforms: List[ImageTransform] = []
    missing: List[str] = []
    for reference, transform in entries:
        try:
            data = package.read_binary(reference.path)
        except EntryNotFoundError:
            logger.warning("Image not found in package: %s", reference.path)
            missing.append(reference.path)
            continue
        except PackageError as exc:
            logger.warning("Image unreadable in package: %s (%s)", reference.path, exc)
            missing.append(reference.path)
            continue
        payloads.append(
            ImagePayload(
                path=reference.path,
                data=data,
                mime_type=mime_type(file_extension(reference.path)),
            )
        )
        transforms.append(transform)
    return payloads, transforms, missing
