"""Recover per-picture rotation, flip and crop from a drawing part."""

# Module responsibilities:
# - Scan picture elements of a drawing in document order.
# - Convert fixed-point angle and percentage units to degrees and percent.
# - Fall back to the identity transform for any picture that cannot be read.

from __future__ import annotations

import math
from typing import List, Optional, Tuple
from xml.etree import ElementTree as ET

from .errors import MalformedFragmentError
from .models import IDENTITY_TRANSFORM, CropRect, ImageTransform
from .utils.log import get_logger
from .xml_access import NS_REL, attr, find_local, iter_local, parse_fragment

logger = get_logger("transforms")

ANGLE_UNITS_PER_DEGREE = 60_000
PERCENT_UNITS = 1_000

_TRUE_FLAGS = {"1", "true"}


def _finite(raw: str) -> float:
    value = float(raw)
    if not math.isfinite(value):
        raise ValueError(f"non-finite value: {raw}")
    return value


def _degrees(raw: Optional[str]) -> float:
    if raw is None or not raw.strip():
        return 0.0
    value = _finite(raw)
    degrees = (value / ANGLE_UNITS_PER_DEGREE) % 360.0
    # float modulo of tiny negatives can land exactly on 360.0
    return 0.0 if degrees >= 360.0 else degrees


def _percent(raw: Optional[str]) -> float:
    if raw is None or not raw.strip():
        return 0.0
    value = _finite(raw) / PERCENT_UNITS
    return min(max(value, 0.0), 100.0)


def _flag(raw: Optional[str]) -> bool:
    return raw is not None and raw.strip().lower() in _TRUE_FLAGS


def picture_transform(picture: ET.Element) -> ImageTransform:
    """Read the transform of a single ``pic`` element.

    Raises:
        ValueError: When a numeric attribute cannot be converted.
    """

    rotation = 0.0
    flip_h = False
    flip_v = False
    shape_props = find_local(picture, "spPr")
    xfrm = find_local(shape_props, "xfrm") if shape_props is not None else None
    if xfrm is not None:
        rotation = _degrees(xfrm.get("rot"))
        flip_h = _flag(xfrm.get("flipH"))
        flip_v = _flag(xfrm.get("flipV"))

    crop = CropRect()
    blip_fill = find_local(picture, "blipFill")
    src_rect = find_local(blip_fill, "srcRect") if blip_fill is not None else None
    if src_rect is not None:
        crop = CropRect(
            left=_percent(src_rect.get("l")),
            top=_percent(src_rect.get("t")),
            right=_percent(src_rect.get("r")),
            bottom=_percent(src_rect.get("b")),
        )

    return ImageTransform(
        rotation_degrees=rotation,
        flip_horizontal=flip_h,
        flip_vertical=flip_v,
        crop=crop,
    )


def _embed_id(picture: ET.Element) -> Optional[str]:
    blip = find_local(picture, "blip")
    if blip is None:
        return None
    return attr(blip, "embed", NS_REL)


def extract_picture_transforms(
    drawing_xml: str, *, part: str = "<drawing>"
) -> List[Tuple[Optional[str], ImageTransform]]:
    """Return ``(embedded relationship id, transform)`` per picture in document order.

    Raises:
        MalformedFragmentError: When the drawing itself does not parse.
    """

    root = parse_fragment(drawing_xml, part=part)
    results: List[Tuple[Optional[str], ImageTransform]] = []
    for index, picture in enumerate(iter_local(root, "pic")):
        try:
            transform = picture_transform(picture)
        except (ValueError, TypeError, OverflowError) as exc:
            logger.warning("Picture %d in %s has an unreadable transform: %s", index, part, exc)
            transform = IDENTITY_TRANSFORM
        results.append((_embed_id(picture), transform))
    return results


def extract_transforms(
    drawing_xml: str, expected_count: int, *, part: str = "<drawing>"
) -> List[ImageTransform]:
    """Return at most ``expected_count`` transforms in picture document order.

    A drawing that does not parse yields an empty list; the caller backfills
    identities so the images themselves still come through.
    """

    if expected_count <= 0:
        return []
    try:
        pictures = extract_picture_transforms(drawing_xml, part=part)
    except MalformedFragmentError as exc:
        logger.warning("Ignoring transforms of %s: %s", part, exc)
        return []
    return [transform for _, transform in pictures[:expected_count]]
