"""Build the worksheet -> (image, transform) mapping of a workbook package."""

# Module responsibilities:
# - Combine relationship resolution, image-path extraction and transform extraction per worksheet.
# - Keep every worksheet failure local and record it as a skip outcome with a reason.
# - Report a manifest failure as an empty mapping plus a failure message, never as an exception.

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from .errors import MalformedFragmentError, ManifestError, PackageError
from .models import (
    IDENTITY_TRANSFORM,
    ImageEntry,
    ImageReference,
    ImageTransform,
    MappingReport,
    SheetImageMapping,
    SheetResolution,
    SkipReason,
    UnitOutcome,
)
from .package import PackageReader
from .relationships import (
    drawing_relationships_path,
    extract_image_relationships,
    indexing_warnings,
    read_manifest,
    resolve_sheet,
)
from .transforms import extract_picture_transforms
from .utils.log import get_logger

logger = get_logger("image_mapping")

_WARNED_REASONS = (SkipReason.MALFORMED_RELATIONSHIPS, SkipReason.UNREADABLE_ENTRY)

PictureTransforms = Sequence[Tuple[Optional[str], ImageTransform]]


def align_transforms(
    image_rels: Sequence[Tuple[str, str]], pictures: PictureTransforms
) -> List[ImageTransform]:
    """Return one transform per image relationship, index for index.

    When every picture's ``r:embed`` id names one of ``image_rels``, pictures
    are matched to relationships by that id rather than by position, so a
    drawing whose anchors are ordered differently from its relationship file
    still gets each transform on the right image. Only when some picture lacks
    a known id are the two lists paired by position (the n-th picture with the
    n-th relationship). Relationships left without a picture get the identity
    transform.
    """

    rel_ids = {rel_id for rel_id, _ in image_rels}
    if pictures and all(embed in rel_ids for embed, _ in pictures):
        by_id: Dict[str, ImageTransform] = {}
        for embed, transform in pictures:
            by_id.setdefault(embed or "", transform)
        return [by_id.get(rel_id, IDENTITY_TRANSFORM) for rel_id, _ in image_rels]

    positional = [transform for _, transform in pictures[: len(image_rels)]]
    positional.extend([IDENTITY_TRANSFORM] * (len(image_rels) - len(positional)))
    return positional


def build_sheet_entries(
    package: PackageReader, resolution: SheetResolution, warnings: List[str]
) -> Tuple[List[ImageEntry], UnitOutcome]:
    """Resolve the ordered images of one worksheet whose drawing path is known."""

    name = resolution.sheet.name
    drawing_path = resolution.drawing_path
    if drawing_path is None:
        outcome = resolution.outcome or UnitOutcome.skip(name, SkipReason.NO_DRAWING)
        return [], outcome

    rels_path = drawing_relationships_path(drawing_path)
    if not package.has_entry(drawing_path):
        return [], UnitOutcome.skip(name, SkipReason.DRAWING_MISSING, drawing_path)
    if not package.has_entry(rels_path):
        return [], UnitOutcome.skip(name, SkipReason.DRAWING_RELATIONSHIPS_MISSING, rels_path)

    try:
        image_rels = extract_image_relationships(package.read_text(rels_path), part=rels_path)
    except (MalformedFragmentError, UnicodeDecodeError, PackageError) as exc:
        message = f"Sheet '{name}': {exc}"
        logger.warning(message)
        warnings.append(message)
        return [], UnitOutcome.skip(name, SkipReason.MALFORMED_DRAWING_RELATIONSHIPS, str(exc))

    if not image_rels:
        return [], UnitOutcome.skip(name, SkipReason.NO_IMAGES, rels_path)

    try:
        pictures = extract_picture_transforms(package.read_text(drawing_path), part=drawing_path)
    except (MalformedFragmentError, UnicodeDecodeError, PackageError) as exc:
        message = f"Sheet '{name}': transforms ignored, {exc}"
        logger.warning(message)
        warnings.append(message)
        pictures = []

    transforms = align_transforms(image_rels, pictures)
    entries = [
        (ImageReference(path), transform)
        for (_, path), transform in zip(image_rels, transforms)
    ]
    return entries, UnitOutcome.ok(name, len(entries))


def build_mapping_report(package: PackageReader) -> MappingReport:
    """Build the sheet image mapping and the per-worksheet outcomes for ``package``."""

    report = MappingReport()
    try:
        sheets = read_manifest(package)
    except (ManifestError, PackageError) as exc:
        logger.error("Image mapping aborted for %s: %s", package.source, exc)
        report.failure = str(exc)
        return report

    report.sheet_count = len(sheets)
    for warning in indexing_warnings(package, sheets):
        logger.warning(warning)
        report.warnings.append(warning)

    mapping: SheetImageMapping = {}
    for sheet in sheets:
        resolution = resolve_sheet(package, sheet)
        if resolution.outcome is not None and resolution.outcome.reason in _WARNED_REASONS:
            report.warnings.append(f"Sheet '{sheet.name}': {resolution.outcome.detail}")
        entries, outcome = build_sheet_entries(package, resolution, report.warnings)
        report.outcomes.append(outcome)
        if entries:
            mapping[sheet.name] = entries
        else:
            logger.info("No images for sheet %s (%s)", sheet.name, outcome.reason.value if outcome.reason else "")

    report.mapping = mapping
    logger.info(
        "Image mapping built",
        extra={"sheets": report.sheet_count, "with_images": len(mapping), "images": report.image_count},
    )
    return report


def build_mapping(package: PackageReader) -> SheetImageMapping:
    """Return only the mapping; failures leave it empty."""

    return build_mapping_report(package).mapping
