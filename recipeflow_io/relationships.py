"""Walk workbook -> worksheet -> drawing -> media relationship parts."""

# Module responsibilities:
# - Read the workbook manifest into ordered worksheet descriptors.
# - Locate each worksheet's drawing part via its relationship file.
# - List the image relationships of a drawing in document order.
# - Warn when manifest position and sheet identifiers disagree; position stays the key.

from __future__ import annotations

import posixpath
import re
from typing import Dict, List, Optional, Tuple

from .errors import EntryNotFoundError, MalformedFragmentError, ManifestError, PackageError
from .models import SheetResolution, SkipReason, UnitOutcome, WorksheetDescriptor
from .package import PACKAGE_ROOT, PackageReader
from .utils.log import get_logger
from .xml_access import NS_REL, attr, iter_local, parse_fragment

logger = get_logger("relationships")

MANIFEST_PATH = "xl/workbook.xml"
MANIFEST_RELS_PATH = "xl/_rels/workbook.xml.rels"
SHEET_RELS_TEMPLATE = "xl/worksheets/_rels/sheet{index}.xml.rels"

_SHEET_TARGET_RE = re.compile(r"worksheets/sheet(\d+)\.xml$")


def resolve_target(target: str) -> str:
    """Turn a relationship ``Target`` into an absolute package path.

    Targets are taken relative to the fixed ``xl/`` root: the first ``../``
    is dropped and ``xl/`` is prefixed. A leading ``/`` marks a target that
    is already package-absolute.
    """

    if target.startswith("/"):
        return target.lstrip("/")
    return PACKAGE_ROOT + target.replace("../", "", 1)


def sheet_relationships_path(package_index: int) -> str:
    return SHEET_RELS_TEMPLATE.format(index=package_index)


def drawing_relationships_path(drawing_path: str) -> str:
    """Return ``<drawingDir>/_rels/<drawingFile>.rels`` for a drawing part."""

    directory, filename = posixpath.split(drawing_path)
    return posixpath.join(directory, "_rels", f"{filename}.rels")


def _relationships(xml_text: str, *, part: str) -> List[Tuple[str, str, str]]:
    """Return ``(Id, Type, Target)`` for every Relationship in document order."""

    root = parse_fragment(xml_text, part=part)
    return [
        (rel.get("Id", ""), rel.get("Type", ""), rel.get("Target", ""))
        for rel in iter_local(root, "Relationship")
    ]


def extract_sheet_info(manifest_xml: str) -> List[WorksheetDescriptor]:
    """Return worksheet descriptors in manifest order.

    Raises:
        ManifestError: When the manifest does not parse.
    """

    try:
        root = parse_fragment(manifest_xml, part=MANIFEST_PATH)
    except MalformedFragmentError as exc:
        raise ManifestError(str(exc)) from exc

    sheets: List[WorksheetDescriptor] = []
    # the index counts every <sheet> so later sheets keep their sheet<N> rels path
    for index, element in enumerate(iter_local(root, "sheet"), start=1):
        name = element.get("name") or ""
        if not name:
            logger.warning("Skipping unnamed sheet at position %d", index)
            continue
        sheets.append(
            WorksheetDescriptor(
                name=name,
                package_index=index,
                sheet_id=element.get("sheetId"),
                rel_id=attr(element, "id", NS_REL),
            )
        )
    return sheets


def extract_drawing_path(sheet_rels_xml: str, *, part: str = "<sheet rels>") -> Optional[str]:
    """Return the first drawing target of a worksheet relationship file, or None."""

    for _, _, target in _relationships(sheet_rels_xml, part=part):
        if target and "drawing" in target:
            return resolve_target(target)
    return None


def extract_image_relationships(
    drawing_rels_xml: str, *, part: str = "<drawing rels>"
) -> List[Tuple[str, str]]:
    """Return ``(relationship id, media path)`` for image relationships in document order."""

    images: List[Tuple[str, str]] = []
    for rel_id, rel_type, target in _relationships(drawing_rels_xml, part=part):
        if target and ("image" in target or "image" in rel_type):
            images.append((rel_id, resolve_target(target)))
    return images


def extract_image_paths(drawing_rels_xml: str, *, part: str = "<drawing rels>") -> List[str]:
    """Return the media paths referenced by a drawing, in relationship order."""

    return [path for _, path in extract_image_relationships(drawing_rels_xml, part=part)]


def read_manifest(package: PackageReader) -> List[WorksheetDescriptor]:
    """Read and parse the manifest of ``package``.

    Raises:
        ManifestError: When the manifest is absent or unparseable.
    """

    try:
        manifest_xml = package.read_text(MANIFEST_PATH)
    except EntryNotFoundError as exc:
        raise ManifestError(f"Workbook manifest missing: {MANIFEST_PATH}") from exc
    except UnicodeDecodeError as exc:
        raise ManifestError(f"Workbook manifest is not UTF-8 text: {exc}") from exc
    return extract_sheet_info(manifest_xml)


def _manifest_targets(package: PackageReader) -> Dict[str, int]:
    """Map manifest relationship ids to the sheet number in their target file name."""

    if not package.has_entry(MANIFEST_RELS_PATH):
        return {}
    try:
        rels = _relationships(package.read_text(MANIFEST_RELS_PATH), part=MANIFEST_RELS_PATH)
    except (MalformedFragmentError, UnicodeDecodeError, PackageError):
        return {}
    targets: Dict[str, int] = {}
    for rel_id, _, target in rels:
        match = _SHEET_TARGET_RE.search(target)
        if rel_id and match:
            targets[rel_id] = int(match.group(1))
    return targets


def indexing_warnings(
    package: PackageReader, sheets: List[WorksheetDescriptor]
) -> List[str]:
    """Describe worksheets whose identifier-based index differs from their position."""

    warnings: List[str] = []
    targets = _manifest_targets(package)
    for sheet in sheets:
        numbered = targets.get(sheet.rel_id or "")
        if numbered is not None and numbered != sheet.package_index:
            warnings.append(
                f"Sheet '{sheet.name}' is stored as sheet{numbered}.xml but resolved by "
                f"position {sheet.package_index}"
            )
            continue
        if sheet.sheet_id and sheet.sheet_id.isdigit() and int(sheet.sheet_id) != sheet.package_index:
            warnings.append(
                f"Sheet '{sheet.name}' has sheetId {sheet.sheet_id} but resolved by "
                f"position {sheet.package_index}"
            )
    return warnings


def resolve_sheet(package: PackageReader, sheet: WorksheetDescriptor) -> SheetResolution:
    """Resolve the drawing part of one worksheet; failures stay local to it."""

    rels_path = sheet_relationships_path(sheet.package_index)
    if not package.has_entry(rels_path):
        return SheetResolution(
            sheet, None, UnitOutcome.skip(sheet.name, SkipReason.NO_RELATIONSHIPS, rels_path)
        )
    try:
        drawing_path = extract_drawing_path(package.read_text(rels_path), part=rels_path)
    except (MalformedFragmentError, UnicodeDecodeError) as exc:
        logger.warning("Skipping sheet %s: %s", sheet.name, exc)
        return SheetResolution(
            sheet,
            None,
            UnitOutcome.skip(sheet.name, SkipReason.MALFORMED_RELATIONSHIPS, str(exc)),
        )
    except PackageError as exc:
        logger.warning("Skipping sheet %s: %s", sheet.name, exc)
        return SheetResolution(
            sheet,
            None,
            UnitOutcome.skip(sheet.name, SkipReason.UNREADABLE_ENTRY, str(exc)),
        )
    if drawing_path is None:
        return SheetResolution(
            sheet, None, UnitOutcome.skip(sheet.name, SkipReason.NO_DRAWING, rels_path)
        )
    return SheetResolution(sheet, drawing_path)


def resolve(package: PackageReader) -> List[SheetResolution]:
    """Return every worksheet with its drawing path (None when absent), in manifest order.

    Raises:
        ManifestError: When the set of worksheets cannot be identified.
    """

    sheets = read_manifest(package)
    for warning in indexing_warnings(package, sheets):
        logger.warning(warning)
    return [resolve_sheet(package, sheet) for sheet in sheets]
