"""`recipeflow_io` top-level package exports the workbook package readers."""

# Module responsibilities:
# - Re-export the package reader, sheet image mapping builder and grid reader as a stable API surface.
# - Provide package version placeholder for future packaging.

from __future__ import annotations

from .errors import (
    EntryNotFoundError,
    MalformedFragmentError,
    ManifestError,
    PackageError,
    WorkbookReadError,
)
from .grid import Grid, read_grids
from .image_mapping import build_mapping, build_mapping_report
from .media import ImagePayload, file_extension, load_payloads, mime_type
from .models import (
    IDENTITY_TRANSFORM,
    CropRect,
    ImageReference,
    ImageTransform,
    MappingReport,
    SheetImageMapping,
    SkipReason,
    UnitOutcome,
    WorksheetDescriptor,
)
from .package import PackageReader
from .relationships import extract_drawing_path, extract_image_paths, extract_sheet_info, resolve
from .transforms import extract_transforms

__all__ = [
    "PackageReader",
    "PackageError",
    "ManifestError",
    "EntryNotFoundError",
    "MalformedFragmentError",
    "WorkbookReadError",
    "WorksheetDescriptor",
    "ImageReference",
    "CropRect",
    "ImageTransform",
    "IDENTITY_TRANSFORM",
    "SheetImageMapping",
    "MappingReport",
    "SkipReason",
    "UnitOutcome",
    "resolve",
    "extract_sheet_info",
    "extract_drawing_path",
    "extract_image_paths",
    "extract_transforms",
    "build_mapping",
    "build_mapping_report",
    "ImagePayload",
    "file_extension",
    "mime_type",
    "load_payloads",
    "Grid",
    "read_grids",
]

__version__ = "0.1.0"
