"""Typed containers for the sheet -> image mapping of a workbook package."""

# Module responsibilities:
# - Describe worksheets, image references and per-picture transforms as immutable values.
# - Record per-worksheet outcomes (resolved or skipped with a reason) for reporting.

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple


@dataclass(frozen=True, slots=True)
class WorksheetDescriptor:
    """A worksheet entry from the workbook manifest.

    ``package_index`` is the 1-based manifest position; it, not ``sheet_id``,
    selects ``worksheets/_rels/sheet<N>.xml.rels``.
    """

    name: str
    package_index: int
    sheet_id: Optional[str] = None
    rel_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ImageReference:
    path: str


@dataclass(frozen=True, slots=True)
class CropRect:
    """Percent of the source image cropped from each edge."""

    left: float = 0.0
    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {"left": self.left, "top": self.top, "right": self.right, "bottom": self.bottom}


@dataclass(frozen=True, slots=True)
class ImageTransform:
    rotation_degrees: float = 0.0
    flip_horizontal: bool = False
    flip_vertical: bool = False
    crop: CropRect = field(default_factory=CropRect)

    @property
    def is_identity(self) -> bool:
        return self == IDENTITY_TRANSFORM

    def to_dict(self) -> Dict[str, object]:
        return {
            "rotation": self.rotation_degrees,
            "flipH": self.flip_horizontal,
            "flipV": self.flip_vertical,
            "crop": self.crop.to_dict(),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> "ImageTransform":
        crop = payload.get("crop") or {}
        if not isinstance(crop, Mapping):
            crop = {}
        return cls(
            rotation_degrees=float(payload.get("rotation", 0.0) or 0.0),
            flip_horizontal=bool(payload.get("flipH", False)),
            flip_vertical=bool(payload.get("flipV", False)),
            crop=CropRect(
                left=float(crop.get("left", 0.0) or 0.0),
                top=float(crop.get("top", 0.0) or 0.0),
                right=float(crop.get("right", 0.0) or 0.0),
                bottom=float(crop.get("bottom", 0.0) or 0.0),
            ),
        )


IDENTITY_TRANSFORM = ImageTransform()

ImageEntry = Tuple[ImageReference, ImageTransform]
SheetImageMapping = Dict[str, List[ImageEntry]]


class SkipReason(str, Enum):
    """Why a worksheet produced no images."""

    NO_RELATIONSHIPS = "no_relationships"
    MALFORMED_RELATIONSHIPS = "malformed_relationships"
    UNREADABLE_ENTRY = "unreadable_entry"
    NO_DRAWING = "no_drawing"
    DRAWING_MISSING = "drawing_missing"
    DRAWING_RELATIONSHIPS_MISSING = "drawing_relationships_missing"
    MALFORMED_DRAWING_RELATIONSHIPS = "malformed_drawing_relationships"
    NO_IMAGES = "no_images"


@dataclass(frozen=True, slots=True)
class UnitOutcome:
    """Result of processing one worksheet: resolved, or skipped with a reason."""

    sheet: str
    status: str
    reason: Optional[SkipReason] = None
    detail: str = ""
    image_count: int = 0

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"

    @classmethod
    def ok(cls, sheet: str, image_count: int) -> "UnitOutcome":
        return cls(sheet=sheet, status="ok", image_count=image_count)

    @classmethod
    def skip(cls, sheet: str, reason: SkipReason, detail: str = "") -> "UnitOutcome":
        return cls(sheet=sheet, status="skipped", reason=reason, detail=detail)


@dataclass(frozen=True, slots=True)
class SheetResolution:
    """Worksheet paired with its drawing part (None when it has none)."""

    sheet: WorksheetDescriptor
    drawing_path: Optional[str]
    outcome: Optional[UnitOutcome] = None


@dataclass(slots=True)
class MappingReport:
    """Mapping plus the per-worksheet outcomes and warnings of one build."""

    mapping: SheetImageMapping = field(default_factory=dict)
    outcomes: List[UnitOutcome] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    failure: Optional[str] = None
    sheet_count: int = 0

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def image_count(self) -> int:
        return sum(len(entries) for entries in self.mapping.values())

    def skipped(self) -> List[UnitOutcome]:
        return [outcome for outcome in self.outcomes if outcome.skipped]

    def skip_reasons(self) -> Dict[str, SkipReason]:
        return {
            outcome.sheet: outcome.reason
            for outcome in self.outcomes
            if outcome.skipped and outcome.reason is not None
        }

    def to_dict(self) -> Dict[str, object]:
        return {
            "mapping": {
                name: [
                    {"path": ref.path, "transform": transform.to_dict()}
                    for ref, transform in entries
                ]
                for name, entries in self.mapping.items()
            },
            "outcomes": [
                {
                    "sheet": outcome.sheet,
                    "status": outcome.status,
                    "reason": outcome.reason.value if outcome.reason else None,
                    "detail": outcome.detail,
                    "image_count": outcome.image_count,
                }
                for outcome in self.outcomes
            ],
            "warnings": list(self.warnings),
            "failure": self.failure,
            "sheet_count": self.sheet_count,
        }
