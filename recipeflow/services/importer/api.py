"""Public API for the recipe importer service."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

import requests
from pydantic import BaseModel, Field

from recipeflow.config import ImportSettings, load_settings
from recipeflow.core.errors import DownloadError, ImportFailedError
from recipeflow_io import (
    PackageError,
    PackageReader,
    WorkbookReadError,
    build_mapping_report,
    load_payloads,
    read_grids,
)
from recipeflow_persist import ImageStore, RecipeStore, StoreError

from .assembler import assemble_recipes
from .models import ImportProgress, Recipe

LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[ImportProgress], None]
WorkbookSource = Union[bytes, str, Path]


class ImportResult(BaseModel):
    """Aggregated outcome of one workbook import."""

    source: str
    recipes: List[Recipe] = Field(default_factory=list)
    images_enabled: bool = True
    sheets_with_images: int = 0
    images_saved: int = 0
    image_failure: Optional[str] = None
    skipped_sheets: Dict[str, str] = Field(default_factory=dict)
    missing_images: List[str] = Field(default_factory=list)
    store_errors: Dict[str, str] = Field(default_factory=dict)
    warnings: List[str] = Field(default_factory=list)

    @property
    def recipe_count(self) -> int:
        return len(self.recipes)

    @property
    def placeholder_count(self) -> int:
        return sum(1 for recipe in self.recipes if recipe.is_placeholder)

    @property
    def recipes_with_images(self) -> int:
        return sum(1 for recipe in self.recipes if recipe.has_image)

    @property
    def has_images(self) -> bool:
        return self.recipes_with_images > 0

    def summary(self) -> str:
        return f"{self.recipes_with_images} of {self.recipe_count} recipes got images"


def _notify(progress: ProgressCallback | None, phase: str, value: int, message: str) -> None:
    if progress is not None:
        progress(ImportProgress(phase=phase, progress=value, message=message))


def _read_source(source: WorkbookSource) -> tuple[bytes, str]:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source), "<bytes>"
    path = Path(source)
    try:
        return path.read_bytes(), str(path)
    except FileNotFoundError as exc:
        raise ImportFailedError(f"Workbook not found: {path}") from exc
    except OSError as exc:
        raise ImportFailedError(f"Cannot read workbook {path}: {exc}") from exc


def store_images(
    data: bytes,
    recipes: List[Recipe],
    image_store: ImageStore,
    result: ImportResult,
    progress: ProgressCallback | None = None,
) -> None:
    """Extract every sheet's images from ``data`` into ``image_store``.

    Failures are recorded on ``result``; nothing is raised for a package that
    cannot be mapped.
    """

    _notify(progress, "images", 10, "Analysing images...")
    try:
        package = PackageReader.from_bytes(data, source=result.source)
    except PackageError as exc:
        LOGGER.error("Image extraction skipped: %s", exc)
        result.image_failure = str(exc)
        return

    by_name = {recipe.name: recipe for recipe in recipes}
    with package:
        report = build_mapping_report(package)
        result.warnings.extend(report.warnings)
        result.skipped_sheets.update(
            {sheet: reason.value for sheet, reason in report.skip_reasons().items()}
        )
        if not report.ok:
            result.image_failure = report.failure
            return

        total_sheets = len(report.mapping)
        total_images = report.image_count
        LOGGER.info("Found %d images for %d recipes", total_images, total_sheets)
        processed_sheets = 0
        for recipe_name, entries in report.mapping.items():
            payloads, transforms, missing = load_payloads(package, entries)
            result.missing_images.extend(missing)
            if payloads:
                try:
                    image_store.save_images(recipe_name, payloads, transforms)
                except (StoreError, OSError) as exc:
                    LOGGER.error("Failed to store images for %s: %s", recipe_name, exc)
                    result.store_errors[recipe_name] = str(exc)
                else:
                    result.sheets_with_images += 1
                    result.images_saved += len(payloads)
                    recipe = by_name.get(recipe_name)
                    if recipe is not None:
                        recipe.has_image = True
                        recipe.image_count = len(payloads)
            processed_sheets += 1
            _notify(
                progress,
                "images",
                10 + (processed_sheets * 80) // total_sheets,
                f"Images {result.images_saved}/{total_images} saved...",
            )
    _notify(progress, "images", 90, f"{result.images_saved} images saved")


def import_workbook(
    source: WorkbookSource,
    *,
    image_store: ImageStore | None = None,
    recipe_store: RecipeStore | None = None,
    settings: ImportSettings | None = None,
    progress: ProgressCallback | None = None,
    include_images: bool = True,
) -> ImportResult:
    """Read recipes and their images from an ``.xlsx`` workbook.

    Raises:
        ImportFailedError: When the workbook cells cannot be read at all. Image
            problems never raise; they are reported on the result.
    """

    settings = settings or load_settings()
    _notify(progress, "data", 0, "Loading workbook data...")
    data, label = _read_source(source)
    try:
        grids = read_grids(data)
    except WorkbookReadError as exc:
        raise ImportFailedError(f"Failed to load workbook {label}: {exc}") from exc

    recipes = assemble_recipes(grids, settings)
    result = ImportResult(source=label, recipes=recipes, images_enabled=include_images and image_store is not None)
    _notify(progress, "data", 50, "Recipe data loaded")

    if result.images_enabled:
        _notify(progress, "images", 0, "Extracting images...")
        store_images(data, result.recipes, image_store, result, progress)  # type: ignore[arg-type]
    else:
        LOGGER.info("Image extraction disabled for %s", label)

    if recipe_store is not None:
        recipe_store.save_recipes(recipe.model_dump() for recipe in result.recipes)

    _notify(progress, "complete", 100, "Done")
    LOGGER.info("Import finished for %s: %s", label, result.summary())
    return result


def download_workbook(url: str, *, timeout: float) -> bytes:
    """Fetch a workbook over HTTP(S)."""

    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise DownloadError(f"Failed to download {url}: {exc}") from exc
    return response.content


def import_from_url(
    url: str,
    *,
    image_store: ImageStore | None = None,
    recipe_store: RecipeStore | None = None,
    settings: ImportSettings | None = None,
    progress: ProgressCallback | None = None,
    include_images: bool = True,
) -> ImportResult:
    settings = settings or load_settings()
    data = download_workbook(url, timeout=settings.download_timeout)
    result = import_workbook(
        data,
        image_store=image_store,
        recipe_store=recipe_store,
        settings=settings,
        progress=progress,
        include_images=include_images,
    )
    result.source = url
    return result


__all__ = [
    "ImportResult",
    "ProgressCallback",
    "download_workbook",
    "import_from_url",
    "import_workbook",
    "store_images",
]
