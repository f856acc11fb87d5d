"""
RESPONSIBILITIES
- Keep extracted recipe images offline: blobs on disk, one XLSX index row per recipe.
- Upsert per recipe name wholesale (images and transforms together), never merging.
PROCESS OVERVIEW
1. init_image_store() ensures store/image_store.xlsx and store/images/ exist.
2. save_images() writes blobs to a staging directory, swaps it in and replaces the index row.
3. get_all_images()/get_transforms() read a recipe's blobs and transform records back.
4. query() returns the index as a pandas.DataFrame; healthcheck() reports store status.
"""

from __future__ import annotations

import base64
import hashlib
import logging
import mimetypes
import os
import shutil
import uuid
from pathlib import Path
from typing import Callable, Iterable, Mapping, Sequence, Union

import pandas as pd

from recipeflow_persist.schemas.imagerec import (
    ImageBlob,
    ImageIndexRecord,
    SupportsImageData,
    utcnow_iso,
)
from recipeflow_persist.stores.base_store import (
    BaseStore,
    PersistHealth,
    StoreError,
    StoreInitializationError,
    StoreValidationError,
)
from recipeflow_persist.utils.excel_io import ensure_workbook, read_rows, store_lock, write_sheets
from recipeflow_persist.utils.log import get_logger
from recipeflow_persist.utils.paths import blob_dir, ensure_structure, store_file_path

IMAGE_WORKBOOK = "image_store.xlsx"
IMAGE_SHEET = "images"
IMAGE_BLOB_DIR = "images"
IMAGE_COLUMNS: tuple[str, ...] = (
    "recipe_name",
    "image_dir",
    "image_files",
    "mime_types",
    "transforms",
    "image_count",
    "created_at",
    "updated_at",
)

_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/gif": "gif",
    "image/bmp": "bmp",
    "image/webp": "webp",
}

TransformLike = Union[Mapping[str, object], object]
ProgressCallback = Callable[[dict[str, object]], None]


def _key_dir_name(recipe_name: str) -> str:
    return hashlib.sha1(recipe_name.encode("utf-8")).hexdigest()


def _extension_for(mime: str) -> str:
    known = _EXTENSIONS.get(mime.lower())
    if known:
        return known
    guessed = mimetypes.guess_extension(mime) or ".bin"
    return guessed.lstrip(".")


def _transform_dict(transform: TransformLike) -> dict[str, object]:
    to_dict = getattr(transform, "to_dict", None)
    if callable(to_dict):
        return dict(to_dict())
    if isinstance(transform, Mapping):
        return dict(transform)
    raise StoreValidationError(f"Unsupported transform record: {transform!r}")


class ImageStore(BaseStore):
    """Offline image store keyed by recipe (worksheet) name."""

    sheet_name = IMAGE_SHEET
    columns = IMAGE_COLUMNS

    def __init__(self, root: Path | str | None = None, *, logger: logging.Logger | None = None) -> None:
        resolved_root = Path(root).expanduser().resolve() if root else None
        super().__init__(logger=logger or get_logger("image_store", resolved_root))
        self._root = resolved_root
        self.path = store_file_path(IMAGE_WORKBOOK, self._root)
        self.blob_root = self.path.parent / IMAGE_BLOB_DIR

    # BaseStore API -----------------------------------------------------------------

    def init_store(self) -> Path:
        self.logger.debug("Ensuring image store exists at %s", self.path)
        try:
            blob_dir(IMAGE_BLOB_DIR, self._root)
            ensure_workbook(self.path, {self.sheet_name: self.columns})
        except OSError as exc:
            raise StoreInitializationError(str(exc)) from exc
        return self.path

    def upsert(self, record: Mapping[str, object]) -> None:
        """Upsert from a mapping with ``recipe_name``, ``images`` and optional ``transforms``."""

        name = str(record.get("recipe_name", ""))
        images = record.get("images") or []
        transforms = record.get("transforms")
        if not isinstance(images, Sequence):
            raise StoreValidationError("images must be a sequence")
        self.save_images(name, images, transforms if isinstance(transforms, Sequence) else None)

    def bulk_import(self, payload: Iterable[Mapping[str, object]], **kwargs: object) -> int:
        count = 0
        for record in payload:
            self.upsert(record)
            count += 1
        return count

    def query(self, params: Mapping[str, object] | None = None) -> pd.DataFrame:
        self.init_store()
        with store_lock(self.path):
            rows = read_rows(self.path, self.sheet_name, self.columns)
        frame = pd.DataFrame(rows, columns=self.columns)
        if frame.empty:
            return frame
        frame["image_count"] = frame["image_count"].apply(lambda val: int(val) if str(val).strip() else 0)
        term = str((params or {}).get("recipe_name") or "").strip().lower()
        if term:
            frame = frame[frame["recipe_name"].astype(str).str.lower().str.contains(term, regex=False)]
        return frame.sort_values("recipe_name").reset_index(drop=True)

    def healthcheck(self) -> PersistHealth:
        issues: list[str] = []
        writable: dict[str, bool] = {}
        locked: list[str] = []
        try:
            ensure_structure(self._root)
            self.init_store()
        except (OSError, StoreError) as exc:
            issues.append(str(exc))
        for directory in (self.path.parent, self.blob_root):
            writable[str(directory)] = directory.exists() and os.access(directory, os.W_OK | os.X_OK)
        try:
            with store_lock(self.path, timeout=1.0):
                pass
        except StoreError as exc:
            locked.append(str(self.path))
            issues.append(f"Lock acquisition failed: {exc}")
        return PersistHealth(
            dependencies={"openpyxl": True, "pandas": True},
            writable_paths=writable,
            locked_paths=locked,
            issues=issues,
        )

    # Image API ---------------------------------------------------------------------

    def save_images(
        self,
        recipe_name: str,
        images: SupportsImageData | Sequence[SupportsImageData],
        transforms: Sequence[TransformLike] | None = None,
    ) -> ImageIndexRecord:
        """Replace everything stored for ``recipe_name`` with ``images`` and ``transforms``.

        ``transforms`` is index-aligned with ``images``; when omitted every image
        gets an empty transform record.
        """

        if not recipe_name or not recipe_name.strip():
            raise StoreValidationError("recipe_name is required")
        blobs = [images] if hasattr(images, "data") else list(images)  # type: ignore[arg-type]
        if not blobs:
            raise StoreValidationError(f"No images given for {recipe_name}")
        records = [_transform_dict(item) for item in transforms] if transforms is not None else [{} for _ in blobs]
        if len(records) != len(blobs):
            raise StoreValidationError(
                f"{recipe_name}: {len(blobs)} images but {len(records)} transforms"
            )

        self.init_store()
        dir_name = _key_dir_name(recipe_name)
        with store_lock(self.path):
            target = self.blob_root / dir_name
            staging = self.blob_root / f".{dir_name}.{uuid.uuid4().hex}.staging"
            staging.mkdir(parents=True)
            try:
                files: list[str] = []
                mimes: list[str] = []
                for index, blob in enumerate(blobs):
                    mime = str(blob.mime_type or "image/png")
                    file_name = f"{index:03d}.{_extension_for(mime)}"
                    (staging / file_name).write_bytes(bytes(blob.data))
                    files.append(file_name)
                    mimes.append(mime)
                retired = self._swap_in(staging, target)
            except BaseException:
                shutil.rmtree(staging, ignore_errors=True)
                raise

            now_iso = utcnow_iso()
            record = ImageIndexRecord(
                recipe_name=recipe_name,
                image_dir=dir_name,
                image_files=files,
                mime_types=mimes,
                transforms=records,
                created_at=now_iso,
                updated_at=now_iso,
            )
            try:
                rows = read_rows(self.path, self.sheet_name, self.columns)
                updated: list[Mapping[str, object]] = []
                for row in rows:
                    if str(row.get("recipe_name")) == recipe_name:
                        record.created_at = str(row.get("created_at") or now_iso)
                        continue
                    updated.append(row)
                updated.append(record.to_dict())
                write_sheets(self.path, {self.sheet_name: (self.columns, updated)})
            except BaseException:
                # the index still lists the previous files; put them back
                self._restore(target, retired)
                raise
            if retired is not None:
                shutil.rmtree(retired, ignore_errors=True)

        self.logger.info("Stored %d image(s) for %s", record.image_count, recipe_name)
        return record

    def save_multiple(
        self,
        image_map: Mapping[str, Sequence[SupportsImageData] | tuple[Sequence[SupportsImageData], Sequence[TransformLike]]],
        progress_callback: ProgressCallback | None = None,
    ) -> dict[str, int]:
        """Save several recipes, counting successes and failures instead of stopping."""

        success = 0
        failed = 0
        total = len(image_map)
        for recipe_name, value in image_map.items():
            images, transforms = value if isinstance(value, tuple) else (value, None)
            try:
                self.save_images(recipe_name, images, transforms)
                success += 1
            except (StoreError, OSError) as exc:
                self.logger.error("Failed to store images for %s: %s", recipe_name, exc)
                failed += 1
            if progress_callback:
                progress_callback(
                    {
                        "current": success + failed,
                        "total": total,
                        "success": success,
                        "failed": failed,
                        "recipe_name": recipe_name,
                    }
                )
        return {"success": success, "failed": failed}

    def get_record(self, recipe_name: str) -> ImageIndexRecord | None:
        if not self.path.exists():
            return None
        with store_lock(self.path):
            rows = read_rows(self.path, self.sheet_name, self.columns)
        for row in rows:
            if str(row.get("recipe_name")) == recipe_name:
                return ImageIndexRecord.from_row(row)
        return None

    def get_all_images(self, recipe_name: str) -> list[ImageBlob]:
        """Return all images of a recipe in stored order (empty when none)."""

        if not self.path.exists():
            return []
        blobs: list[ImageBlob] = []
        with store_lock(self.path):
            record = self.get_record(recipe_name)
            if record is None:
                return []
            directory = self.blob_root / record.image_dir
            for file_name, mime in zip(record.image_files, record.mime_types):
                target = directory / file_name
                if not target.exists():
                    self.logger.warning("Image blob missing on disk: %s", target)
                    continue
                blobs.append(ImageBlob(data=target.read_bytes(), mime_type=mime, file_name=file_name))
        return blobs

    def get_image(self, recipe_name: str) -> ImageBlob | None:
        """Return the primary (first) image of a recipe."""

        images = self.get_all_images(recipe_name)
        return images[0] if images else None

    def get_transforms(self, recipe_name: str) -> list[dict[str, object]]:
        record = self.get_record(recipe_name)
        return [dict(item) for item in record.transforms] if record else []

    def get_image_data_url(self, recipe_name: str) -> str | None:
        blob = self.get_image(recipe_name)
        return _data_url(blob) if blob else None

    def get_all_image_data_urls(self, recipe_name: str) -> list[str]:
        return [_data_url(blob) for blob in self.get_all_images(recipe_name)]

    def has_image(self, recipe_name: str) -> bool:
        return self.get_image(recipe_name) is not None

    def delete_image(self, recipe_name: str) -> bool:
        """Remove a recipe's images; returns False when nothing was stored."""

        if not self.path.exists():
            return False
        with store_lock(self.path):
            rows = read_rows(self.path, self.sheet_name, self.columns)
            kept = [row for row in rows if str(row.get("recipe_name")) != recipe_name]
            if len(kept) == len(rows):
                return False
            write_sheets(self.path, {self.sheet_name: (self.columns, kept)})
            shutil.rmtree(self.blob_root / _key_dir_name(recipe_name), ignore_errors=True)
        return True

    def clear_all(self) -> None:
        self.init_store()
        with store_lock(self.path):
            write_sheets(self.path, {self.sheet_name: (self.columns, [])})
            shutil.rmtree(self.blob_root, ignore_errors=True)
            self.blob_root.mkdir(parents=True, exist_ok=True)
        self.logger.info("Cleared image store at %s", self.path)

    def count(self) -> int:
        return len(self.recipe_names())

    def recipe_names(self) -> list[str]:
        if not self.path.exists():
            return []
        with store_lock(self.path):
            rows = read_rows(self.path, self.sheet_name, self.columns)
        return [str(row.get("recipe_name")) for row in rows]

    # Helpers ----------------------------------------------------------------------

    @staticmethod
    def _swap_in(staging: Path, target: Path) -> Path | None:
        """Move ``staging`` into place and return the retired previous directory, if any."""

        retired: Path | None = None
        if target.exists():
            retired = target.with_name(f".{target.name}.{uuid.uuid4().hex}.retired")
            os.replace(target, retired)
        try:
            os.replace(staging, target)
        except OSError:
            if retired is not None:
                os.replace(retired, target)
            raise
        return retired

    @staticmethod
    def _restore(target: Path, retired: Path | None) -> None:
        shutil.rmtree(target, ignore_errors=True)
        if retired is not None:
            os.replace(retired, target)


def _data_url(blob: ImageBlob) -> str:
    encoded = base64.b64encode(blob.data).decode("ascii")
    return f"data:{blob.mime_type};base64,{encoded}"


# Convenience facade ---------------------------------------------------------------


def init_image_store(root: Path | None = None) -> Path:
    store = ImageStore(root)
    return store.init_store()
