"""
RESPONSIBILITIES
- Persist the assembled recipe list so it can be browsed without the source workbook.
- Track when the list was last saved.
PROCESS OVERVIEW
1. init_recipe_store() ensures store/recipe_store.xlsx with recipes + meta sheets.
2. save_recipes() replaces the whole list and the saved_at timestamp in one write.
3. upsert() replaces a single recipe by name; load_recipes() returns the stored dictionaries.
4. clear() empties both sheets; healthcheck() reports store status.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Mapping

import pandas as pd

from recipeflow_persist.schemas.imagerec import utcnow_iso
from recipeflow_persist.schemas.reciperec import RecipeRow
from recipeflow_persist.stores.base_store import (
    BaseStore,
    PersistHealth,
    StoreError,
    StoreInitializationError,
    StoreValidationError,
)
from recipeflow_persist.utils.excel_io import ensure_workbook, read_rows, store_lock, write_sheets
from recipeflow_persist.utils.log import get_logger
from recipeflow_persist.utils.paths import ensure_structure, store_file_path

RECIPE_WORKBOOK = "recipe_store.xlsx"
RECIPE_SHEET = "recipes"
META_SHEET = "meta"
RECIPE_COLUMNS: tuple[str, ...] = (
    "name",
    "category",
    "is_placeholder",
    "has_image",
    "image_count",
    "payload",
    "saved_at",
)
META_COLUMNS: tuple[str, ...] = ("key", "value")


class RecipeStore(BaseStore):
    """XLSX-backed list of assembled recipes."""

    sheet_name = RECIPE_SHEET
    columns = RECIPE_COLUMNS

    def __init__(self, root: Path | str | None = None, *, logger: logging.Logger | None = None) -> None:
        resolved_root = Path(root).expanduser().resolve() if root else None
        super().__init__(logger=logger or get_logger("recipe_store", resolved_root))
        self._root = resolved_root
        self.path = store_file_path(RECIPE_WORKBOOK, self._root)

    def _tables(self) -> dict[str, tuple[str, ...]]:
        return {self.sheet_name: self.columns, META_SHEET: META_COLUMNS}

    def init_store(self) -> Path:
        try:
            ensure_workbook(self.path, self._tables())
        except OSError as exc:
            raise StoreInitializationError(str(exc)) from exc
        return self.path

    def save_recipes(self, recipes: Iterable[Mapping[str, object]]) -> int:
        """Replace the stored list with ``recipes``; returns the number written."""

        saved_at = utcnow_iso()
        rows = [RecipeRow.from_recipe(recipe, saved_at=saved_at).to_dict() for recipe in recipes]
        self.init_store()
        with store_lock(self.path):
            self._write(rows, saved_at)
        self.logger.info("Saved %d recipe(s) to %s", len(rows), self.path)
        return len(rows)

    def upsert(self, record: Mapping[str, object]) -> None:
        name = str(record.get("name", "")).strip()
        if not name:
            raise StoreValidationError("Recipe name is required")
        saved_at = utcnow_iso()
        payload = RecipeRow.from_recipe(record, saved_at=saved_at).to_dict()
        self.init_store()
        with store_lock(self.path):
            rows = read_rows(self.path, self.sheet_name, self.columns)
            updated = [row for row in rows if str(row.get("name")) != name]
            updated.append(payload)
            self._write(updated, saved_at)

    def bulk_import(self, payload: Iterable[Mapping[str, object]], **kwargs: object) -> int:
        count = 0
        for record in payload:
            self.upsert(record)
            count += 1
        return count

    def load_recipes(self) -> list[dict]:
        """Return stored recipes in saved order (empty when nothing was saved)."""

        if not self.path.exists():
            return []
        with store_lock(self.path):
            rows = read_rows(self.path, self.sheet_name, self.columns)
        return [self._row(row).payload_dict() for row in rows]

    def timestamp(self) -> str | None:
        if not self.path.exists():
            return None
        with store_lock(self.path):
            meta = read_rows(self.path, META_SHEET, META_COLUMNS)
        for row in meta:
            if row.get("key") == "saved_at" and str(row.get("value")).strip():
                return str(row["value"])
        return None

    def clear(self) -> None:
        self.init_store()
        with store_lock(self.path):
            write_sheets(
                self.path,
                {self.sheet_name: (self.columns, []), META_SHEET: (META_COLUMNS, [])},
            )

    def query(self, params: Mapping[str, object] | None = None) -> pd.DataFrame:
        self.init_store()
        with store_lock(self.path):
            rows = read_rows(self.path, self.sheet_name, self.columns)
        frame = pd.DataFrame(rows, columns=self.columns)
        if frame.empty:
            return frame
        category = (params or {}).get("category")
        if category:
            frame = frame[frame["category"] == str(category)]
        return frame.reset_index(drop=True)

    def healthcheck(self) -> PersistHealth:
        issues: list[str] = []
        locked: list[str] = []
        try:
            ensure_structure(self._root)
            self.init_store()
        except (OSError, StoreError) as exc:
            issues.append(str(exc))
        directory = self.path.parent
        writable = {str(directory): directory.exists() and os.access(directory, os.W_OK | os.X_OK)}
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

    def _write(self, rows: list[Mapping[str, object]], saved_at: str) -> None:
        write_sheets(
            self.path,
            {
                self.sheet_name: (self.columns, rows),
                META_SHEET: (META_COLUMNS, [{"key": "saved_at", "value": saved_at}]),
            },
        )

    @staticmethod
    def _row(row: Mapping[str, object]) -> RecipeRow:
        return RecipeRow(
            name=str(row.get("name", "")),
            category=str(row.get("category", "")),
            is_placeholder=str(row.get("is_placeholder")) == "yes",
            has_image=str(row.get("has_image")) == "yes",
            image_count=int(row.get("image_count") or 0),
            payload=str(row.get("payload") or ""),
            saved_at=str(row.get("saved_at") or ""),
        )


def init_recipe_store(root: Path | None = None) -> Path:
    store = RecipeStore(root)
    return store.init_store()
