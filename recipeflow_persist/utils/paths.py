"""
RESPONSIBILITIES
- Resolve and create the RecipeFlow home scaffold used for persistence.
- Provide helpers for locating store files and blob directories.
PROCESS OVERVIEW
1. resolve_root() expands user input or falls back to RECIPEFLOW_HOME / ~/RecipeFlow.
2. ensure_structure() materializes store/logs/tmp directories.
3. store_file_path() returns the canonical store location for a workbook.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

from recipeflow.core.home import resolve_home

_DEFAULT_SUBDIRS: tuple[str, ...] = ("store", "logs", "tmp")


def resolve_root(root: str | os.PathLike[str] | None = None) -> Path:
    """Return the persistence root."""

    return resolve_home(root)


def ensure_structure(root: str | os.PathLike[str] | None = None, *, subdirs: Iterable[str] | None = None) -> dict[str, Path]:
    """Ensure persistence directories exist and return a mapping."""

    base = resolve_root(root)
    base.mkdir(parents=True, exist_ok=True)
    requested = tuple(subdirs) if subdirs is not None else _DEFAULT_SUBDIRS
    resolved: dict[str, Path] = {}
    for name in requested:
        target = base / name
        target.mkdir(parents=True, exist_ok=True)
        resolved[name] = target
    return resolved


def store_file_path(filename: str, root: str | os.PathLike[str] | None = None) -> Path:
    """Return the absolute path for a store file under \"store\"."""

    return ensure_structure(root)["store"] / filename


def blob_dir(name: str, root: str | os.PathLike[str] | None = None) -> Path:
    """Return (and create) a blob directory under \"store\"."""

    target = ensure_structure(root)["store"] / name
    target.mkdir(parents=True, exist_ok=True)
    return target
