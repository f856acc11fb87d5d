"""
RESPONSIBILITIES
- Define shared interfaces and exceptions for the offline stores.
- Outline the workflow for init/upsert/bulk_import/query/healthcheck used by concrete stores.
PROCESS OVERVIEW
1. init_store -> resolve target path, ensure directories and index workbook skeleton exist.
2. upsert -> replace a single record by primary key wholesale, keeping created_at.
3. bulk_import -> upsert each record, counting successes.
4. query -> filter the in-memory frame built from the index sheet.
5. healthcheck -> verify dependencies, directory write access, and lock availability.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping


class StoreError(RuntimeError):
    """Base exception type for persistence-layer failures."""


class StoreInitializationError(StoreError):
    """Raised when a store cannot be initialized due to missing prerequisites."""


class StoreValidationError(StoreError):
    """Raised when input data fails validation rules."""


class StoreLockedError(StoreError):
    """Raised when a store is locked by another writer."""


@dataclass(slots=True)
class PersistHealth:
    """Structured report produced by health checks."""

    dependencies: dict[str, bool]
    writable_paths: dict[str, bool]
    locked_paths: list[str]
    issues: list[str] = field(default_factory=list)

    def is_healthy(self) -> bool:
        """Return True when no issues are observed."""

        return not self.issues and all(self.dependencies.values()) and all(
            self.writable_paths.values()
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "healthy": self.is_healthy(),
            "dependencies": dict(self.dependencies),
            "writable_paths": dict(self.writable_paths),
            "locked_paths": list(self.locked_paths),
            "issues": list(self.issues),
        }


class BaseStore(ABC):
    """Abstract class shared by the XLSX-indexed stores."""

    sheet_name: str
    columns: tuple[str, ...]

    def __init__(self, *, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def init_store(self) -> Path:
        """Ensure backing workbook exists, returning absolute path."""

    @abstractmethod
    def upsert(self, record: Mapping[str, object]) -> None:
        """Replace the record sharing the primary key, or append it."""

    @abstractmethod
    def bulk_import(self, payload: Iterable[Mapping[str, object]], **kwargs: object) -> int:
        """Import multiple records, returning the count of inserted/updated rows."""

    @abstractmethod
    def query(self, params: Mapping[str, object]) -> object:
        """Run a query and return results (usually a pandas.DataFrame)."""

    @abstractmethod
    def healthcheck(self) -> PersistHealth:
        """Run diagnostics for the store and return a structured report."""
