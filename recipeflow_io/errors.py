"""Exceptions raised by the workbook package readers."""

# Module responsibilities:
# - Separate whole-package failures from fragment-local failures so callers can decide scope.
# - Keep "entry missing" catchable as a plain KeyError for dict-like callers.

from __future__ import annotations


class PackageError(RuntimeError):
    """Raised when the workbook package as a whole cannot be used."""


class ManifestError(PackageError):
    """Raised when ``xl/workbook.xml`` is missing or does not parse."""


class EntryNotFoundError(PackageError, KeyError):
    """Raised when a named entry does not exist in the package."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Package entry not found: {path}")
        self.path = path

    def __str__(self) -> str:
        return f"Package entry not found: {self.path}"


class MalformedFragmentError(ValueError):
    """Raised when a single XML part of the package does not parse."""

    def __init__(self, part: str, reason: str) -> None:
        super().__init__(f"Malformed XML in {part}: {reason}")
        self.part = part
        self.reason = reason


class WorkbookReadError(PackageError):
    """Raised when the cell grid of a workbook cannot be loaded."""
