"""
RESPONSIBILITIES
- Guard store files with a reentrant in-process lock plus a lock file shared across processes.
- Read and write index workbooks via openpyxl, replacing files atomically.
PROCESS OVERVIEW
1. store_lock() serializes writers; nested use in the same thread is allowed.
2. ensure_workbook() creates missing sheets and realigns headers that drifted.
3. read_rows() loads rows into dictionaries keyed by canonical columns.
4. write_sheets() rebuilds the whole workbook in a temp file and swaps it in.
"""

from __future__ import annotations

import os
import threading
import time
import zipfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, Mapping, Sequence

from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from recipeflow_persist.stores.base_store import StoreInitializationError, StoreLockedError

LOCK_TIMEOUT_SECONDS = 10.0
STALE_LOCK_SECONDS = 120.0

_LOCKS: dict[Path, threading.RLock] = {}
_DEPTH: dict[Path, int] = {}
_REGISTRY_GUARD = threading.Lock()

Table = tuple[Sequence[str], Iterable[Mapping[str, object]]]


def _lock_for(path: Path) -> threading.RLock:
    with _REGISTRY_GUARD:
        return _LOCKS.setdefault(path, threading.RLock())


def _lock_file(path: Path) -> Path:
    return path.with_name(path.name + ".lock")


def _acquire_lock_file(lock_path: Path, deadline: float) -> int:
    while True:
        try:
            fd = os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError:
            try:
                age = time.time() - lock_path.stat().st_mtime
            except FileNotFoundError:
                continue
            if age > STALE_LOCK_SECONDS:
                lock_path.unlink(missing_ok=True)
                continue
            if time.monotonic() >= deadline:
                raise StoreLockedError(f"Store appears locked: {lock_path}") from None
            time.sleep(0.05)
            continue
        os.write(fd, str(os.getpid()).encode("ascii"))
        return fd


@contextmanager
def store_lock(path: Path, *, timeout: float = LOCK_TIMEOUT_SECONDS) -> Iterator[None]:
    """Hold the writer lock for ``path``; reentrant within one thread."""

    path = path.resolve()
    inproc = _lock_for(path)
    if not inproc.acquire(timeout=timeout):
        raise StoreLockedError(f"Timeout acquiring in-process lock for {path}")
    fd: int | None = None
    lock_path = _lock_file(path)
    try:
        depth = _DEPTH.get(path, 0)
        if depth == 0:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd = _acquire_lock_file(lock_path, time.monotonic() + timeout)
        _DEPTH[path] = depth + 1
        try:
            yield
        finally:
            _DEPTH[path] -= 1
    finally:
        if fd is not None:
            os.close(fd)
            lock_path.unlink(missing_ok=True)
        inproc.release()


def _atomic_save(workbook: Workbook, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    workbook.save(tmp_path)
    os.replace(tmp_path, path)


def _header(worksheet) -> list[str]:
    first = next(worksheet.iter_rows(min_row=1, max_row=1, values_only=True), None)
    return [str(cell).strip() if cell is not None else "" for cell in (first or ())]


def _rows_by_header(worksheet, columns: Sequence[str]) -> list[dict[str, object]]:
    header = _header(worksheet)
    positions = {name: idx for idx, name in enumerate(header) if name}
    records: list[dict[str, object]] = []
    for values in worksheet.iter_rows(min_row=2, values_only=True):
        if not values or not any(cell is not None and str(cell).strip() for cell in values):
            continue
        record: dict[str, object] = {}
        for column in columns:
            idx = positions.get(column)
            value = values[idx] if idx is not None and idx < len(values) else None
            record[column] = "" if value is None else value
        records.append(record)
    return records


def ensure_workbook(path: Path, tables: Mapping[str, Sequence[str]]) -> None:
    """Make sure every sheet in ``tables`` exists with exactly the given header."""

    with store_lock(path):
        try:
            if not path.exists():
                write_sheets(path, {name: (columns, ()) for name, columns in tables.items()})
                return
            workbook = load_workbook(path)
        except (OSError, zipfile.BadZipFile, InvalidFileException) as exc:
            raise StoreInitializationError(f"Cannot prepare store workbook {path}: {exc}") from exc
        try:
            current = {
                name: _rows_by_header(workbook[name], columns)
                for name, columns in tables.items()
                if name in workbook.sheetnames
            }
            aligned = all(
                name in workbook.sheetnames and _header(workbook[name]) == list(columns)
                for name, columns in tables.items()
            )
        finally:
            workbook.close()
        if aligned:
            return
        write_sheets(
            path,
            {name: (columns, current.get(name, [])) for name, columns in tables.items()},
        )


def read_rows(path: Path, sheet_name: str, columns: Sequence[str]) -> list[dict[str, object]]:
    """Return the rows of ``sheet_name`` as dictionaries keyed by ``columns``."""

    if not path.exists():
        return []
    workbook = load_workbook(path, data_only=True)
    try:
        if sheet_name not in workbook.sheetnames:
            return []
        return _rows_by_header(workbook[sheet_name], columns)
    finally:
        workbook.close()


def write_sheets(path: Path, tables: Mapping[str, Table]) -> None:
    """Rewrite the workbook at ``path`` with one sheet per entry of ``tables``."""

    workbook = Workbook()
    workbook.remove(workbook.active)
    for sheet_name, (columns, rows) in tables.items():
        worksheet = workbook.create_sheet(title=sheet_name)
        worksheet.append(list(columns))
        for row in rows:
            worksheet.append([row.get(column, "") for column in columns])
    _atomic_save(workbook, path)
