"""Unit tests for the store workbook helpers."""

from __future__ import annotations

import os
import time
from pathlib import Path

import pytest
from openpyxl import Workbook, load_workbook

from recipeflow_persist import StoreInitializationError, StoreLockedError
from recipeflow_persist.utils import excel_io
from recipeflow_persist.utils.excel_io import ensure_workbook, read_rows, store_lock, write_sheets


def test_ensure_workbook_realigns_drifted_header(tmp_path: Path) -> None:
    path = tmp_path / "index.xlsx"
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "recipes"
    sheet.append(["category", "name"])
    sheet.append(["Nachtisch", "Kuchen"])
    workbook.save(path)

    ensure_workbook(path, {"recipes": ("name", "category", "saved_at"), "meta": ("key", "value")})

    reloaded = load_workbook(path)
    assert reloaded.sheetnames == ["recipes", "meta"]
    assert [cell.value for cell in reloaded["recipes"][1]] == ["name", "category", "saved_at"]
    assert read_rows(path, "recipes", ("name", "category", "saved_at")) == [
        {"name": "Kuchen", "category": "Nachtisch", "saved_at": ""}
    ]


def test_ensure_workbook_rejects_corrupt_file(tmp_path: Path) -> None:
    path = tmp_path / "index.xlsx"
    path.write_bytes(b"not a workbook")

    with pytest.raises(StoreInitializationError):
        ensure_workbook(path, {"recipes": ("name",)})


def test_write_sheets_skips_blank_rows_on_read(tmp_path: Path) -> None:
    path = tmp_path / "index.xlsx"
    write_sheets(path, {"recipes": (("name",), [{"name": "Brot"}, {"name": ""}, {"name": "Suppe"}])})

    assert read_rows(path, "recipes", ("name",)) == [{"name": "Brot"}, {"name": "Suppe"}]
    assert read_rows(path, "missing", ("name",)) == []
    assert not path.with_name("index.xlsx.tmp").exists()


def test_lock_file_blocks_and_stale_lock_is_reclaimed(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "index.xlsx"
    lock_path = path.with_name("index.xlsx.lock")
    lock_path.write_text("4242", encoding="utf-8")

    with pytest.raises(StoreLockedError):
        with store_lock(path, timeout=0.1):
            pass

    stale = time.time() - excel_io.STALE_LOCK_SECONDS - 5
    os.utime(lock_path, (stale, stale))
    with store_lock(path, timeout=0.1):
        assert lock_path.exists()
    assert not lock_path.exists()
