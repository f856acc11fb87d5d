"""Cell grid reader: worksheets as row-major lists of plain values."""

# Module responsibilities:
# - Load every worksheet of a workbook with openpyxl in read-only mode.
# - Normalize empty cells to '' and date/time values to ISO strings.

from __future__ import annotations

import io
import zipfile
from datetime import date, datetime, time
from pathlib import Path
from typing import Dict, List, Union

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from .errors import WorkbookReadError
from .utils.log import get_logger

logger = get_logger("grid")

Grid = List[List[object]]
WorkbookSource = Union[bytes, str, Path]


def _normalize(value: object) -> object:
    if value is None:
        return ""
    if isinstance(value, datetime):
        if value.time() == time.min:
            return value.date().isoformat()
        return value.replace(microsecond=0).isoformat()
    if isinstance(value, (date, time)):
        return value.isoformat()
    return value


def read_grids(source: WorkbookSource) -> Dict[str, Grid]:
    """Return ``sheet name -> rows`` for every worksheet, in workbook order.

    Raises:
        FileNotFoundError: When ``source`` is a path that does not exist.
        WorkbookReadError: When the workbook cannot be parsed.
    """

    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"Source workbook not found: {path}")
        handle: object = str(path)
        label = str(path)
    else:
        handle = io.BytesIO(source)
        label = "<bytes>"

    logger.info("Reading workbook cells", extra={"source": label})
    try:
        workbook = load_workbook(handle, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as exc:
        raise WorkbookReadError(f"Failed to read workbook {label}: {exc}") from exc

    grids: Dict[str, Grid] = {}
    try:
        for worksheet in workbook.worksheets:
            rows: Grid = []
            for row in worksheet.iter_rows(values_only=True):
                rows.append([_normalize(value) for value in row])
            grids[worksheet.title] = rows
    finally:
        workbook.close()

    logger.info("Workbook cells loaded", extra={"sheets": list(grids)})
    return grids
