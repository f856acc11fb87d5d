"""Category extraction from the table-of-contents sheet."""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence, Tuple

LOGGER = logging.getLogger(__name__)

# Row 0 holds main categories, row 1 sub categories, rows 2+ recipe names.
HEADER_ROWS = 2


def _text(row: Sequence[object], col: int) -> str:
    if col >= len(row):
        return ""
    value = row[col]
    return "" if value is None else str(value).strip()


def column_categories(grid: Sequence[Sequence[object]]) -> Dict[int, str]:
    """Map column index to ``"Main - Sub"`` (or ``"Main"`` without a sub category)."""

    main_row = grid[0]
    sub_row = grid[1]
    categories: Dict[int, str] = {}
    for col in range(len(main_row)):
        main = _text(main_row, col)
        if not main:
            continue
        sub = _text(sub_row, col)
        categories[col] = f"{main} - {sub}" if sub else main
    return categories


def extract_categories(grid: Sequence[Sequence[object]] | None) -> Tuple[Dict[str, str], List[str]]:
    """Return ``(category_by_recipe, recipe_names)`` from the table of contents.

    ``recipe_names`` keeps first-seen order. Columns without a main category
    are ignored. A missing sheet or one with fewer than three rows yields empty
    results.
    """

    category_map: Dict[str, str] = {}
    names: List[str] = []
    if grid is None:
        LOGGER.warning("Table of contents sheet not found")
        return category_map, names
    if len(grid) <= HEADER_ROWS:
        LOGGER.warning("Table of contents has too few rows (%d)", len(grid))
        return category_map, names

    categories = column_categories(grid)
    for row in grid[HEADER_ROWS:]:
        for col in range(len(row)):
            name = _text(row, col)
            category = categories.get(col)
            if not name or category is None:
                continue
            category_map[name] = category
            if name not in names:
                names.append(name)

    LOGGER.info("Categories extracted: %d recipes categorized", len(category_map))
    return category_map, names


__all__ = ["extract_categories", "column_categories"]
