"""Parse servings, dates, ingredients, notes and steps out of a recipe sheet."""

from __future__ import annotations

import math
from typing import List, Optional, Sequence, Union

from .models import CellNumber, Ingredient, InstructionStep, RecipeDetails

Row = Sequence[object]

SERVINGS_LABEL = "Anzahl Personen"
CREATED_LABEL = "Erstelldatum"
MODIFIED_LABEL = "Geändert am"
INGREDIENT_HEADER = ("Menge", "Produkt")
INSTRUCTION_HEADERS = ("Zubereitung", "Anleitung")
INGREDIENTS_END = "Zubereitung"
COSTS_LABEL = "Total Warenkosten"

# Column layout of the recipe template (0-based).
COL_A, COL_B, COL_C, COL_D, COL_E, COL_G = 0, 1, 2, 3, 4, 6


def _cell(row: Row, col: int) -> object:
    if col >= len(row):
        return ""
    value = row[col]
    return "" if value is None else value


def _blank(value: object) -> bool:
    return value == "" or value is None or (isinstance(value, str) and not value.strip())


def _truthy(value: object) -> bool:
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


def _contains(value: object, label: str) -> bool:
    return _truthy(value) and label in str(value)


def _number(value: object) -> Optional[CellNumber]:
    """Return ``value`` as a number when it reads as one, else None."""

    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number: float = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return int(number) if number.is_integer() else number


def _optional_text(value: object) -> Optional[str]:
    if _blank(value):
        return None
    return str(value)


def _servings(row: Row) -> Optional[Union[CellNumber, str]]:
    for col in (COL_D, COL_B):
        value = _cell(row, col)
        if _truthy(value):
            return value.strip() if isinstance(value, str) else value  # type: ignore[return-value]
    return None


def _ingredients(grid: Sequence[Row], start: int) -> List[Ingredient]:
    items: List[Ingredient] = []
    for row in grid[start:]:
        if _cell(row, COL_A) == INGREDIENTS_END or _cell(row, COL_E) == COSTS_LABEL:
            break
        product = _cell(row, COL_D)
        if not _truthy(product):
            continue
        amount = _cell(row, COL_A)
        items.append(
            Ingredient(
                amount=amount if isinstance(amount, (int, float)) and not isinstance(amount, bool) else str(amount),
                unit=str(_cell(row, COL_C)),
                product=str(product),
                note=str(_cell(row, COL_E)),
            )
        )
    return items


def _notes(grid: Sequence[Row], start: int) -> List[str]:
    notes: List[str] = []
    for row in grid[start:]:
        text = _cell(row, COL_A)
        if _blank(text):
            if all(_blank(cell) for cell in row):
                break
            continue
        notes.append(str(text).strip())
    return notes


def _instructions(grid: Sequence[Row], start: int) -> List[InstructionStep]:
    steps: List[InstructionStep] = []
    for row in grid[start:]:
        raw_step = _cell(row, COL_A)
        text = _cell(row, COL_B)
        number = _number(raw_step) if _truthy(raw_step) else None
        if number is not None and _truthy(text):
            steps.append(InstructionStep(step=number, text=str(text)))
        elif not _truthy(raw_step) and not _truthy(text):
            break
    return steps


def extract_recipe_details(grid: Sequence[Row] | None) -> RecipeDetails:
    """Scan a recipe sheet top to bottom and collect its details.

    Labels are matched in fixed template columns. Ingredient and instruction
    blocks are read whenever their header is met; the notes block is always
    the last thing read from a sheet.
    """

    details = RecipeDetails()
    if not grid:
        return details

    for index, row in enumerate(grid):
        first = _cell(row, COL_A)
        fourth = _cell(row, COL_D)

        if _contains(first, SERVINGS_LABEL):
            details.servings = _servings(row)
        if _contains(fourth, CREATED_LABEL):
            details.created_date = _optional_text(_cell(row, COL_G))
        if _contains(fourth, MODIFIED_LABEL):
            details.modified_date = _optional_text(_cell(row, COL_G))

        if (first, fourth) == INGREDIENT_HEADER:
            details.ingredients.extend(_ingredients(grid, index + 1))

        if _contains(first, "Bemerkung") and _contains(first, "Notiz"):
            details.notes.extend(_notes(grid, index + 1))
            break

        if first in INSTRUCTION_HEADERS:
            details.instructions.extend(_instructions(grid, index + 1))

    return details


__all__ = ["extract_recipe_details"]
