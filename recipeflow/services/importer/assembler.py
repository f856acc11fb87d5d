"""Assemble recipes from worksheet grids."""

from __future__ import annotations

import logging
import unicodedata
from typing import Dict, List, Mapping, Sequence, Tuple

from recipeflow.config import ImportSettings

from .categories import extract_categories
from .details import extract_recipe_details
from .models import InstructionStep, Recipe

LOGGER = logging.getLogger(__name__)

_GERMAN_FOLDS = {"ß": "ss", "ẞ": "ss"}


def german_sort_key(name: str) -> Tuple[str, str, str]:
    """Dictionary-order key for German text: umlauts sort with their base letter."""

    folded = "".join(_GERMAN_FOLDS.get(char, char) for char in name)
    decomposed = unicodedata.normalize("NFD", folded)
    base = "".join(char for char in decomposed if not unicodedata.combining(char))
    return base.casefold(), decomposed.casefold(), name


def sort_recipes(recipes: Sequence[Recipe]) -> List[Recipe]:
    return sorted(recipes, key=lambda recipe: german_sort_key(recipe.name))


def placeholder_recipe(recipe_id: int, name: str, category: str, settings: ImportSettings) -> Recipe:
    """Recipe listed in the table of contents that has no sheet of its own."""

    return Recipe(
        id=recipe_id,
        name=name,
        sheet_name=None,
        category=category,
        is_placeholder=True,
        servings=None,
        instructions=[InstructionStep(step=1, text=settings.placeholder_text)],
    )


def assemble_recipes(
    grids: Mapping[str, Sequence[Sequence[object]]],
    settings: ImportSettings | None = None,
) -> List[Recipe]:
    """Build one recipe per recipe sheet plus placeholders, sorted by name.

    ``grids`` must keep workbook sheet order; a sheet's position becomes its
    recipe id. Placeholders are numbered after the last sheet position.
    """

    settings = settings or ImportSettings()
    category_map, toc_names = extract_categories(grids.get(settings.toc_sheet))

    recipes: List[Recipe] = []
    existing: Dict[str, Recipe] = {}
    for index, (sheet_name, grid) in enumerate(grids.items()):
        if not settings.is_recipe_sheet(sheet_name):
            continue
        details = extract_recipe_details(grid)
        recipe = Recipe(
            id=index,
            name=sheet_name,
            sheet_name=sheet_name,
            category=category_map.get(sheet_name, settings.default_category),
            **details.model_dump(),
        )
        recipes.append(recipe)
        existing[sheet_name] = recipe

    next_id = len(grids)
    for name in toc_names:
        if name in existing:
            continue
        recipes.append(
            placeholder_recipe(next_id, name, category_map.get(name, settings.default_category), settings)
        )
        LOGGER.info("Placeholder created for %s", name)
        next_id += 1

    LOGGER.info(
        "Recipes assembled: %d from sheets, %d placeholders",
        len(existing),
        len(recipes) - len(existing),
    )
    return sort_recipes(recipes)


__all__ = ["assemble_recipes", "german_sort_key", "placeholder_recipe", "sort_recipes"]
