"""Browse assembled recipes: lookup, search, categories and random picks."""

from __future__ import annotations

import random
from typing import Dict, Iterable, List, Optional, Sequence

from recipeflow_persist import ImageStore, RecipeStore

from .importer.models import Recipe

ALL_CATEGORIES = "Alle"


class RecipeCatalog:
    """In-memory view over a list of recipes."""

    def __init__(self, recipes: Iterable[Recipe]) -> None:
        self.recipes: List[Recipe] = list(recipes)

    @classmethod
    def from_store(cls, store: RecipeStore) -> "RecipeCatalog":
        return cls(Recipe.model_validate(item) for item in store.load_recipes())

    def __len__(self) -> int:
        return len(self.recipes)

    def by_name(self, name: str) -> Optional[Recipe]:
        for recipe in self.recipes:
            if recipe.name == name or recipe.sheet_name == name:
                return recipe
        return None

    def search(self, term: str | None) -> List[Recipe]:
        """Case-insensitive substring match on the name; blank terms match all."""

        if not term or not term.strip():
            return list(self.recipes)
        needle = term.strip().lower()
        return [recipe for recipe in self.recipes if needle in recipe.name.lower()]

    def filter_by_category(self, category: str | None) -> List[Recipe]:
        if not category or category == ALL_CATEGORIES:
            return list(self.recipes)
        return [recipe for recipe in self.recipes if recipe.category == category]

    def categories(self) -> List[str]:
        return sorted({recipe.category for recipe in self.recipes if recipe.category})

    def random_recipe(
        self, pool: Sequence[Recipe] | None = None, rng: random.Random | None = None
    ) -> Optional[Recipe]:
        candidates = self.recipes if pool is None else pool
        if not candidates:
            return None
        return (rng or random).choice(list(candidates))

    def random_recipes(self, count: int, rng: random.Random | None = None) -> List[Recipe]:
        """Up to ``count`` distinct recipes in random order."""

        shuffled = list(self.recipes)
        (rng or random).shuffle(shuffled)
        return shuffled[: max(count, 0)]


def collect_stats(recipe_store: RecipeStore, image_store: ImageStore) -> Dict[str, object]:
    """Stored recipe count, recipes with images and the last save time."""

    recipes = recipe_store.load_recipes()
    with_images = image_store.count()
    return {
        "total": len(recipes),
        "with_images": with_images,
        "placeholders": sum(1 for item in recipes if item.get("is_placeholder")),
        "timestamp": recipe_store.timestamp(),
        "has_images": with_images > 0,
    }


__all__ = ["ALL_CATEGORIES", "RecipeCatalog", "collect_stats"]
