from __future__ import annotations

import random
from pathlib import Path

from recipeflow.services.catalog import RecipeCatalog, collect_stats
from recipeflow.services.importer import Recipe
from recipeflow_persist import ImageStore, RecipeStore


def _catalog() -> RecipeCatalog:
    return RecipeCatalog(
        [
            Recipe(id=0, name="Apfelstrudel", sheet_name="Apfelstrudel", category="Nachtisch"),
            Recipe(id=1, name="Brezel", sheet_name="Brezel", category="Snacks - Salzig", has_image=True, image_count=1),
            Recipe(id=5, name="Zimtschnecken", category="Nachtisch", is_placeholder=True),
        ]
    )


def test_lookup_and_search() -> None:
    catalog = _catalog()

    assert catalog.by_name("Brezel").id == 1
    assert catalog.by_name("Unbekannt") is None
    assert [recipe.name for recipe in catalog.search("  STRUDEL ")] == ["Apfelstrudel"]
    assert len(catalog.search("")) == 3
    assert len(catalog.search(None)) == 3


def test_categories_and_filter() -> None:
    catalog = _catalog()

    assert catalog.categories() == ["Nachtisch", "Snacks - Salzig"]
    assert [recipe.name for recipe in catalog.filter_by_category("Nachtisch")] == ["Apfelstrudel", "Zimtschnecken"]
    assert len(catalog.filter_by_category("Alle")) == 3
    assert len(catalog.filter_by_category(None)) == 3


def test_random_picks() -> None:
    catalog = _catalog()
    rng = random.Random(7)

    assert catalog.random_recipe(rng=rng) in catalog.recipes
    assert catalog.random_recipe(pool=[]) is None
    picks = catalog.random_recipes(2, rng=rng)
    assert len(picks) == 2 and len({recipe.name for recipe in picks}) == 2
    assert sorted(recipe.name for recipe in catalog.random_recipes(10, rng=rng)) == [
        "Apfelstrudel",
        "Brezel",
        "Zimtschnecken",
    ]
    assert RecipeCatalog([]).random_recipe() is None


def test_catalog_from_store_and_stats(store_root: Path) -> None:
    recipe_store = RecipeStore(store_root)
    recipe_store.save_recipes(recipe.model_dump() for recipe in _catalog().recipes)

    catalog = RecipeCatalog.from_store(recipe_store)
    stats = collect_stats(recipe_store, ImageStore(store_root))

    assert len(catalog) == 3
    assert catalog.by_name("Brezel").has_image is True
    assert stats["total"] == 3
    assert stats["placeholders"] == 1
    assert stats["with_images"] == 0
    assert stats["timestamp"] == recipe_store.timestamp()
