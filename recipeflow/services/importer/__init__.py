"""Recipe importer service package."""

from .api import (
    ImportResult,
    ProgressCallback,
    download_workbook,
    import_from_url,
    import_workbook,
)
from .assembler import assemble_recipes, german_sort_key
from .categories import extract_categories
from .details import extract_recipe_details
from .models import ImportProgress, Ingredient, InstructionStep, Recipe, RecipeDetails
from .report import generate_report

__all__ = [
    "ImportProgress",
    "ImportResult",
    "Ingredient",
    "InstructionStep",
    "ProgressCallback",
    "Recipe",
    "RecipeDetails",
    "assemble_recipes",
    "download_workbook",
    "extract_categories",
    "extract_recipe_details",
    "generate_report",
    "german_sort_key",
    "import_from_url",
    "import_workbook",
]
