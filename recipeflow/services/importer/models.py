"""Data models used by the recipe importer service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

CellNumber = Union[int, float]


class Ingredient(BaseModel):
    """One ingredient line below the ``Menge``/``Produkt`` header."""

    amount: Union[CellNumber, str] = ""
    unit: str = ""
    product: str
    note: str = ""


class InstructionStep(BaseModel):
    """Numbered preparation step."""

    step: CellNumber
    text: str


class RecipeDetails(BaseModel):
    """Fields parsed from a single recipe sheet."""

    servings: Optional[Union[CellNumber, str]] = None
    ingredients: List[Ingredient] = Field(default_factory=list)
    instructions: List[InstructionStep] = Field(default_factory=list)
    notes: List[str] = Field(default_factory=list)
    created_date: Optional[str] = None
    modified_date: Optional[str] = None


class Recipe(RecipeDetails):
    """Assembled recipe as shown to users and persisted offline."""

    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    sheet_name: Optional[str] = None
    category: str
    is_placeholder: bool = False
    has_image: bool = False
    image_count: int = 0


@dataclass(slots=True)
class ImportProgress:
    """Progress notification passed to import callbacks."""

    phase: str
    progress: int
    message: str


__all__ = ["Ingredient", "InstructionStep", "RecipeDetails", "Recipe", "ImportProgress"]
