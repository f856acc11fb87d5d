"""
RESPONSIBILITIES
- Define the row written per recipe by the recipe store.
PROCESS OVERVIEW
1. Callers hand over JSON-ready recipe dictionaries.
2. RecipeRow keeps a few indexed columns plus the full payload as JSON text.
3. payload_dict() restores the original dictionary on load.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Mapping, MutableMapping


@dataclass(slots=True)
class RecipeRow:
    name: str
    category: str
    is_placeholder: bool
    has_image: bool
    image_count: int
    payload: str
    saved_at: str = ""

    @classmethod
    def from_recipe(cls, recipe: Mapping[str, object], *, saved_at: str) -> "RecipeRow":
        return cls(
            name=str(recipe.get("name", "")),
            category=str(recipe.get("category") or ""),
            is_placeholder=bool(recipe.get("is_placeholder", False)),
            has_image=bool(recipe.get("has_image", False)),
            image_count=int(recipe.get("image_count") or 0),
            payload=json.dumps(dict(recipe), ensure_ascii=False, sort_keys=True, default=str),
            saved_at=saved_at,
        )

    def to_dict(self) -> MutableMapping[str, object]:
        return {
            "name": self.name,
            "category": self.category,
            "is_placeholder": "yes" if self.is_placeholder else "no",
            "has_image": "yes" if self.has_image else "no",
            "image_count": self.image_count,
            "payload": self.payload,
            "saved_at": self.saved_at,
        }

    def payload_dict(self) -> dict:
        loaded = json.loads(self.payload) if self.payload else {}
        return loaded if isinstance(loaded, dict) else {}
