"""
Persistence facade exposing the offline image and recipe stores.
"""

from .stores.base_store import (
    PersistHealth,
    StoreError,
    StoreInitializationError,
    StoreLockedError,
    StoreValidationError,
)
from .schemas.imagerec import ImageBlob, ImageIndexRecord
from .stores.image_store import ImageStore, init_image_store
from .stores.recipe_store import RecipeStore, init_recipe_store

__all__ = [
    "ImageStore",
    "RecipeStore",
    "ImageBlob",
    "ImageIndexRecord",
    "PersistHealth",
    "StoreError",
    "StoreInitializationError",
    "StoreLockedError",
    "StoreValidationError",
    "init_image_store",
    "init_recipe_store",
]
