"""Configuration helpers for RecipeFlow imports.

Loads the packaged ``settings.yaml`` (or an override file) into a validated
``ImportSettings`` model so sheet roles and defaults can be changed without
touching code.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from recipeflow.core.errors import ConfigError


CONFIG_DIR = Path(__file__).resolve().parent
DEFAULT_SETTINGS_PATH = CONFIG_DIR / "settings.yaml"


class ImportSettings(BaseModel):
    """Sheet roles and defaults applied while assembling recipes."""

    model_config = ConfigDict(extra="ignore")

    toc_sheet: str = "Inhaltsverzeichnis"
    excluded_sheets: List[str] = Field(default_factory=lambda: ["Inhaltsverzeichnis", "Vorlage"])
    default_category: str = "Ohne Kategorie"
    placeholder_text: str = (
        "Dieses Rezept ist noch nicht verfügbar. Es steht im Inhaltsverzeichnis, "
        "hat aber noch kein detailliertes Sheet."
    )
    download_timeout: float = Field(default=30.0, gt=0)
    store_root: Optional[str] = None

    def is_recipe_sheet(self, sheet_name: str) -> bool:
        return sheet_name not in self.excluded_sheets


def load_settings(path: str | Path | None = None) -> ImportSettings:
    """Load import settings from YAML, defaulting to the packaged file."""

    settings_path = Path(path) if path else DEFAULT_SETTINGS_PATH
    raw = _load_yaml(settings_path)
    try:
        return ImportSettings.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings in {settings_path}: {exc}") from exc


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Settings file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        try:
            data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Settings file is not valid YAML: {path}") from exc
    if not isinstance(data, dict):
        raise ConfigError("Settings must be a mapping")
    return data


__all__ = ["ImportSettings", "load_settings", "DEFAULT_SETTINGS_PATH"]
