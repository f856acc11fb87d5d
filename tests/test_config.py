from __future__ import annotations

from pathlib import Path

import pytest

from recipeflow.config import DEFAULT_SETTINGS_PATH, ImportSettings, load_settings
from recipeflow.core.errors import ConfigError
from recipeflow.core.home import resolve_home


def test_packaged_settings_load() -> None:
    settings = load_settings()

    assert DEFAULT_SETTINGS_PATH.exists()
    assert settings.toc_sheet == "Inhaltsverzeichnis"
    assert not settings.is_recipe_sheet("Vorlage")
    assert settings.is_recipe_sheet("Brezel")
    assert settings.default_category == "Ohne Kategorie"


def test_override_file(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("excluded_sheets: [Index]\ndownload_timeout: 5\n", encoding="utf-8")

    settings = load_settings(path)

    assert settings.excluded_sheets == ["Index"]
    assert settings.download_timeout == 5
    assert settings.toc_sheet == ImportSettings().toc_sheet


@pytest.mark.parametrize(
    "content",
    ["- just\n- a list\n", "download_timeout: -1\n", "toc_sheet: [unclosed\n"],
)
def test_invalid_settings(tmp_path: Path, content: str) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_settings(path)


def test_missing_settings_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_settings(tmp_path / "missing.yaml")


def test_resolve_home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("RECIPEFLOW_HOME", str(tmp_path / "env-home"))

    assert resolve_home() == (tmp_path / "env-home").resolve()
    assert resolve_home(tmp_path / "explicit") == (tmp_path / "explicit").resolve()

    monkeypatch.delenv("RECIPEFLOW_HOME")
    assert resolve_home() == (Path.home() / "RecipeFlow").resolve()
