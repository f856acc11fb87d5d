"""Typer based command line entry points for RecipeFlow."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, Tuple

import typer

from recipeflow.config import ImportSettings, load_settings
from recipeflow.core.errors import ConfigError, ImportFailedError
from recipeflow.core.logger import get_logger
from recipeflow.services.catalog import ALL_CATEGORIES, RecipeCatalog, collect_stats
from recipeflow.services.importer import (
    ImportProgress,
    Recipe,
    generate_report,
    import_from_url,
    import_workbook,
)
from recipeflow_io import PackageError, PackageReader, build_mapping_report
from recipeflow_persist import ImageStore, RecipeStore, StoreError

URL_PREFIXES = ("http://", "https://")

app = typer.Typer(help="Import recipe workbooks and browse the offline recipe store.")


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        help="Set global logging level (e.g. DEBUG/INFO/WARNING).",
    ),
) -> None:
    """Configure global CLI behaviour before executing commands."""

    logger = get_logger()
    level_value = getattr(logging, log_level.upper(), None)
    if not isinstance(level_value, int):
        raise typer.BadParameter(f"Unknown log level: {log_level}")
    logger.setLevel(level_value)


def _settings(path: Optional[Path] = None) -> ImportSettings:
    try:
        return load_settings(path)
    except ConfigError as exc:
        typer.secho(f"Unable to load settings: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=2) from exc


def _stores(root: Optional[Path], settings: ImportSettings) -> Tuple[ImageStore, RecipeStore]:
    base = root or (Path(settings.store_root) if settings.store_root else None)
    return ImageStore(base), RecipeStore(base)


def _catalog(root: Optional[Path]) -> RecipeCatalog:
    _, recipe_store = _stores(root, _settings())
    return RecipeCatalog.from_store(recipe_store)


def _progress(event: ImportProgress) -> None:
    typer.secho(f"[{event.phase:>8}] {event.progress:3d}% {event.message}", err=True)


def _recipe_line(recipe: Recipe) -> str:
    flags = []
    if recipe.is_placeholder:
        flags.append("placeholder")
    if recipe.has_image:
        flags.append(f"{recipe.image_count} image(s)")
    suffix = f" ({', '.join(flags)})" if flags else ""
    return f"{recipe.name} [{recipe.category}]{suffix}"


RootOption = typer.Option(None, "--root", help="Store root directory (default: RECIPEFLOW_HOME or ~/RecipeFlow).")


@app.command("import")
def import_command(
    source: str = typer.Argument(..., help="Path or http(s) URL of the recipe workbook."),
    root: Optional[Path] = RootOption,
    report_dir: Optional[Path] = typer.Option(None, "--report-dir", help="Write import_report.md into this directory."),
    images: bool = typer.Option(True, "--images/--no-images", help="Extract embedded images into the image store."),
    settings_file: Optional[Path] = typer.Option(None, "--settings", help="Override settings YAML file."),
    progress: bool = typer.Option(False, "--progress/--no-progress", help="Display import progress."),
) -> None:
    """Import recipes (and their images) from a workbook."""

    settings = _settings(settings_file)
    image_store, recipe_store = _stores(root, settings)
    callback = _progress if progress else None
    try:
        if source.lower().startswith(URL_PREFIXES):
            result = import_from_url(
                source,
                image_store=image_store,
                recipe_store=recipe_store,
                settings=settings,
                progress=callback,
                include_images=images,
            )
        else:
            result = import_workbook(
                Path(source).expanduser(),
                image_store=image_store,
                recipe_store=recipe_store,
                settings=settings,
                progress=callback,
                include_images=images,
            )
    except (ImportFailedError, StoreError) as exc:
        typer.secho(f"Import failed: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc

    typer.echo(f"Imported {result.recipe_count} recipes ({result.placeholder_count} placeholders)")
    if images:
        typer.echo(result.summary())
    if result.image_failure:
        typer.secho(f"Image extraction failed: {result.image_failure}", fg=typer.colors.YELLOW)
    if report_dir is not None:
        report_path = generate_report(report_dir, result)
        typer.echo(f"Report written to {report_path}")


@app.command("mapping")
def mapping_command(
    workbook: Path = typer.Argument(..., help="Workbook (.xlsx) to inspect."),
) -> None:
    """Print the sheet image mapping and per-sheet outcomes as JSON."""

    try:
        package = PackageReader.from_path(workbook)
    except (PackageError, OSError) as exc:
        typer.secho(f"Unable to open workbook: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc
    with package:
        report = build_mapping_report(package)
    typer.echo(json.dumps(report.to_dict(), ensure_ascii=False, indent=2))
    if not report.ok:
        raise typer.Exit(code=1)


@app.command("list")
def list_command(
    search: Optional[str] = typer.Option(None, "--search", help="Case-insensitive name filter."),
    category: Optional[str] = typer.Option(None, "--category", help=f"Category name or '{ALL_CATEGORIES}'."),
    root: Optional[Path] = RootOption,
) -> None:
    """List stored recipes."""

    catalog = _catalog(root)
    matches = {id(recipe) for recipe in catalog.filter_by_category(category)}
    recipes = [recipe for recipe in catalog.search(search) if id(recipe) in matches]
    if not recipes:
        typer.echo("No recipes found.")
        return
    for recipe in recipes:
        typer.echo(_recipe_line(recipe))


@app.command("categories")
def categories_command(root: Optional[Path] = RootOption) -> None:
    """List the categories of stored recipes."""

    for category in _catalog(root).categories():
        typer.echo(category)


@app.command("random")
def random_command(
    count: int = typer.Option(1, "--count", min=1, help="Number of recipes to suggest."),
    root: Optional[Path] = RootOption,
) -> None:
    """Suggest random recipes."""

    picks = _catalog(root).random_recipes(count)
    if not picks:
        typer.echo("No recipes stored.")
        return
    for recipe in picks:
        typer.echo(_recipe_line(recipe))


@app.command("stats")
def stats_command(root: Optional[Path] = RootOption) -> None:
    """Show store statistics as JSON."""

    image_store, recipe_store = _stores(root, _settings())
    typer.echo(json.dumps(collect_stats(recipe_store, image_store), ensure_ascii=False, indent=2))


@app.command("clear")
def clear_command(
    root: Optional[Path] = RootOption,
    yes: bool = typer.Option(False, "--yes", help="Skip the confirmation prompt."),
) -> None:
    """Delete all stored recipes and images."""

    if not yes:
        typer.confirm("Delete all stored recipes and images?", abort=True)
    image_store, recipe_store = _stores(root, _settings())
    recipe_store.clear()
    image_store.clear_all()
    typer.echo("Store cleared.")


@app.command("health")
def health_command(root: Optional[Path] = RootOption) -> None:
    """Check that both stores are usable."""

    image_store, recipe_store = _stores(root, _settings())
    report = {
        "image_store": image_store.healthcheck().to_dict(),
        "recipe_store": recipe_store.healthcheck().to_dict(),
    }
    typer.echo(json.dumps(report, ensure_ascii=False, indent=2))
    if not all(store["healthy"] for store in report.values()):
        raise typer.Exit(code=1)


if __name__ == "__main__":  # pragma: no cover
    app()
