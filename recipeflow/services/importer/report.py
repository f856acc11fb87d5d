"""Reporting utilities for the recipe importer."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .api import ImportResult

REPORT_FILE = "import_report.md"


def generate_report(output_dir: Path, result: "ImportResult") -> Path:
    """Write a Markdown summary of ``result`` into ``output_dir``."""

    output_dir.mkdir(parents=True, exist_ok=True)
    report_path = output_dir / REPORT_FILE

    lines = ["# Recipe Import Report", ""]
    lines.append(f"- Source: {result.source}")
    lines.append(f"- Recipes: {result.recipe_count}")
    lines.append(f"- Placeholders: {result.placeholder_count}")
    if result.images_enabled:
        lines.append(f"- Images: {result.summary()} ({result.images_saved} image files)")
    else:
        lines.append("- Images: extraction disabled")
    lines.append("")

    if result.image_failure:
        lines.append("## Image extraction failed")
        lines.append(f"- {result.image_failure}")
        lines.append("")

    if result.skipped_sheets:
        lines.append("## Sheets without images")
        for sheet, reason in result.skipped_sheets.items():
            lines.append(f"- **{sheet}**: {reason}")
        lines.append("")

    if result.missing_images:
        lines.append("## Missing media")
        lines.extend(f"- {path}" for path in result.missing_images)
        lines.append("")

    if result.store_errors:
        lines.append("## Store errors")
        for sheet, message in result.store_errors.items():
            lines.append(f"- **{sheet}**: {message}")
        lines.append("")

    if result.warnings:
        lines.append("## Warnings")
        lines.extend(f"- {warning}" for warning in result.warnings)
        lines.append("")

    placeholders = [recipe.name for recipe in result.recipes if recipe.is_placeholder]
    if placeholders:
        lines.append("## Recipes without a sheet")
        lines.extend(f"- {name}" for name in placeholders)
        lines.append("")

    report_path.write_text("\n".join(lines), encoding="utf-8")
    return report_path


__all__ = ["generate_report", "REPORT_FILE"]
