"""Service layer: workbook import and recipe browsing."""
