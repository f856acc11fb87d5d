"""RecipeFlow: import recipe workbooks and their pictures for offline browsing."""

__version__ = "0.1.0"
