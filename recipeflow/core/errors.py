"""Custom exceptions used across RecipeFlow."""


class RecipeFlowError(Exception):
    """Base error for the application."""


class ConfigError(RecipeFlowError):
    """Configuration related error."""


class ImportFailedError(RecipeFlowError):
    """Raised when a recipe workbook cannot be imported at all."""


class DownloadError(ImportFailedError):
    """Raised when a workbook cannot be fetched from a URL."""
