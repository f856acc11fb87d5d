"""Location of the writable RecipeFlow home directory.

``RECIPEFLOW_HOME`` (environment or ``.env``) overrides the default
``~/RecipeFlow``; an explicit root passed by the caller wins over both.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

HOME_ENV_VAR = "RECIPEFLOW_HOME"

load_dotenv(override=False)


def resolve_home(root: str | os.PathLike[str] | None = None) -> Path:
    """Return the RecipeFlow home directory (not created)."""

    if root is not None:
        base = Path(root)
    else:
        env = os.getenv(HOME_ENV_VAR)
        base = Path(env) if env else Path.home() / "RecipeFlow"
    return base.expanduser().resolve()
