"""Recipe file locations and shared recipe abstractions."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import ClassVar

CONFIG_PATH = "./config"
RECIPE_PATH = "./recipes"

_log = logging.getLogger(__name__)


class RecipeError(Exception):
    """Raised when a recipe or one of the files it links to is invalid."""


class FromFileList(ABC):
    """A recipe section whose entries may be pulled in from other files."""

    LIST_KEY: ClassVar[str]

    @abstractmethod
    def get_from_file_paths(self) -> list[Path]:
        """Return the paths of every file referenced with `from-file`."""

    def get_module_from_file_paths(self) -> list[Path]:
        """Return the paths of module files referenced by nested entries."""
        return []


def base_recipe_path() -> Path:
    """Return the directory that holds recipe files.

    Falls back to the legacy config directory when the recipes
    directory does not exist.
    """
    recipe_path = Path(RECIPE_PATH)
    if recipe_path.is_dir():
        return recipe_path
    _log.warning(
        "Use of %s for recipes is deprecated, please move your recipe files into %s",
        CONFIG_PATH,
        RECIPE_PATH,
    )
    return Path(CONFIG_PATH)