"""The top-level build recipe."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from bluebuild.maybe_version import MaybeVersion, parse_maybe_version
from bluebuild.module import Module, ModuleExt
from bluebuild.paths import RecipeError
from bluebuild.reference import Reference
from bluebuild.stage import Stage, StagesExt

_log = logging.getLogger(__name__)


def _lookup(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def _scalar_str(data: Mapping[str, Any], *keys: str) -> str:
    value = _lookup(data, *keys)
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise RecipeError(f"missing field `{keys[0]}`")
    return str(value)


@dataclass
class Recipe:
    """A recipe describing the image, its base image and the modules to run."""

    name: str
    description: str
    base_image: str
    image_version: str
    blue_build_tag: MaybeVersion | None = None
    alt_tags: list[str] | None = None
    nushell_version: MaybeVersion | None = None
    stages_ext: StagesExt | None = None
    modules_ext: ModuleExt = field(default_factory=ModuleExt)

    @classmethod
    def from_dict(cls, data: Any) -> Recipe:
        """Build a recipe from a parsed YAML mapping without expanding files."""
        if not isinstance(data, Mapping):
            raise RecipeError("Recipe must be a mapping")

        tag = _lookup(data, "blue_build_tag", "blue-build-tag")
        nushell = data.get("nushell-version")

        alt_tags = _lookup(data, "alt_tags", "alt-tags")
        if alt_tags is not None:
            if not isinstance(alt_tags, list):
                raise RecipeError("`alt-tags` must be a list")
            alt_tags = [str(t) for t in alt_tags]

        try:
            stages_ext: StagesExt | None = StagesExt.from_dict(data)
        except RecipeError:
            stages_ext = None

        return cls(
            name=_scalar_str(data, "name"),
            description=_scalar_str(data, "description"),
            base_image=_scalar_str(data, "base_image", "base-image"),
            image_version=_scalar_str(data, "image_version", "image-version"),
            blue_build_tag=None if tag is None else parse_maybe_version(tag),
            alt_tags=alt_tags,
            nushell_version=None if nushell is None else parse_maybe_version(nushell),
            stages_ext=stages_ext,
            modules_ext=ModuleExt.from_dict(data),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the recipe as a YAML-ready mapping."""
        data: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "base_image": self.base_image,
            "image_version": self.image_version,
        }
        if self.blue_build_tag is not None:
            data["blue_build_tag"] = str(self.blue_build_tag)
        if self.alt_tags is not None:
            data["alt_tags"] = list(self.alt_tags)
        if self.nushell_version is not None:
            data["nushell-version"] = str(self.nushell_version)
        if self.stages_ext is not None:
            data.update(self.stages_ext.to_dict())
        data.update(self.modules_ext.to_dict())
        return data

    @classmethod
    def parse(cls, path: str | Path) -> Recipe:
        """Read a recipe file and expand every `from-file` reference.

        Raises RecipeError when the file cannot be read or parsed, or a
        linked file is missing or invalid.
        """
        _log.debug("Recipe::parse(%s)", path)
        file_path = Path(path)
        if not file_path.is_absolute():
            file_path = Path.cwd() / file_path
        try:
            text = file_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise RecipeError(f"Failed to read {file_path}: {exc}") from exc
        _log.debug("Recipe contents: %s", text)
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise RecipeError(f"Failed to parse {file_path}: {exc}") from exc

        recipe = cls.from_dict(data)
        recipe.modules_ext.modules = Module.get_modules(recipe.modules_ext.modules)
        if recipe.stages_ext is not None:
            recipe.stages_ext.stages = Stage.get_stages(recipe.stages_ext.stages)
        return recipe

    def base_image_ref(self) -> Reference:
        """Return the base image with its version as a reference."""
        base_image = f"{self.base_image}:{self.image_version}"
        try:
            return Reference.parse(base_image)
        except ValueError as exc:
            raise RecipeError(f"Unable to parse base image {base_image}: {exc}") from exc

    def should_install_bluebuild(self) -> bool:
        """Return False only when the bluebuild tag is explicitly `none`."""
        return self.blue_build_tag is None or not self.blue_build_tag.is_none()

    def get_bluebuild_version(self) -> str:
        if self.blue_build_tag is None or self.blue_build_tag.is_none():
            return "latest-installer"
        return str(self.blue_build_tag)

    def get_secrets(self) -> list[Any]:
        """Return the distinct secrets of all modules, stage modules included."""
        modules = list(self.modules_ext.modules)
        if self.stages_ext is not None:
            modules.extend(
                module
                for stage in self.stages_ext.stages
                if stage.required_fields is not None
                for module in stage.required_fields.modules_ext.modules
            )
        secrets: list[Any] = []
        for module in modules:
            if module.required_fields is None:
                continue
            for secret in module.required_fields.secrets:
                if secret not in secrets:
                    secrets.append(secret)
        return secrets