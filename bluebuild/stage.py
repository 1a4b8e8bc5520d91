"""Recipe stages and stage lists."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar

import yaml

from bluebuild.module import Module, ModuleExt
from bluebuild.paths import FromFileList, RecipeError, base_recipe_path


def _dump(data: Any) -> str:
    return yaml.safe_dump(data, sort_keys=False).rstrip("\n")


@dataclass
class StageRequiredFields:
    """The fields of a stage that is defined inline."""

    name: str
    from_: str
    shell: list[str] | None = None
    modules_ext: ModuleExt = field(default_factory=ModuleExt)

    @classmethod
    def from_dict(cls, data: Any) -> StageRequiredFields:
        """Build the fields from a parsed YAML mapping."""
        if not isinstance(data, Mapping):
            raise RecipeError("Stage must be a mapping")
        name = data.get("name")
        if not isinstance(name, str):
            raise RecipeError("Stage is missing a string `name` field")
        from_ = data.get("from")
        if not isinstance(from_, str):
            raise RecipeError("Stage is missing a string `from` field")
        shell = data.get("shell")
        if shell is not None:
            if not isinstance(shell, list) or not all(isinstance(s, str) for s in shell):
                raise RecipeError("Stage `shell` must be a list of strings")
            shell = list(shell)
        return cls(
            name=name,
            from_=from_,
            shell=shell,
            modules_ext=ModuleExt.from_dict(data),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the fields as a YAML-ready mapping."""
        data: dict[str, Any] = {"name": self.name, "from": self.from_}
        if self.shell is not None:
            data["shell"] = list(self.shell)
        data.update(self.modules_ext.to_dict())
        return data


@dataclass
class Stage:
    """A stage entry: either defined inline or pulled in with `from-file`."""

    required_fields: StageRequiredFields | None = None
    from_file: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> Stage:
        """Build a stage from a parsed YAML mapping."""
        if not isinstance(data, Mapping):
            raise RecipeError("Stage must be a mapping")
        from_file = data.get("from-file")
        if from_file is not None and not isinstance(from_file, str):
            raise RecipeError("Stage `from-file` must be a string")
        rest = {k: v for k, v in data.items() if k != "from-file"}
        try:
            required_fields: StageRequiredFields | None = StageRequiredFields.from_dict(rest)
        except RecipeError:
            required_fields = None
        return cls(required_fields=required_fields, from_file=from_file)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.required_fields is not None:
            data.update(self.required_fields.to_dict())
        if self.from_file is not None:
            data["from-file"] = self.from_file
        return data

    @classmethod
    def get_stages(
        cls, stages: Sequence[Stage], traversed_files: Sequence[Path] | None = None
    ) -> list[Stage]:
        """Expand `from-file` references into the stages they contain.

        Raises RecipeError on circular references, unreadable files, or
        stages that mix `from-file` with other properties.
        """
        traversed = list(traversed_files or [])
        found: list[Stage] = []
        for stage in stages:
            if stage.required_fields is not None and stage.from_file is None:
                found.append(stage)
            elif stage.required_fields is None and stage.from_file is not None:
                file_name = Path(stage.from_file)
                if file_name in traversed:
                    raise RecipeError(
                        f"Circular dependency detected! File {file_name} has already "
                        f"been parsed:\n{[str(p) for p in traversed]}"
                    )
                children = StagesExt.from_file(file_name).stages
                found.extend(cls.get_stages(children, [*traversed, file_name]))
            else:
                from_example = cls(from_file="path/to/stage.yml")
                raise RecipeError(
                    "Improper format for stage. Must be in the format like:\n"
                    f"{_dump(cls.example().to_dict())}\nor\n\n"
                    f"{_dump(from_example.to_dict())}"
                )
        return found

    def get_from_file_path(self) -> Path | None:
        if self.from_file is None:
            return None
        return base_recipe_path() / self.from_file

    @classmethod
    def example(cls) -> Stage:
        """Return a sample inline stage."""
        return cls(
            required_fields=StageRequiredFields(
                name="stage-name",
                from_="build/image:here",
                modules_ext=ModuleExt(modules=[Module.example()]),
            )
        )


@dataclass
class StagesExt(FromFileList):
    """A list of stages."""

    LIST_KEY: ClassVar[str] = "stages"

    stages: list[Stage] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> StagesExt:
        if not isinstance(data, Mapping) or "stages" not in data:
            raise RecipeError("missing field `stages`")
        stages = data["stages"]
        if not isinstance(stages, list):
            raise RecipeError("`stages` must be a list")
        return cls(stages=[Stage.from_dict(s) for s in stages])

    def to_dict(self) -> dict[str, Any]:
        return {"stages": [s.to_dict() for s in self.stages]}

    @classmethod
    def from_file(cls, file_name: str | Path) -> StagesExt:
        """Read a stage file holding either a stage list or a single stage.

        Module `from-file` references inside each stage are expanded.
        """
        file_path = base_recipe_path() / file_name
        try:
            text = file_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise RecipeError(f"Failed to open {file_path}: {exc}") from exc
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise RecipeError(f"Failed to parse {file_path}: {exc}") from exc
        try:
            ext = cls.from_dict(data)
        except RecipeError:
            ext = cls(stages=[Stage.from_dict(data)])
        for stage in ext.stages:
            fields = stage.required_fields
            if fields is not None:
                fields.modules_ext.modules = Module.get_modules(fields.modules_ext.modules)
        return ext

    def get_from_file_paths(self) -> list[Path]:
        return [p for p in (s.get_from_file_path() for s in self.stages) if p is not None]

    def get_module_from_file_paths(self) -> list[Path]:
        return [
            path
            for stage in self.stages
            if stage.required_fields is not None
            for path in stage.required_fields.modules_ext.get_from_file_paths()
        ]