"""Recipe modules and module lists."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar

import yaml

from bluebuild.akmods import AkmodsInfo
from bluebuild.paths import FromFileList, RecipeError, base_recipe_path
from bluebuild.type_version import ModuleTypeVersion, parse_type_version

BLUE_BUILD_MODULE_IMAGE_REF = "ghcr.io/blue-build/modules"

_log = logging.getLogger(__name__)

_KNOWN_KEYS = ("type", "source", "no-cache", "env", "secrets")


class _Nvidia(Enum):
    DISABLED = "disabled"
    ENABLED = "enabled"
    OPEN = "open"
    PROPRIETARY = "proprietary"


def _nvidia_setting(value: Any) -> _Nvidia:
    # The driver choice is read from the nested `nvidia` key of the setting.
    inner = value.get("nvidia") if isinstance(value, Mapping) else None
    if isinstance(inner, bool):
        return _Nvidia.ENABLED if inner else _Nvidia.DISABLED
    if isinstance(inner, str):
        return {"open": _Nvidia.OPEN, "proprietary": _Nvidia.PROPRIETARY}.get(
            inner, _Nvidia.DISABLED
        )
    return _Nvidia.DISABLED


def _dump(data: Any) -> str:
    return yaml.safe_dump(data, sort_keys=False).rstrip("\n")


@dataclass
class ModuleRequiredFields:
    """The fields of a module that is defined inline."""

    module_type: ModuleTypeVersion
    source: str | None = None
    no_cache: bool = False
    env: dict[str, str] | None = None
    secrets: list[Any] = field(default_factory=list)
    config: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> ModuleRequiredFields:
        """Build the fields from a parsed YAML mapping."""
        if not isinstance(data, Mapping):
            raise RecipeError("Module must be a mapping")
        typ = data.get("type")
        if not isinstance(typ, str):
            raise RecipeError("Module is missing a string `type` field")
        source = data.get("source")
        if source is not None and not isinstance(source, str):
            raise RecipeError("Module `source` must be a string")
        no_cache = data.get("no-cache", False)
        if not isinstance(no_cache, bool):
            raise RecipeError("Module `no-cache` must be a boolean")
        env = data.get("env")
        if env is not None:
            if not isinstance(env, Mapping) or not all(
                isinstance(k, str) and isinstance(v, str) for k, v in env.items()
            ):
                raise RecipeError("Module `env` must map strings to strings")
            env = dict(env)
        secrets = data.get("secrets", [])
        if secrets is None:
            secrets = []
        if not isinstance(secrets, list):
            raise RecipeError("Module `secrets` must be a list")
        config = {k: v for k, v in data.items() if k not in _KNOWN_KEYS}
        return cls(
            module_type=parse_type_version(typ),
            source=source,
            no_cache=no_cache,
            env=env,
            secrets=list(secrets),
            config=config,
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the fields as a YAML-ready mapping."""
        data: dict[str, Any] = {"type": str(self.module_type)}
        if self.source is not None:
            data["source"] = self.source
        if self.no_cache:
            data["no-cache"] = True
        if self.env is not None:
            data["env"] = dict(self.env)
        if self.secrets:
            data["secrets"] = list(self.secrets)
        data.update(self.config)
        return data

    def get_module_type_list(self, typ: str, list_key: str) -> list[str] | None:
        """Return the strings under `list_key` if this module is of type `typ`."""
        if self.module_type.typ != typ:
            return None
        values = self.config.get(list_key)
        if not isinstance(values, list):
            return None
        return [v for v in values if isinstance(v, str)]

    def get_containerfile_list(self) -> list[str] | None:
        return self.get_module_type_list("containerfile", "containerfiles")

    def get_containerfile_snippets(self) -> list[str] | None:
        return self.get_module_type_list("containerfile", "snippets")

    def get_copy_args(self) -> tuple[str | None, str, str] | None:
        """Return `(from, src, dest)` of a copy module, if src and dest are set."""
        src = self.config.get("src")
        dest = self.config.get("dest")
        if not isinstance(src, str) or not isinstance(dest, str):
            return None
        from_ = self.config.get("from")
        return (from_ if isinstance(from_, str) else None, src, dest)

    def get_env(self) -> list[tuple[str, str]]:
        return list((self.env or {}).items())

    def get_non_local_source(self) -> str | None:
        if self.source is None or self.source == "local":
            return None
        return self.source

    def get_module_image(self) -> str:
        version = self.module_type.version or "latest"
        return f"{BLUE_BUILD_MODULE_IMAGE_REF}/{self.module_type.typ}:{version}"

    def is_local_source(self) -> bool:
        return self.source == "local"

    def generate_akmods_info(self, os_version: int) -> AkmodsInfo:
        """Work out the akmods images for this module and OS version."""
        _log.debug("generate_akmods_base(%r, %s)", self, os_version)

        base: str | None = None
        if "base" in self.config:
            raw_base = self.config["base"]
            base = raw_base if isinstance(raw_base, str) else ""
        nvidia = (
            _nvidia_setting(self.config["nvidia"])
            if "nvidia" in self.config
            else _Nvidia.DISABLED
        )

        if base == "bazzite":
            flavour = "bazzite"
            extra: str | None = f"akmods-extra:bazzite-{os_version}"
        elif base:
            flavour = base
            extra = None
        else:
            flavour = "main"
            extra = None

        if nvidia in (_Nvidia.ENABLED, _Nvidia.PROPRIETARY):
            nvidia_image: str | None = f"akmods-nvidia:{flavour}-{os_version}"
        elif nvidia is _Nvidia.OPEN:
            nvidia_image = f"akmods-nvidia-open:{flavour}-{os_version}"
        else:
            nvidia_image = None

        suffix = "" if nvidia is _Nvidia.DISABLED else "-nvidia"
        stage_name = f"{base if base is not None else 'main'}{suffix}"
        return AkmodsInfo(
            images=(f"akmods:{flavour}-{os_version}", extra, nvidia_image),
            stage_name=stage_name,
        )


@dataclass
class Module:
    """A module entry: either defined inline or pulled in with `from-file`."""

    required_fields: ModuleRequiredFields | None = None
    from_file: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> Module:
        """Build a module from a parsed YAML mapping."""
        if not isinstance(data, Mapping):
            raise RecipeError("Module must be a mapping")
        from_file = data.get("from-file")
        if from_file is not None and not isinstance(from_file, str):
            raise RecipeError("Module `from-file` must be a string")
        rest = {k: v for k, v in data.items() if k != "from-file"}
        try:
            required_fields: ModuleRequiredFields | None = ModuleRequiredFields.from_dict(rest)
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
    def get_modules(
        cls, modules: Sequence[Module], traversed_files: Sequence[Path] | None = None
    ) -> list[Module]:
        """Expand `from-file` references into the modules they contain.

        Raises RecipeError on circular references, unreadable files, or
        modules that mix `from-file` with other properties.
        """
        traversed = list(traversed_files or [])
        found: list[Module] = []
        for module in modules:
            if module.required_fields is not None and module.from_file is None:
                found.append(module)
            elif module.required_fields is None and module.from_file is not None:
                file_name = Path(module.from_file)
                if file_name in traversed:
                    raise RecipeError(
                        f"Circular dependency detected! File {file_name} has already "
                        f"been parsed:\n{[str(p) for p in traversed]}"
                    )
                children = ModuleExt.from_file(file_name).modules
                found.extend(cls.get_modules(children, [*traversed, file_name]))
            else:
                from_example = cls(from_file="test.yml")
                raise RecipeError(
                    "Improper format for module. Must be in the format like:\n"
                    f"{_dump(cls.example().to_dict())}\nor\n\n"
                    f"{_dump(from_example.to_dict())}"
                )
        return found

    def get_from_file_path(self) -> Path | None:
        if self.from_file is None:
            return None
        return base_recipe_path() / self.from_file

    @classmethod
    def example(cls) -> Module:
        """Return a sample inline module."""
        return cls(
            required_fields=ModuleRequiredFields(
                module_type=ModuleTypeVersion("script"),
                config={
                    "snippets": ["echo 'Hello World!'"],
                    "scripts": ["install-program.sh"],
                },
            )
        )


@dataclass
class ModuleExt(FromFileList):
    """A list of modules."""

    LIST_KEY: ClassVar[str] = "modules"

    modules: list[Module] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> ModuleExt:
        if not isinstance(data, Mapping) or "modules" not in data:
            raise RecipeError("missing field `modules`")
        modules = data["modules"]
        if not isinstance(modules, list):
            raise RecipeError("`modules` must be a list")
        return cls(modules=[Module.from_dict(m) for m in modules])

    def to_dict(self) -> dict[str, Any]:
        return {"modules": [m.to_dict() for m in self.modules]}

    @classmethod
    def from_file(cls, file_name: str | Path) -> ModuleExt:
        """Read a module file holding either a module list or a single module."""
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
            return cls.from_dict(data)
        except RecipeError:
            return cls(modules=[Module.from_dict(data)])

    def get_from_file_paths(self) -> list[Path]:
        return [p for p in (m.get_from_file_path() for m in self.modules) if p is not None]

    def get_akmods_info_list(self, os_version: int) -> list[AkmodsInfo]:
        """Return the distinct akmods infos of every akmods module, in order."""
        _log.debug("get_akmods_image_list(%r, %s)", self, os_version)
        infos: list[AkmodsInfo] = []
        for module in self.modules:
            fields = module.required_fields
            if fields is None or fields.module_type.typ != "akmods":
                continue
            info = fields.generate_akmods_info(os_version)
            if info not in infos:
                infos.append(info)
        return infos