"""Module type names with an optional pinned version."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ModuleTypeVersion:
    """A module type such as `script` or `script@v1`."""

    typ: str
    version: str | None = None

    def __str__(self) -> str:
        if self.version is None:
            return self.typ
        return f"{self.typ}@{self.version}"


def parse_type_version(text: str) -> ModuleTypeVersion:
    """Split a `type@version` string at its first `@`."""
    typ, sep, version = text.partition("@")
    if not sep:
        return ModuleTypeVersion(text)
    return ModuleTypeVersion(typ, version)