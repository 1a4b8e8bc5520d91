"""A semantic version that may be switched off with `none`."""

from __future__ import annotations

from dataclasses import dataclass

import semver

from bluebuild.paths import RecipeError


@dataclass(frozen=True)
class MaybeVersion:
    """Either a semantic version or the explicit value `none`."""

    version: semver.Version | None = None

    def __str__(self) -> str:
        return "none" if self.version is None else str(self.version)

    def is_none(self) -> bool:
        """Return True when no version is set."""
        return self.version is None


def parse_maybe_version(value: object) -> MaybeVersion:
    """Read a version string, treating `none` in any case as no version."""
    if isinstance(value, MaybeVersion):
        return value
    if not isinstance(value, str):
        raise RecipeError(f"Expected a version string, got {value!r}")
    if value.lower() == "none":
        return MaybeVersion()
    try:
        return MaybeVersion(semver.Version.parse(value))
    except ValueError as exc:
        raise RecipeError(str(exc)) from exc