"""Driver choices and the values drivers pass around."""

from __future__ import annotations

import logging
import os
import platform
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import semver

from bluebuild.reference import Reference

GITLAB_CI = "GITLAB_CI"
GITHUB_ACTIONS = "GITHUB_ACTIONS"
IMAGE_VERSION_LABEL = "org.opencontainers.image.version"

_log = logging.getLogger(__name__)

_ARCHES = {"x86_64": "amd64", "amd64": "amd64", "aarch64": "arm64", "arm64": "arm64"}


class _ValueEnum(Enum):
    def __str__(self) -> str:
        return str(self.value)


class InspectDriverType(_ValueEnum):
    SKOPEO = "skopeo"
    PODMAN = "podman"
    DOCKER = "docker"


class BuildDriverType(_ValueEnum):
    BUILDAH = "buildah"
    PODMAN = "podman"
    DOCKER = "docker"


class SigningDriverType(_ValueEnum):
    COSIGN = "cosign"
    SIGSTORE = "sigstore"


class RunDriverType(_ValueEnum):
    PODMAN = "podman"
    DOCKER = "docker"


class CiDriverType(_ValueEnum):
    LOCAL = "local"
    GITLAB = "gitlab"
    GITHUB = "github"


def determine_ci_driver(environ: Mapping[str, str] | None = None) -> CiDriverType:
    """Pick the CI system from the environment."""
    env = os.environ if environ is None else environ
    gitlab = GITLAB_CI in env
    github = GITHUB_ACTIONS in env
    if gitlab and not github:
        return CiDriverType.GITLAB
    if github and not gitlab:
        return CiDriverType.GITHUB
    return CiDriverType.LOCAL


def _native_arch() -> str:
    machine = platform.machine()
    try:
        return _ARCHES[machine.lower()]
    except KeyError:
        raise ValueError(f"Arch {machine} is unsupported") from None


class Platform(Enum):
    """The platform an image is built for."""

    NATIVE = "native"
    LINUX_AMD64 = "linux/amd64"
    LINUX_ARM64 = "linux/arm64"

    def arch(self) -> str:
        """Return the CPU architecture of the platform."""
        if self is Platform.NATIVE:
            return _native_arch()
        return "amd64" if self is Platform.LINUX_AMD64 else "arm64"

    def __str__(self) -> str:
        if self is Platform.NATIVE:
            return f"linux/{_native_arch()}"
        return self.value


@dataclass
class ImageMetadata:
    """The labels and digest of an inspected image."""

    labels: dict[str, Any] = field(default_factory=dict)
    digest: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> ImageMetadata:
        """Read inspect output with `Labels` and `Digest` keys."""
        if not isinstance(data, Mapping):
            raise ValueError("Image metadata must be a mapping")
        labels = data.get("Labels")
        digest = data.get("Digest")
        if not isinstance(labels, Mapping):
            raise ValueError("Image metadata is missing `Labels`")
        if not isinstance(digest, str):
            raise ValueError("Image metadata is missing `Digest`")
        return cls(labels=dict(labels), digest=digest)

    def get_version(self) -> int | None:
        """Return the major version from the image version label."""
        value = self.labels.get(IMAGE_VERSION_LABEL)
        if value is None:
            return None
        try:
            return semver.Version.parse(str(value)).major
        except (ValueError, TypeError) as exc:
            _log.warning("Failed to parse version:\n%s", exc)
            return None


@dataclass(frozen=True)
class ContainerId:
    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class MountId:
    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class OciDir:
    """An OCI layout directory in `oci:<path>` form."""

    value: str

    @classmethod
    def from_path(cls, path: str | Path) -> OciDir:
        path = Path(path)
        if not path.is_dir():
            raise ValueError(f"OCI directory doesn't exist at {path}")
        return cls(f"oci:{path}")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ImageRef:
    """An image in a remote registry or in a local archive."""

    reference: Reference | None = None
    path: Path | None = None

    def __post_init__(self) -> None:
        if (self.reference is None) == (self.path is None):
            raise ValueError("ImageRef needs exactly one of a reference or a path")

    @classmethod
    def remote(cls, reference: Reference) -> ImageRef:
        return cls(reference=reference)

    @classmethod
    def local_tar(cls, path: str | Path) -> ImageRef:
        return cls(path=Path(path))

    def remote_ref(self) -> Reference | None:
        return self.reference

    def __str__(self) -> str:
        if self.reference is not None:
            return self.reference.whole()
        return f"oci-archive:{self.path}"