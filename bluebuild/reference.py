"""Container image references."""

from __future__ import annotations

import re
from dataclasses import dataclass

DEFAULT_REGISTRY = "docker.io"
_LEGACY_REGISTRY = "index.docker.io"
DEFAULT_TAG = "latest"
_NAME_TOTAL_LENGTH_MAX = 255

_DOMAIN_COMPONENT = r"(?:[a-zA-Z0-9]|[a-zA-Z0-9][a-zA-Z0-9-]*[a-zA-Z0-9])"
_DOMAIN_RE = re.compile(rf"{_DOMAIN_COMPONENT}(?:\.{_DOMAIN_COMPONENT})*(?::[0-9]+)?")
_PATH_COMPONENT_RE = re.compile(r"[a-z0-9]+(?:(?:[._]|__|[-]*)[a-z0-9]+)*")
_TAG_RE = re.compile(r"[\w][\w.-]{0,127}")
_DIGEST_RE = re.compile(r"[A-Za-z][A-Za-z0-9]*(?:[-_+.][A-Za-z][A-Za-z0-9]*)*:[0-9a-fA-F]{32,}")


@dataclass(frozen=True)
class Reference:
    """An image reference of registry, repository, and tag or digest."""

    registry: str
    repository: str
    tag: str | None = None
    digest: str | None = None

    @classmethod
    def parse(cls, text: str) -> Reference:
        """Parse a reference such as `ghcr.io/org/image:tag`.

        Raises ValueError when the reference is malformed.
        """
        if not text:
            raise ValueError("Image reference is empty")
        name, at, digest = text.partition("@")
        if at and not _DIGEST_RE.fullmatch(digest):
            raise ValueError(f"Invalid digest in reference {text!r}")
        tag: str | None = None
        colon = name.rfind(":")
        if colon > name.rfind("/"):
            name, tag = name[:colon], name[colon + 1 :]
            if not _TAG_RE.fullmatch(tag):
                raise ValueError(f"Invalid tag in reference {text!r}")

        head, slash, rest = name.partition("/")
        if not slash or (
            not any(c in head for c in ".:") and head != "localhost" and head.lower() == head
        ):
            registry, repository = DEFAULT_REGISTRY, name
        else:
            registry, repository = head, rest
        if registry == _LEGACY_REGISTRY:
            registry = DEFAULT_REGISTRY
        if registry == DEFAULT_REGISTRY and "/" not in repository:
            repository = f"library/{repository}"

        if not _DOMAIN_RE.fullmatch(registry):
            raise ValueError(f"Invalid registry in reference {text!r}")
        if not all(_PATH_COMPONENT_RE.fullmatch(part) for part in repository.split("/")):
            raise ValueError(f"Invalid repository in reference {text!r}")
        if len(name) > _NAME_TOTAL_LENGTH_MAX:
            raise ValueError(f"Repository name too long in reference {text!r}")

        if tag is None and not at:
            tag = DEFAULT_TAG
        return cls(registry, repository, tag, digest if at else None)

    @classmethod
    def with_tag(cls, registry: str, repository: str, tag: str) -> Reference:
        return cls(registry, repository, tag)

    def whole(self) -> str:
        """Return the full reference string."""
        text = f"{self.registry}/{self.repository}"
        if self.tag is not None:
            text += f":{self.tag}"
        if self.digest is not None:
            text += f"@{self.digest}"
        return text

    def resolve_registry(self) -> str:
        """Return the registry host to contact for this reference."""
        if self.registry == DEFAULT_REGISTRY:
            return _LEGACY_REGISTRY
        return self.registry

    def __str__(self) -> str:
        return self.whole()