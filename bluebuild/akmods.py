"""Information about the akmods images a build needs."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AkmodsInfo:
    """The akmods image, optional extra and nvidia images, and stage name."""

    images: tuple[str, str | None, str | None]
    stage_name: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "images", tuple(self.images))