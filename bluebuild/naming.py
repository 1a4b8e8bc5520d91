"""Image naming and label generation used when building and rechunking."""

from __future__ import annotations

from bluebuild.reference import Reference

BUILD_ID_LABEL = "org.blue-build.build-id"
CREATED_TIMESTAMP_PLACEHOLDER = "<timestamp>"


def generate_image_name(
    name: str,
    registry: str | None = None,
    registry_namespace: str | None = None,
    driver_registry: str = "",
) -> Reference:
    """Build the image reference from the recipe name and registry settings.

    An explicit registry, with its namespace when one is given, takes
    precedence over the registry the CI driver reports. Every part is
    trimmed and lower-cased.

    Raises ValueError when the resulting name is not a valid reference.
    """
    parts = [name.strip().lower()]
    if registry is not None:
        if registry_namespace is not None:
            parts.insert(0, registry_namespace.strip().lower())
        parts.insert(0, registry.strip().lower())
    else:
        parts.insert(0, driver_registry.strip().lower())
    image = "/".join(parts)
    try:
        return Reference.parse(image)
    except ValueError as exc:
        raise ValueError(f"Unable to parse image {image}: {exc}") from exc


def rechunk_labels(
    build_id: str,
    name: str,
    description: str,
    repo: str,
    base_digest: str,
    base_image: str,
) -> str:
    """Return the newline-separated labels applied to a rechunked image."""
    labels = {
        BUILD_ID_LABEL: build_id,
        "org.opencontainers.image.title": name,
        "org.opencontainers.image.description": description,
        "org.opencontainers.image.source": repo,
        "org.opencontainers.image.base.digest": base_digest,
        "org.opencontainers.image.base.name": base_image,
        "org.opencontainers.image.created": CREATED_TIMESTAMP_PLACEHOLDER,
    }
    return "\n".join(f"{key}={value}" for key, value in labels.items())