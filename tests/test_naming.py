import pytest

from bluebuild.naming import (
    BUILD_ID_LABEL,
    CREATED_TIMESTAMP_PLACEHOLDER,
    generate_image_name,
    rechunk_labels,
)


def test_registry_and_namespace():
    ref = generate_image_name("my-image", "ghcr.io", "org", "registry.example.com")
    assert ref.registry == "ghcr.io"
    assert ref.repository == "org/my-image"
    assert str(ref) == "ghcr.io/org/my-image:latest"


def test_registry_without_namespace():
    ref = generate_image_name("my-image", "quay.io", None, "registry.example.com")
    assert ref.registry == "quay.io"
    assert ref.repository == "my-image"


def test_falls_back_to_driver_registry():
    ref = generate_image_name("my-image", None, None, "registry.example.com/owner")
    assert ref.registry == "registry.example.com"
    assert ref.repository == "owner/my-image"


def test_namespace_without_registry_is_ignored():
    ref = generate_image_name("my-image", None, "ignored", "registry.example.com/owner")
    assert ref.repository == "owner/my-image"


def test_parts_are_trimmed_and_lowercased():
    ref = generate_image_name("  My-Image ", " GHCR.io ", " Org ", "unused.example.com")
    assert ref.registry == "ghcr.io"
    assert ref.repository == "org/my-image"


def test_invalid_name_raises():
    with pytest.raises(ValueError, match="Unable to parse image"):
        generate_image_name("bad name!", "ghcr.io", "org", "")


def test_rechunk_labels_order_and_values():
    text = rechunk_labels(
        "build-123", "my-image", "A test image", "https://example.com/repo", "sha256:abc", "base/img"
    )
    lines = text.split("\n")
    assert len(lines) == 7
    assert lines[0] == f"{BUILD_ID_LABEL}=build-123"
    assert lines[1] == "org.opencontainers.image.title=my-image"
    assert lines[2] == "org.opencontainers.image.description=A test image"
    assert lines[3] == "org.opencontainers.image.source=https://example.com/repo"
    assert lines[4] == "org.opencontainers.image.base.digest=sha256:abc"
    assert lines[5] == "org.opencontainers.image.base.name=base/img"
    assert lines[6] == f"org.opencontainers.image.created={CREATED_TIMESTAMP_PLACEHOLDER}"


def test_rechunk_labels_every_line_is_key_value():
    text = rechunk_labels("id", "n", "d", "r", "dg", "b")
    pairs = dict(line.split("=", 1) for line in text.splitlines())
    assert pairs["org.opencontainers.image.base.name"] == "b"
    assert pairs[BUILD_ID_LABEL] == "id"