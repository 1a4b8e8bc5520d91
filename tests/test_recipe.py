from pathlib import Path

import pytest

from bluebuild.maybe_version import parse_maybe_version
from bluebuild.paths import RecipeError
from bluebuild.recipe import Recipe

BASIC = """\
name: my-image
description: A test image
base-image: ghcr.io/ublue-os/silverblue-main
image-version: 40
modules:
  - type: script
    snippets:
      - echo hi
"""


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_parse_basic(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _write(tmp_path / "recipe.yml", BASIC)
    recipe = Recipe.parse("recipe.yml")
    assert recipe.name == "my-image"
    assert recipe.base_image == "ghcr.io/ublue-os/silverblue-main"
    assert recipe.image_version == "40"
    assert recipe.stages_ext is None
    assert [m.required_fields.module_type.typ for m in recipe.modules_ext.modules] == ["script"]


def test_parse_expands_module_files(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _write(tmp_path / "recipes" / "extra.yml", "type: files\nfiles: []\n")
    text = BASIC + "  - from-file: extra.yml\n"
    _write(tmp_path / "recipes" / "recipe.yml", text)
    recipe = Recipe.parse(tmp_path / "recipes" / "recipe.yml")
    types = [m.required_fields.module_type.typ for m in recipe.modules_ext.modules]
    assert types == ["script", "files"]


def test_parse_with_stages(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    text = BASIC + (
        "stages:\n"
        "  - name: builder\n"
        "    from: alpine\n"
        "    modules:\n"
        "      - type: script\n"
        "        secrets:\n"
        "          - env\n"
    )
    _write(tmp_path / "recipe.yml", text)
    recipe = Recipe.parse("recipe.yml")
    assert recipe.stages_ext is not None
    assert [s.required_fields.name for s in recipe.stages_ext.stages] == ["builder"]


def test_parse_missing_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(RecipeError):
        Recipe.parse("nope.yml")


def test_missing_modules_is_error():
    with pytest.raises(RecipeError):
        Recipe.from_dict(
            {"name": "a", "description": "b", "base-image": "c", "image-version": "d"}
        )


def test_missing_name_is_error():
    with pytest.raises(RecipeError):
        Recipe.from_dict(
            {"description": "b", "base-image": "c", "image-version": "d", "modules": []}
        )


def _recipe(**extra):
    data = {
        "name": "img",
        "description": "desc",
        "base-image": "ghcr.io/ublue-os/silverblue-main",
        "image-version": "40",
        "modules": [],
    }
    data.update(extra)
    return Recipe.from_dict(data)


def test_base_image_ref():
    ref = _recipe().base_image_ref()
    assert ref.registry == "ghcr.io"
    assert ref.repository == "ublue-os/silverblue-main"
    assert ref.tag == "40"


def test_base_image_ref_invalid():
    with pytest.raises(RecipeError):
        _recipe(**{"base-image": "Bad Image!!"}).base_image_ref()


def test_bluebuild_tag_default():
    recipe = _recipe()
    assert recipe.should_install_bluebuild() is True
    assert recipe.get_bluebuild_version() == "latest-installer"


def test_bluebuild_tag_none():
    recipe = _recipe(**{"blue-build-tag": "none"})
    assert recipe.should_install_bluebuild() is False
    assert recipe.get_bluebuild_version() == "latest-installer"


def test_bluebuild_tag_version():
    recipe = _recipe(**{"blue-build-tag": "1.2.3"})
    assert recipe.should_install_bluebuild() is True
    assert recipe.get_bluebuild_version() == "1.2.3"
    assert recipe.blue_build_tag == parse_maybe_version("1.2.3")


def test_get_secrets_distinct_across_stages():
    recipe = _recipe(
        modules=[
            {"type": "script", "secrets": ["a", "b"]},
            {"type": "script", "secrets": ["a"]},
        ],
        stages=[
            {
                "name": "s",
                "from": "alpine",
                "modules": [{"type": "script", "secrets": ["b", "c"]}],
            }
        ],
    )
    assert recipe.get_secrets() == ["a", "b", "c"]


def test_to_dict_round_trip():
    recipe = _recipe(
        **{"alt-tags": ["x", "y"], "nushell-version": "0.90.0", "blue-build-tag": "none"},
        modules=[{"type": "script", "snippets": ["echo"]}],
        stages=[{"name": "s", "from": "alpine", "modules": []}],
    )
    assert Recipe.from_dict(recipe.to_dict()) == recipe