# bluebuild

A library for describing custom images of ostree based atomic Linux
distributions. It reads recipe files, resolves the modules and stages they
pull in from other files, and provides the image-reference, naming and
process-tracking helpers a build needs.

## What it offers

- **Recipes** (`bluebuild.recipe`) – `Recipe.parse(path)` loads a
  `recipe.yml`, follows every `from-file:` reference among its modules and
  stages, and raises `RecipeError` on circular references, missing files or
  malformed entries. A parsed recipe knows its base image
  (`base_image_ref()`), whether the build tool should be installed in the
  image (`should_install_bluebuild()`, `get_bluebuild_version()`) and the
  distinct secrets its modules need, stage modules included
  (`get_secrets()`). `Recipe.from_dict` / `to_dict` convert to and from
  plain mappings.
- **Modules** (`bluebuild.module`) – `Module`, `ModuleExt` and
  `ModuleRequiredFields` mirror the module format. A module's fields give
  its image (`get_module_image()`), environment (`get_env()`), copy
  arguments (`get_copy_args()`), containerfile lists and snippets, source
  (`get_non_local_source()`, `is_local_source()`) and the akmods images it
  needs (`generate_akmods_info(os_version)`, returning an `AkmodsInfo`).
  `ModuleExt.from_file` reads a file holding a module list or a single
  module; `ModuleExt.get_akmods_info_list` collects distinct akmods infos.
- **Stages** (`bluebuild.stage`) – `Stage`, `StagesExt` and
  `StageRequiredFields` do the same for build stages, and
  `StagesExt.from_file` also expands module references inside each stage.
- **Versions** – `parse_type_version("script@v1")` splits a module type
  from its version (`bluebuild.type_version`); `parse_maybe_version`
  accepts a semantic version or `none` in any case
  (`bluebuild.maybe_version`).
- **Image references** – `Reference.parse`, `Reference.with_tag`,
  `whole()` and `resolve_registry()` (`bluebuild.reference`); `ImageRef`,
  `OciDir`, `Platform`, `ImageMetadata` and the driver-choice enums, plus
  `determine_ci_driver(environ)` which picks GitLab, GitHub or local from
  environment variables (`bluebuild.types`).
- **Naming** (`bluebuild.naming`) – `generate_image_name` builds the
  trimmed, lower-cased image reference from a name, registry, namespace
  and the CI driver's registry; `rechunk_labels` produces the label block
  written onto rechunked images.
- **Process tracking** (`bluebuild.signals`) – `add_pid`, `remove_pid`,
  `add_cid`, `remove_cid`, `tracked_pids()` and `tracked_cids()` keep a
  thread-safe record of child processes and containers;
  `send_signal_processes(sig)` sends a signal to every tracked pid and
  returns those that received it.

## Example

```python
from bluebuild.recipe import Recipe
from bluebuild.naming import generate_image_name

recipe = Recipe.parse("recipes/recipe.yml")
print(recipe.name, recipe.base_image_ref())

for info in recipe.modules_ext.get_akmods_info_list(40):
    print(info.stage_name, info.images)

image = generate_image_name(recipe.name, "ghcr.io", "my-org", "ghcr.io")
print(image)
```

Relative `from-file:` paths are looked up in `recipes/`, or in the older
`config/` directory when `recipes/` does not exist (`base_recipe_path()`
in `bluebuild.paths`).

## What it does not do

- There is no command-line program; everything is used as a library.
- It does not run builds, containers or signing tools. The driver enums
  only name the choices; nothing here detects installed tools or calls
  them.
- It does not configure logging or progress output, and it does not
  install signal handlers: it only records pids and containers and can
  send a signal to the recorded pids.

## Requirements

Python 3.10 or newer, with PyYAML and semver.