import dataclasses

import pytest

from bluebuild.akmods import AkmodsInfo


def test_images_become_a_tuple():
    info = AkmodsInfo(images=["akmods:main", None, None], stage_name="main")
    assert info.images == ("akmods:main", None, None)


def test_equal_infos_deduplicate_in_a_set():
    first = AkmodsInfo(("akmods:main", None, None), "main")
    second = AkmodsInfo(("akmods:main", None, None), "main")
    other = AkmodsInfo(("akmods:main", None, "akmods-nvidia:main"), "main-nvidia")
    assert first == second
    assert len({first, second, other}) == 2


def test_info_is_immutable():
    info = AkmodsInfo(("akmods:main", None, None), "main")
    with pytest.raises(dataclasses.FrozenInstanceError):
        info.stage_name = "other"
    assert info.stage_name == "main"