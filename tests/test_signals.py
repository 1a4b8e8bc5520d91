import logging
import os

import pytest

from bluebuild.signals import (
    ContainerRuntime,
    ContainerSignalId,
    add_cid,
    add_pid,
    remove_cid,
    remove_pid,
    send_signal_processes,
    tracked_cids,
    tracked_pids,
)


@pytest.fixture(autouse=True)
def _clean():
    def clear():
        for pid in tracked_pids():
            remove_pid(pid)
        for cid in tracked_cids():
            remove_cid(cid)

    clear()
    yield
    clear()


def test_runtime_str():
    assert ContainerRuntime.PODMAN.__str__() == "podman"
    assert ContainerRuntime.DOCKER.__str__() == "docker"


def test_add_pid_no_duplicates():
    add_pid(10)
    add_pid(10)
    add_pid(11)
    assert tracked_pids() == [10, 11]


def test_remove_pid_swaps_last_in():
    for pid in (1, 2, 3):
        add_pid(pid)
    remove_pid(1)
    assert tracked_pids() == [3, 2]


def test_remove_unknown_pid_keeps_list():
    add_pid(5)
    remove_pid(6)
    assert tracked_pids() == [5]


def test_invalid_pids_ignored():
    add_pid(2**31)
    add_pid("abc")
    add_pid(None)
    assert tracked_pids() == []


def test_pid_string_converted():
    add_pid("42")
    assert tracked_pids() == [42]


def test_cids(tmp_path):
    first = ContainerSignalId(tmp_path / "a.cid", ContainerRuntime.DOCKER, False)
    second = ContainerSignalId(str(tmp_path / "b.cid"), ContainerRuntime.PODMAN, True)
    add_cid(first)
    add_cid(ContainerSignalId(tmp_path / "a.cid", ContainerRuntime.DOCKER, False))
    add_cid(second)
    assert tracked_cids() == [first, second]
    remove_cid(first)
    assert tracked_cids() == [second]
    assert second.cid_path == tmp_path / "b.cid"


def test_send_signal_to_self_with_zero():
    pid = os.getpid()
    add_pid(pid)
    assert send_signal_processes(0) == [pid]


def test_send_signal_failure_logged(caplog):
    missing = 2**31 - 1
    add_pid(missing)
    with caplog.at_level(logging.ERROR):
        result = send_signal_processes(0)
    assert result == []
    assert f"Failed to kill process {missing}" in caplog.text