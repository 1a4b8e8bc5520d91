"""Tracking of child processes and containers to clean up on termination."""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

_log = logging.getLogger(__name__)

_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1


class ContainerRuntime(Enum):
    PODMAN = "podman"
    DOCKER = "docker"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ContainerSignalId:
    """A container whose id is written to `cid_path`, to be stopped on exit."""

    cid_path: Path
    container_runtime: ContainerRuntime
    requires_sudo: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "cid_path", Path(self.cid_path))


_lock = threading.Lock()
_pids: list[int] = []
_cids: list[ContainerSignalId] = []


def _as_pid(pid: object) -> int | None:
    try:
        value = int(pid)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return None
    if not _I32_MIN <= value <= _I32_MAX:
        return None
    return value


def _swap_remove(items: list, index: int) -> None:
    last = items.pop()
    if index < len(items):
        items[index] = last


def add_pid(pid: object) -> None:
    """Track a pid to signal when the program is terminated.

    Values that are not valid 32-bit pids are ignored.
    """
    value = _as_pid(pid)
    if value is None:
        return
    with _lock:
        if value not in _pids:
            _pids.append(value)


def remove_pid(pid: object) -> None:
    """Stop tracking a pid; the last tracked pid takes its place."""
    value = _as_pid(pid)
    if value is None:
        return
    with _lock:
        if value in _pids:
            _swap_remove(_pids, _pids.index(value))


def add_cid(cid: ContainerSignalId) -> None:
    """Track a container to stop when the program is terminated."""
    with _lock:
        if cid not in _cids:
            _cids.append(cid)


def remove_cid(cid: ContainerSignalId) -> None:
    """Stop tracking a container; the last tracked one takes its place."""
    with _lock:
        if cid in _cids:
            _swap_remove(_cids, _cids.index(cid))


def tracked_pids() -> list[int]:
    with _lock:
        return list(_pids)


def tracked_cids() -> list[ContainerSignalId]:
    with _lock:
        return list(_cids)


def send_signal_processes(sig: int) -> list[int]:
    """Send `sig` to every tracked pid and return those that received it."""
    signalled: list[int] = []
    with _lock:
        pids = list(_pids)
    for pid in pids:
        try:
            os.kill(pid, sig)
        except OSError as exc:
            _log.error("Failed to kill process %s: Error %s", pid, exc)
        else:
            _log.debug("Killed process %s", pid)
            signalled.append(pid)
    return signalled