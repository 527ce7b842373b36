from __future__ import annotations

import logging
import os
import shlex
import signal
import subprocess
import sys
from pathlib import PurePosixPath
from typing import Iterable

import click

from kamal_docker.config import LauncherConfig
from kamal_docker.platforms import PlatformProfile


CONTAINER_RUNTIME = "docker"
CONTAINER_MOUNT_ROOT = "/workdir"
FORWARDED_SIGNALS = ("SIGINT", "SIGTERM")

LOGGER = logging.getLogger("kamal_docker")


def container_workdir(subpath: str) -> str:
    candidate = str(subpath or "")
    if not candidate:
        return CONTAINER_MOUNT_ROOT
    if PurePosixPath(candidate).is_absolute():
        raise click.ClickException(
            f"Invalid kamal workdir: {candidate} (must be relative to the working directory)"
        )
    return str(PurePosixPath(CONTAINER_MOUNT_ROOT) / candidate)


def env_flags(names: Iterable[str]) -> list[str]:
    flags: list[str] = []
    for name in names:
        flags.extend(["--env", str(name)])
    return flags


def build_invocation(config: LauncherConfig, profile: PlatformProfile) -> list[str]:
    workdir = container_workdir(config.container_subpath)
    return [
        CONTAINER_RUNTIME,
        "run",
        "--rm",
        "-i",
        "-t",
        "--volume",
        f"{config.host_workdir}:{CONTAINER_MOUNT_ROOT}",
        "--volume",
        profile.ssh_agent_mount(),
        "--volume",
        profile.docker_socket_mount(),
        "--env",
        profile.ssh_agent_env(),
        *env_flags(config.env_passthrough),
        "--workdir",
        workdir,
        config.image,
        *config.routed_args,
    ]


def format_command(command: Iterable[str]) -> str:
    return shlex.join(str(part) for part in command)


def _supports_exec() -> bool:
    return os.name == "posix" and hasattr(os, "execvp")


def _run_forwarding_signals(command: list[str]) -> int:
    process = subprocess.Popen(command)

    def forward(signum: int, _frame: object) -> None:
        if process.poll() is None:
            process.send_signal(signum)

    previous: dict[int, object] = {}
    for signal_name in FORWARDED_SIGNALS:
        signum = getattr(signal, signal_name, None)
        if signum is None:
            continue
        previous[signum] = signal.signal(signum, forward)
    try:
        return process.wait()
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


def launch(command: list[str]) -> None:
    """Hand the terminal over to ``command``.

    On POSIX the current process image is replaced, so this only returns if
    ``os.execvp`` itself is stubbed out. Elsewhere the command runs as a child
    and its exit status becomes ours.
    """
    LOGGER.debug("Launching container command: %s", format_command(command))
    if _supports_exec():
        try:
            os.execvp(command[0], command)
        except OSError as exc:
            raise click.ClickException(f"Unable to execute {command[0]}: {exc}") from exc
        return

    try:
        returncode = _run_forwarding_signals(command)
    except OSError as exc:
        raise click.ClickException(f"Unable to execute {command[0]}: {exc}") from exc
    sys.exit(returncode)
