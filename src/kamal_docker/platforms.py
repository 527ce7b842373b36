from __future__ import annotations

import abc
from typing import Mapping

import click


DOCKER_SOCKET_PATH = "/var/run/docker.sock"
SSH_AUTH_SOCK_ENV = "SSH_AUTH_SOCK"
MACOS_SSH_AUTH_SOCK_PATH = "/run/host-services/ssh-auth.sock"
CONTAINER_SSH_AUTH_SOCK_PATH = "/ssh-agent"


class PlatformProfile(abc.ABC):
    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Identifier of the host platform family (e.g., 'macos', 'linux')."""
        pass

    @property
    @abc.abstractmethod
    def ssh_agent_host_path(self) -> str:
        """Returns the host-side path of the ssh agent socket to mount."""
        pass

    @property
    @abc.abstractmethod
    def ssh_agent_container_path(self) -> str:
        """Returns the path the ssh agent socket is mounted at inside the container."""
        pass

    def ssh_agent_mount(self) -> str:
        return f"{self.ssh_agent_host_path}:{self.ssh_agent_container_path}"

    def ssh_agent_env(self) -> str:
        return f"{SSH_AUTH_SOCK_ENV}={self.ssh_agent_container_path}"

    def docker_socket_mount(self) -> str:
        return f"{DOCKER_SOCKET_PATH}:{DOCKER_SOCKET_PATH}"


class MacOSProfile(PlatformProfile):
    # Docker Desktop relays the host agent through a fixed socket inside its VM.
    @property
    def name(self) -> str:
        return "macos"

    @property
    def ssh_agent_host_path(self) -> str:
        return MACOS_SSH_AUTH_SOCK_PATH

    @property
    def ssh_agent_container_path(self) -> str:
        return MACOS_SSH_AUTH_SOCK_PATH


class LinuxProfile(PlatformProfile):
    def __init__(self, env: Mapping[str, str]) -> None:
        self._host_socket = str(env.get(SSH_AUTH_SOCK_ENV, "") or "").strip()

    @property
    def name(self) -> str:
        return "linux"

    @property
    def ssh_agent_host_path(self) -> str:
        if not self._host_socket:
            raise click.ClickException(
                f"{SSH_AUTH_SOCK_ENV} is not set. Start an ssh-agent (for example `eval \"$(ssh-agent)\"` "
                "followed by `ssh-add`) so kamal can reach your deploy keys."
            )
        return self._host_socket

    @property
    def ssh_agent_container_path(self) -> str:
        return CONTAINER_SSH_AUTH_SOCK_PATH


def get_platform_profile(system_name: str, env: Mapping[str, str]) -> PlatformProfile:
    if str(system_name or "").strip().lower() == "darwin":
        return MacOSProfile()
    return LinuxProfile(env)
