from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from kamal_docker.options import ParsedArgs


DEFAULT_KAMAL_IMAGE = "ghcr.io/basecamp/kamal:latest"
WORKDIR_ENV = "WORKDIR"
KAMAL_WORKDIR_ENV = "KAMAL_WORKDIR"
KAMAL_IMAGE_ENV = "KAMAL_IMAGE"
DRY_RUN_ENV = "KAMAL_DOCKER_DRY_RUN"
TRUTHY_VALUES = {"1", "true", "yes", "on"}


def _env_value(env: Mapping[str, str], name: str) -> str:
    return str(env.get(name, "") or "").strip()


def _to_absolute(value: str, cwd: Path) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else (cwd / path).resolve()


def _is_truthy(value: str) -> bool:
    return value.lower() in TRUTHY_VALUES


@dataclass(frozen=True)
class LauncherConfig:
    host_workdir: Path
    container_subpath: str = ""
    env_passthrough: tuple[str, ...] = ()
    routed_args: tuple[str, ...] = ()
    image: str = DEFAULT_KAMAL_IMAGE
    dry_run: bool = False

    @classmethod
    def from_environment(cls, parsed: ParsedArgs, env: Mapping[str, str], cwd: Path) -> "LauncherConfig":
        """Merge parsed options over an environment snapshot.

        Command-line values win over environment values, and an empty
        environment value is treated as unset.
        """
        workdir = parsed.workdir or _env_value(env, WORKDIR_ENV) or str(cwd)
        subpath = parsed.kamal_workdir
        if subpath is None:
            subpath = _env_value(env, KAMAL_WORKDIR_ENV)
        routed_args = parsed.route.args if parsed.route is not None else ()
        return cls(
            host_workdir=_to_absolute(workdir, cwd),
            container_subpath=subpath,
            env_passthrough=tuple(parsed.env_names),
            routed_args=tuple(routed_args),
            image=_env_value(env, KAMAL_IMAGE_ENV) or DEFAULT_KAMAL_IMAGE,
            dry_run=_is_truthy(_env_value(env, DRY_RUN_ENV)),
        )
