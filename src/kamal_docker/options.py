from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Iterable

import click


DIRECT_INVOKE_KEYWORD = "kamal"
KAMAL_SUBCOMMANDS = frozenset(
    {
        "accessory",
        "app",
        "audit",
        "build",
        "config",
        "deploy",
        "details",
        "docs",
        "help",
        "init",
        "lock",
        "proxy",
        "prune",
        "redeploy",
        "registry",
        "remove",
        "rollback",
        "secrets",
        "server",
        "setup",
        "upgrade",
        "version",
    }
)

HELP_OPTIONS = ("-h", "--help")
WORKDIR_OPTION = ("-W", "--workdir")
KAMAL_WORKDIR_OPTION = ("-w", "--kamal-workdir")
ENV_OPTION = ("-e", "--env")


class LauncherUsageError(click.ClickException):
    exit_code = 1


class RouteKind(enum.Enum):
    DIRECT = "direct"
    SUBCOMMAND = "subcommand"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Route:
    kind: RouteKind
    token: str
    args: tuple[str, ...] = ()


@dataclass
class ParsedArgs:
    show_help: bool = False
    workdir: str | None = None
    kamal_workdir: str | None = None
    env_names: list[str] = field(default_factory=list)
    route: Route | None = None


def classify_route(argv: list[str], index: int) -> Route:
    """Decide where the arguments starting at ``argv[index]`` are sent.

    The direct keyword forwards only what follows it, a known subcommand is
    forwarded together with everything after it.
    """
    token = argv[index]
    if token == DIRECT_INVOKE_KEYWORD:
        return Route(RouteKind.DIRECT, token, tuple(argv[index + 1 :]))
    if token in KAMAL_SUBCOMMANDS:
        return Route(RouteKind.SUBCOMMAND, token, tuple(argv[index:]))
    return Route(RouteKind.UNKNOWN, token)


def _option_value(argv: list[str], index: int, names: tuple[str, str]) -> tuple[str, int] | None:
    """Return ``(value, next_index)`` when ``argv[index]`` is one of ``names``."""
    arg = argv[index]
    short_option, long_option = names
    if arg in names:
        if index + 1 >= len(argv) or argv[index + 1].startswith("-"):
            raise LauncherUsageError(f"Option {arg} requires a value")
        return argv[index + 1], index + 2
    for option in (short_option, long_option):
        if arg.startswith(f"{option}="):
            _, _, value = arg.partition("=")
            if not value or value.startswith("-"):
                raise LauncherUsageError(f"Option {option} requires a value")
            return value, index + 1
    return None


def _validate_env_name(name: str) -> str:
    if "=" in name:
        raise LauncherUsageError(f"Invalid environment variable name: {name!r} (pass a name, not NAME=VALUE)")
    if any(ch.isspace() for ch in name):
        raise LauncherUsageError(f"Invalid environment variable name: {name!r} (must not contain whitespace)")
    return name


def parse_args(raw_args: Iterable[str]) -> ParsedArgs:
    argv = [str(arg) for arg in raw_args]
    parsed = ParsedArgs()
    if not argv:
        parsed.show_help = True
        return parsed

    index = 0
    while index < len(argv):
        arg = argv[index]
        if not arg.startswith("-"):
            route = classify_route(argv, index)
            if route.kind is RouteKind.UNKNOWN:
                raise LauncherUsageError(f"Unknown command: {route.token}")
            parsed.route = route
            return parsed

        if arg in HELP_OPTIONS:
            parsed.show_help = True
            return parsed

        matched = _option_value(argv, index, WORKDIR_OPTION)
        if matched is not None:
            parsed.workdir, index = matched
            continue

        matched = _option_value(argv, index, KAMAL_WORKDIR_OPTION)
        if matched is not None:
            parsed.kamal_workdir, index = matched
            continue

        matched = _option_value(argv, index, ENV_OPTION)
        if matched is not None:
            name, index = matched
            parsed.env_names.append(_validate_env_name(name))
            continue

        raise LauncherUsageError(f"Invalid option: {arg}")

    raise LauncherUsageError("Missing command (expected 'kamal' or a kamal subcommand)")
