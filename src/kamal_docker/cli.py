from __future__ import annotations

import logging
import os
import platform
import sys
import textwrap
from pathlib import Path
from typing import Any

import click

from kamal_docker.config import LauncherConfig
from kamal_docker.invocation import build_invocation, format_command, launch
from kamal_docker.options import KAMAL_SUBCOMMANDS, parse_args
from kamal_docker.platforms import get_platform_profile


LOG_LEVEL_ENV = "KAMAL_DOCKER_LOG_LEVEL"
LOG_LEVEL_CHOICES = ("debug", "info", "warning", "error")

LOGGER = logging.getLogger("kamal_docker")
LOGGER.addHandler(logging.NullHandler())

_SUBCOMMAND_LIST = textwrap.fill(
    ", ".join(sorted(KAMAL_SUBCOMMANDS)),
    width=78,
    initial_indent=" " * 29,
    subsequent_indent=" " * 29,
)

HELP_TEXT = f"""\
Usage: kamal-docker [options] kamal [kamal args...]
       kamal-docker [options] <kamal subcommand> [kamal args...]

Run kamal from its container image, mounting the working directory, the
ssh agent socket and the docker socket.

Options:
  -h, --help                 Show this message and exit.
  -W, --workdir PATH         Host directory mounted at /workdir
                             (env: WORKDIR, default: current directory).
  -w, --kamal-workdir PATH   Directory inside the working directory to run
                             kamal from; must be relative
                             (env: KAMAL_WORKDIR).
  -e, --env NAME             Forward the host environment variable NAME into
                             the container. Repeatable.

Option values may also be written as -W=PATH or --workdir=PATH.

Commands:
  kamal                      Pass every following argument to kamal.
  <subcommand>               Run that kamal subcommand with the following
                             arguments. Known subcommands:
{_SUBCOMMAND_LIST}

Environment:
  KAMAL_IMAGE                Image to run (default: ghcr.io/basecamp/kamal:latest).
  KAMAL_DOCKER_DRY_RUN       Print the docker command instead of running it.
  KAMAL_DOCKER_LOG_LEVEL     Diagnostic log level (debug, info, warning, error).

Examples:
  kamal-docker deploy
  kamal-docker -w infra -e KAMAL_REGISTRY_PASSWORD kamal app logs -f
"""


def _normalize_log_level(value: Any) -> str:
    normalized = str(value or "").strip().lower()
    if normalized in LOG_LEVEL_CHOICES:
        return normalized
    return ""


def _configure_logging(level: str) -> None:
    normalized = _normalize_log_level(level)
    if not normalized:
        return
    handler = logging.StreamHandler(sys.__stderr__)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    LOGGER.handlers.clear()
    LOGGER.addHandler(handler)
    LOGGER.setLevel(getattr(logging, normalized.upper(), logging.INFO))
    LOGGER.propagate = False


class RawArgumentsCommand(click.Command):
    """Command that hands its arguments to the callback without parsing them."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        ctx.params["raw_args"] = tuple(args)
        ctx.args = []
        return ctx.args


@click.command(
    cls=RawArgumentsCommand,
    add_help_option=False,
    help="Run kamal inside its container image.",
)
def main(raw_args: tuple[str, ...]) -> None:
    env = dict(os.environ)
    _configure_logging(env.get(LOG_LEVEL_ENV, ""))

    parsed = parse_args(raw_args)
    if parsed.show_help:
        click.echo(HELP_TEXT, nl=False)
        return
    route = parsed.route
    if route is not None:
        LOGGER.debug("Routing %s command %r with %d argument(s)", route.kind.value, route.token, len(route.args))

    config = LauncherConfig.from_environment(parsed, env, Path.cwd())
    profile = get_platform_profile(platform.system(), env)
    LOGGER.debug("Selected %s platform profile", profile.name)

    command = build_invocation(config, profile)
    if config.dry_run:
        click.echo(format_command(command))
        return
    launch(command)


if __name__ == "__main__":
    main()
