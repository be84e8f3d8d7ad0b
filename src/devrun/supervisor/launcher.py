"""Resolve how to invoke the package manager's ``run`` subcommand."""

import os
import sys
from typing import Mapping, Optional

from devrun.core.exceptions import ConfigurationError
from .models import LaunchCommand, Task

NPM_EXECPATH_ENV = "npm_execpath"
NODE_EXECPATH_ENV = "npm_node_execpath"
NODE_ENV = "NODE"

DEFAULT_NODE = "node"
WINDOWS_NPM = "npm.cmd"
POSIX_NPM = "npm"


def npm_binary(platform: Optional[str] = None) -> str:
    """Package manager binary name for the given platform."""
    platform = platform or sys.platform
    return WINDOWS_NPM if platform == "win32" else POSIX_NPM


def node_executable(environ: Mapping[str, str]) -> str:
    """Runtime used to execute the package manager's CLI script."""
    return environ.get(NODE_EXECPATH_ENV) or environ.get(NODE_ENV) or DEFAULT_NODE


def resolve_launch_command(
    task: Task,
    environ: Optional[Mapping[str, str]] = None,
    platform: Optional[str] = None,
) -> LaunchCommand:
    """Build the command that runs ``task`` through the package manager.

    When launched from a package script, npm exports the path of its own
    CLI in ``npm_execpath``; that script is run with the runtime npm used
    (``npm_node_execpath``). Otherwise the platform's npm binary is
    invoked directly.
    """
    if not task.name:
        raise ConfigurationError("Task name must not be empty", code="empty_task")

    environ = os.environ if environ is None else environ

    npm_cli = environ.get(NPM_EXECPATH_ENV)
    if npm_cli:
        return LaunchCommand(
            command=node_executable(environ),
            args=[npm_cli, "run", task.name],
        )

    return LaunchCommand(command=npm_binary(platform), args=["run", task.name])
