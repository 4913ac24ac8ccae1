"""Forward `agent-exec skills ...` to the `npx skills` installer."""

import logging
import os
import subprocess
from collections.abc import Sequence

import click

from agent_exec.core.agents import command_exists

logger = logging.getLogger(__name__)


def get_npx_command() -> str:
    return "npx.cmd" if os.name == "nt" else "npx"


def run_skills(args: Sequence[str]) -> int:
    """Run `npx skills <args...>` with inherited streams and return its exit code."""
    npx = get_npx_command()
    if not command_exists(npx):
        click.echo("npx is required to run the skills installer. Install Node.js 18+.", err=True)
        return 1

    try:
        result = subprocess.run([npx, "skills", *args])
    except OSError as e:
        logger.debug(f"Launching {npx} failed", exc_info=True)
        click.echo(str(e), err=True)
        return 1
    return result.returncode if result.returncode >= 0 else 0
