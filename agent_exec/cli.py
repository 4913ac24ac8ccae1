"""CLI entry point for agent-exec.

Usage:
- agent-exec <prompt> --agent <name> [options] -- [agent args...]
- agent-exec skills <args...>
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from agent_exec.core.agents import build_agent_descriptors, command_exists, select_agent
from agent_exec.core.changes import collect_changes
from agent_exec.core.config import (
    ENV_PREFIX,
    ConfigError,
    get_env_value,
    load_file_config,
    normalize_format,
    normalize_input,
    resolve_invocation,
)
from agent_exec.core.models import DEFAULT_MAX_BYTES, AgentDescriptor, AgentName, OutputFormat
from agent_exec.core.presenter import build_report, failure_line, render_report
from agent_exec.core.skills import run_skills
from agent_exec.runner.process import run_agent

console = Console()
err_console = Console(stderr=True)

RAW_ARGS_KEY = "agent_exec.raw_args"
_AGENT_CHOICES = "|".join(a.value for a in AgentName)


class RawArgsCommand(click.Command):
    """Click command that hands its raw argument vector to resolve_invocation.

    click's own parser drops the "--" delimiter, which the resolver needs to
    separate prompt words from agent passthrough arguments.
    """

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        ctx.meta[RAW_ARGS_KEY] = list(args)
        return []


def configure_logging(verbose: bool) -> None:
    """Send agent_exec logs to stderr; stdout is reserved for the JSON report."""
    package_logger = logging.getLogger("agent_exec")
    if not any(isinstance(h, RichHandler) for h in package_logger.handlers):
        package_logger.addHandler(
            RichHandler(console=err_console, show_time=False, show_path=False)
        )
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def get_usage(environ: Mapping[str, str]) -> str:
    default_format = normalize_format(get_env_value(environ, "FORMAT")).value
    default_input = normalize_input(get_env_value(environ, "INPUT")).value
    return f"""agent-exec <prompt> [options] -- [agent args...]
agent-exec skills <args...>

Options:
  -a, --agent <name>    {" | ".join(a.value for a in AgentName)} (required)
  -d, --dir <path>      working directory (default: cwd)
  -m, --model <id>      model ID to pass to the agent CLI
  -f, --format <type>   output format: json or text (default: {default_format})
  --json, --text        shorthand for --format json / --format text
  --input <mode>        auto | arg | stdin | none (default: {default_input})
  --arg, --stdin, --no-input
                        shorthand for --input arg / stdin / none
  --max-bytes <n>       max bytes per file in JSON output (default: {DEFAULT_MAX_BYTES})
  --content             include file contents in JSON (default: true)
  --no-content          omit file contents in JSON
  --list                list detected agents and exit
  -v, --verbose         debug logging on stderr
  -h, --help            show help

Environment:
  {ENV_PREFIX}AGENT          agent name ({_AGENT_CHOICES})
  {ENV_PREFIX}DIR            default working directory
  {ENV_PREFIX}MODEL          default model ID
  {ENV_PREFIX}FORMAT         default output format
  {ENV_PREFIX}INPUT          default input mode
  {ENV_PREFIX}MAX_BYTES      max bytes per file in JSON output
  {ENV_PREFIX}NO_CONTENT     set to disable content in JSON output
  {ENV_PREFIX}VERBOSE        set to enable debug logging
  {ENV_PREFIX}CONFIG         path to a YAML config file
  {ENV_PREFIX}MODEL_FLAG     model flag to pass to agent CLI (default: --model)
  {ENV_PREFIX}MODEL_FLAG_CODEX   override model flag for codex
  {ENV_PREFIX}MODEL_FLAG_CLAUDE  override model flag for claude
  {ENV_PREFIX}MODEL_FLAG_CURSOR  override model flag for cursor
  {ENV_PREFIX}CODEX_CMD      command for codex (default: codex)
  {ENV_PREFIX}CLAUDE_CMD     command for claude (default: claude)
  {ENV_PREFIX}CURSOR_CMD     command for cursor (default: agent)
  {ENV_PREFIX}CODEX_ARGS     default args (supports {{prompt}})
  {ENV_PREFIX}CLAUDE_ARGS    default args (supports {{prompt}})
  {ENV_PREFIX}CURSOR_ARGS    default args (supports {{prompt}})

Legacy AGENT_RUN_* variables are also supported.
"""


def print_agents(descriptors: list[AgentDescriptor]) -> None:
    table = Table(title="Agents")
    table.add_column("Agent", style="cyan", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    table.add_column("Command", style="white", overflow="fold")

    for descriptor in descriptors:
        if command_exists(descriptor.command):
            status = "[green]available[/green]"
        else:
            status = "[red]missing[/red]"
        table.add_row(descriptor.name.value, status, escape(descriptor.command))

    console.print(table)


@click.command(cls=RawArgsCommand, add_help_option=False)
@click.pass_context
def main(ctx: click.Context) -> None:
    """agent-exec - run a coding agent CLI and report what it changed."""
    argv = ctx.meta.get(RAW_ARGS_KEY, [])
    environ = os.environ

    if argv and argv[0] == "skills":
        ctx.exit(run_skills(argv[1:]))

    configure_logging(bool(get_env_value(environ, "VERBOSE")))
    file_config = load_file_config(environ)
    invocation = resolve_invocation(
        argv, environ, base_dir=os.getcwd(), file_config=file_config
    )
    configure_logging(invocation.verbose)

    if invocation.show_help:
        click.echo(get_usage(environ))
        return

    descriptors = build_agent_descriptors(environ, file_config)
    if invocation.list_agents:
        print_agents(descriptors)
        return

    config = invocation.config
    selected = select_agent(descriptors, config.agent)
    if selected is None:
        err_console.print(
            f"[red]Missing agent.[/red] Pass --agent {_AGENT_CHOICES} or set "
            f"{ENV_PREFIX}AGENT (AGENT_RUN_AGENT legacy).",
            soft_wrap=True,
        )
        click.echo(get_usage(environ), err=True)
        ctx.exit(1)

    if not command_exists(selected.command):
        err_console.print(
            f"[red]Agent CLI not found:[/red] {escape(selected.command)}. Install it or set "
            f"{ENV_PREFIX}{selected.name.value.upper()}_CMD.",
            soft_wrap=True,
        )
        ctx.exit(1)

    if not Path(config.cwd).is_dir():
        raise ConfigError(f"Working directory does not exist: {config.cwd}")

    outcome = run_agent(selected, invocation)

    if config.output_format == OutputFormat.JSON:
        changes = collect_changes(config.cwd, config.max_bytes, config.include_content)
        click.echo(render_report(build_report(outcome, selected, config.cwd, changes)))
    else:
        line = failure_line(outcome.exit_code)
        if line:
            click.echo(line, err=True)


if __name__ == "__main__":
    main()
