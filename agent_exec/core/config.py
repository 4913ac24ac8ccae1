"""Configuration resolution for agent-exec.

Layers, lowest precedence first:
- Built-in defaults
- Optional YAML config file named by AGENT_EXEC_CONFIG
- Environment variables (AGENT_EXEC_* primary, AGENT_RUN_* legacy alias)
- Command-line flags, scanned left to right (later flags win)

resolve_invocation() is pure: it only reads the mappings it is given.
"""

import logging
import math
import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import click
import yaml

from agent_exec.core.models import (
    DEFAULT_MAX_BYTES,
    AgentName,
    InputMode,
    Invocation,
    OutputFormat,
    RunConfiguration,
)

logger = logging.getLogger(__name__)

ENV_PREFIX = "AGENT_EXEC_"
LEGACY_ENV_PREFIX = "AGENT_RUN_"
PASSTHROUGH_DELIMITER = "--"


class AgentExecError(Exception):
    """Base error for agent-exec."""

    pass


class ConfigError(AgentExecError, click.ClickException):
    """Invalid command line or configuration. Nothing is launched.

    Raised inside the click command, it prints as "Error: <message>" and
    exits with status 1.
    """

    pass


def get_env_value(environ: Mapping[str, str], name: str) -> str | None:
    """Look up NAME under the primary namespace, then the legacy alias.

    A primary variable that is set wins even when it is empty.
    """
    primary = f"{ENV_PREFIX}{name}"
    if primary in environ:
        return environ[primary]
    return environ.get(f"{LEGACY_ENV_PREFIX}{name}")


def normalize_agent(value: object) -> AgentName | None:
    """Map a raw agent value to AgentName, or None when it is not a known agent."""
    if isinstance(value, AgentName):
        return value
    if not isinstance(value, str):
        return None
    try:
        return AgentName(value)
    except ValueError:
        return None


def normalize_format(value: object) -> OutputFormat:
    try:
        return OutputFormat(value)
    except ValueError:
        return OutputFormat.JSON


def normalize_input(value: object) -> InputMode:
    try:
        return InputMode(value)
    except ValueError:
        return InputMode.AUTO


def normalize_max_bytes(value: object) -> int:
    """Parse a per-file byte cap. Non-numeric or non-positive values give the default."""
    if isinstance(value, bool) or value is None:
        return DEFAULT_MAX_BYTES
    if isinstance(value, int):
        return value if value > 0 else DEFAULT_MAX_BYTES
    if isinstance(value, float):
        parsed = value
    elif isinstance(value, str):
        try:
            return normalize_max_bytes(int(value.strip()))
        except ValueError:
            pass
        try:
            parsed = float(value.strip())
        except ValueError:
            return DEFAULT_MAX_BYTES
    else:
        return DEFAULT_MAX_BYTES

    if not math.isfinite(parsed) or parsed < 1:
        return DEFAULT_MAX_BYTES
    return int(parsed)


def _to_optional_string(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def load_file_config(environ: Mapping[str, str]) -> dict[str, Any]:
    """Load the YAML config file named by AGENT_EXEC_CONFIG, if any.

    Returns an empty dict when no file is configured or it cannot be used.
    """
    path_value = get_env_value(environ, "CONFIG")
    if not path_value:
        return {}

    path = Path(path_value).expanduser()
    if not path.is_file():
        logger.warning(f"Config file not found: {path}")
        return {}
    try:
        parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        logger.warning(f"Ignoring unreadable config file {path}: {e}")
        return {}
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        logger.warning(f"Ignoring config file {path}: top level must be a mapping")
        return {}
    return parsed


def _resolve_dir(value: str, base_dir: str) -> str:
    return os.path.abspath(os.path.join(base_dir, os.path.expanduser(value)))


def _require_value(argv: Sequence[str], index: int, flag: str) -> str:
    if index + 1 >= len(argv) or argv[index + 1] == "":
        raise ConfigError(f"Missing value for {flag}.")
    return argv[index + 1]


def _optional_value(argv: Sequence[str], index: int) -> str | None:
    return argv[index + 1] if index + 1 < len(argv) else None


def resolve_invocation(
    argv: Sequence[str],
    environ: Mapping[str, str],
    *,
    base_dir: str,
    file_config: Mapping[str, Any] | None = None,
) -> Invocation:
    """Build the Invocation for one run.

    Args:
        argv: Command-line tokens, without the program name
        environ: Environment mapping (usually os.environ)
        base_dir: Directory relative paths are resolved against
        file_config: Parsed YAML config file, if one was loaded

    Raises:
        ConfigError: A value-taking flag has no value, or --agent names an
            unknown agent
    """
    file_config = file_config or {}

    # Defaults, then config file, then environment
    agent = normalize_agent(file_config.get("agent"))
    output_format = normalize_format(file_config.get("format", OutputFormat.JSON.value))
    input_mode = normalize_input(file_config.get("input", InputMode.AUTO.value))
    max_bytes = normalize_max_bytes(file_config.get("max_bytes", DEFAULT_MAX_BYTES))
    include_content = file_config.get("include_content", True) is not False
    model = _to_optional_string(file_config.get("model"))
    cwd = base_dir
    file_dir = _to_optional_string(file_config.get("dir"))
    if file_dir:
        cwd = _resolve_dir(file_dir, base_dir)

    env_agent = get_env_value(environ, "AGENT")
    if env_agent is not None:
        agent = normalize_agent(env_agent)
    env_format = get_env_value(environ, "FORMAT")
    if env_format is not None:
        output_format = normalize_format(env_format)
    env_input = get_env_value(environ, "INPUT")
    if env_input is not None:
        input_mode = normalize_input(env_input)
    env_max_bytes = get_env_value(environ, "MAX_BYTES")
    if env_max_bytes is not None:
        max_bytes = normalize_max_bytes(env_max_bytes)
    if get_env_value(environ, "NO_CONTENT"):
        include_content = False
    model = get_env_value(environ, "MODEL") or model
    env_dir = get_env_value(environ, "DIR")
    if env_dir:
        cwd = _resolve_dir(env_dir, base_dir)
    verbose = bool(get_env_value(environ, "VERBOSE"))

    show_help = False
    list_agents = False
    positional: list[str] = []
    passthrough: list[str] = []

    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg == PASSTHROUGH_DELIMITER:
            passthrough.extend(argv[i + 1 :])
            break
        if arg in ("-h", "--help"):
            show_help = True
        elif arg == "--list":
            list_agents = True
        elif arg in ("-v", "--verbose"):
            verbose = True
        elif arg in ("-a", "--agent"):
            value = _require_value(argv, i, arg)
            agent = normalize_agent(value)
            if agent is None:
                names = ", ".join(a.value for a in AgentName)
                raise ConfigError(f"Invalid agent: {value}. Use {names}.")
            i += 1
        elif arg in ("-d", "--dir"):
            cwd = _resolve_dir(_require_value(argv, i, arg), base_dir)
            i += 1
        elif arg in ("-m", "--model", "--model-id"):
            model = _require_value(argv, i, arg)
            i += 1
        elif arg in ("-f", "--format"):
            output_format = normalize_format(_optional_value(argv, i))
            i += 1
        elif arg == "--json":
            output_format = OutputFormat.JSON
        elif arg == "--text":
            output_format = OutputFormat.TEXT
        elif arg == "--input":
            input_mode = normalize_input(_optional_value(argv, i))
            i += 1
        elif arg == "--arg":
            input_mode = InputMode.ARG
        elif arg == "--stdin":
            input_mode = InputMode.STDIN
        elif arg == "--no-input":
            input_mode = InputMode.NONE
        elif arg == "--max-bytes":
            max_bytes = normalize_max_bytes(_optional_value(argv, i))
            i += 1
        elif arg == "--no-content":
            include_content = False
        elif arg == "--content":
            include_content = True
        else:
            positional.append(arg)
        i += 1

    config = RunConfiguration(
        agent=agent,
        cwd=cwd,
        output_format=output_format,
        input_mode=input_mode,
        max_bytes=max_bytes,
        include_content=include_content,
        model=model,
    )
    return Invocation(
        config=config,
        prompt=" ".join(positional).strip(),
        passthrough=passthrough,
        show_help=show_help,
        list_agents=list_agents,
        verbose=verbose,
    )
