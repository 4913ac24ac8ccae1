"""Agent descriptors and executable lookup.

Each known agent has one default descriptor. Overrides come from the YAML
config file (agents.<name>) and then from the environment:

- AGENT_EXEC_<AGENT>_CMD: executable name
- AGENT_EXEC_<AGENT>_ARGS: whitespace-separated argument templates
- AGENT_EXEC_MODEL_FLAG_<AGENT>, then AGENT_EXEC_MODEL_FLAG: model flag
"""

import shutil
from collections.abc import Mapping
from typing import Any

from agent_exec.core.config import get_env_value
from agent_exec.core.models import DEFAULT_MODEL_FLAG, AgentDescriptor, AgentName

DEFAULT_AGENTS: tuple[AgentDescriptor, ...] = (
    AgentDescriptor(name=AgentName.CODEX, command="codex"),
    AgentDescriptor(name=AgentName.CLAUDE, command="claude"),
    AgentDescriptor(name=AgentName.CURSOR, command="agent"),
)


def split_args(value: object) -> tuple[str, ...]:
    """Split an argument template value into tokens.

    Strings split on whitespace; lists keep their (stringified) entries.
    """
    if isinstance(value, str):
        return tuple(value.split())
    if isinstance(value, (list, tuple)):
        return tuple(str(item) for item in value if str(item))
    return ()


def _agent_file_section(file_config: Mapping[str, Any], name: AgentName) -> Mapping[str, Any]:
    agents = file_config.get("agents")
    if not isinstance(agents, dict):
        return {}
    section = agents.get(name.value)
    return section if isinstance(section, dict) else {}


def resolve_model_flag(
    name: AgentName,
    environ: Mapping[str, str],
    file_config: Mapping[str, Any] | None = None,
) -> str:
    file_config = file_config or {}
    section = _agent_file_section(file_config, name)
    key = name.value.upper()
    return (
        get_env_value(environ, f"MODEL_FLAG_{key}")
        or get_env_value(environ, "MODEL_FLAG")
        or _string_or_none(section.get("model_flag"))
        or _string_or_none(file_config.get("model_flag"))
        or DEFAULT_MODEL_FLAG
    )


def _string_or_none(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def build_agent_descriptors(
    environ: Mapping[str, str],
    file_config: Mapping[str, Any] | None = None,
) -> list[AgentDescriptor]:
    """Apply config-file and environment overrides to the default descriptors."""
    file_config = file_config or {}
    descriptors = []
    for default in DEFAULT_AGENTS:
        section = _agent_file_section(file_config, default.name)
        key = default.name.value.upper()

        command = (
            get_env_value(environ, f"{key}_CMD")
            or _string_or_none(section.get("cmd"))
            or default.command
        )
        env_args = get_env_value(environ, f"{key}_ARGS")
        if env_args is not None:
            args = split_args(env_args)
        elif "args" in section:
            args = split_args(section["args"])
        else:
            args = default.args

        descriptors.append(
            AgentDescriptor(
                name=default.name,
                command=command,
                args=args,
                model_flag=resolve_model_flag(default.name, environ, file_config),
            )
        )
    return descriptors


def select_agent(
    descriptors: list[AgentDescriptor], name: AgentName | None
) -> AgentDescriptor | None:
    if name is None:
        return None
    for descriptor in descriptors:
        if descriptor.name == name:
            return descriptor
    return None


def command_exists(command: str) -> bool:
    """Check whether command resolves on PATH (or is an executable path)."""
    return shutil.which(command) is not None
