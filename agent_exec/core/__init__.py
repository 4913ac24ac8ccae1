"""Core modules for agent-exec."""

from agent_exec.core.models import (
    AgentDescriptor,
    AgentName,
    ChangeRecord,
    InputMode,
    Invocation,
    OutputFormat,
    RunConfiguration,
    RunOutcome,
    RunReport,
)

__all__ = [
    "AgentDescriptor",
    "AgentName",
    "ChangeRecord",
    "InputMode",
    "Invocation",
    "OutputFormat",
    "RunConfiguration",
    "RunOutcome",
    "RunReport",
]
