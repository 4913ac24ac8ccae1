"""Data models for agent-exec.

Uses Pydantic for the resolved configuration and for the structured run
report, so field order and omission rules are enforced in one place.
"""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_MAX_BYTES = 1_000_000
PROMPT_PLACEHOLDER = "{prompt}"
DEFAULT_MODEL_FLAG = "--model"


class AgentName(str, Enum):
    """Agents agent-exec knows how to launch."""

    CODEX = "codex"
    CLAUDE = "claude"
    CURSOR = "cursor"


class OutputFormat(str, Enum):
    """How the run outcome is reported."""

    JSON = "json"
    TEXT = "text"


class InputMode(str, Enum):
    """How the prompt reaches the agent process."""

    AUTO = "auto"
    ARG = "arg"
    STDIN = "stdin"
    NONE = "none"


# --- Configuration ---


class RunConfiguration(BaseModel):
    """Resolved settings for a single invocation. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    agent: AgentName | None = None
    cwd: str
    output_format: OutputFormat = OutputFormat.JSON
    input_mode: InputMode = InputMode.AUTO
    max_bytes: int = Field(default=DEFAULT_MAX_BYTES, gt=0)
    include_content: bool = True
    model: str | None = None


class Invocation(BaseModel):
    """A parsed command line: configuration plus prompt and passthrough tokens."""

    model_config = ConfigDict(frozen=True)

    config: RunConfiguration
    prompt: str = ""
    passthrough: list[str] = Field(default_factory=list)
    show_help: bool = False
    list_agents: bool = False
    verbose: bool = False


@dataclass(frozen=True)
class AgentDescriptor:
    """How to launch one agent.

    args are templates; any entry may contain PROMPT_PLACEHOLDER.
    """

    name: AgentName
    command: str
    args: tuple[str, ...] = ()
    model_flag: str = DEFAULT_MODEL_FLAG


# --- Run results ---


class RunOutcome(BaseModel):
    """What happened when the agent process ran."""

    exit_code: int
    args: list[str]
    agent: AgentName
    model: str | None = None


class ChangeRecord(BaseModel):
    """One path reported by git status, optionally with its content.

    binary=True never carries content; truncated=True means content holds
    only the first max_bytes bytes of the file.
    """

    model_config = ConfigDict(frozen=True)

    path: str = Field(min_length=1)
    status: str = Field(min_length=1)
    content: str | None = None
    truncated: bool | None = None
    binary: bool | None = None


class RunReport(BaseModel):
    """Structured record printed in JSON mode. Field order is part of the output."""

    model_config = ConfigDict(populate_by_name=True)

    ok: bool
    agent: AgentName
    model: str | None
    command: str
    args: list[str]
    cwd: str
    exit_code: int = Field(alias="exitCode")
    changes: list[ChangeRecord] = Field(default_factory=list)
