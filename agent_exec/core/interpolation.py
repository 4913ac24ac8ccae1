"""Argument interpolation for agent command lines.

Template arguments may contain the {prompt} placeholder. Whatever the
templates do not consume is delivered according to the input mode: as a
trailing positional argument, over stdin, or not at all.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from agent_exec.core.models import PROMPT_PLACEHOLDER, AgentDescriptor, InputMode


@dataclass(frozen=True)
class AssembledArgs:
    """Final argument list plus the prompt to write to stdin, if any."""

    args: list[str]
    stdin_payload: str | None = None

    @property
    def uses_stdin(self) -> bool:
        return self.stdin_payload is not None


def interpolate_args(templates: Sequence[str], prompt: str) -> tuple[list[str], bool]:
    """Replace every {prompt} occurrence in the templates.

    Returns:
        Tuple of (args, used_prompt). used_prompt is True when at least one
        template contained the placeholder.
    """
    used = False
    out = []
    for template in templates:
        if PROMPT_PLACEHOLDER in template:
            used = True
            out.append(template.replace(PROMPT_PLACEHOLDER, prompt))
        else:
            out.append(template)
    return out, used


def has_flag(args: Sequence[str], flag: str) -> bool:
    """True if flag appears as its own token or in flag=value form."""
    return any(arg == flag or arg.startswith(f"{flag}=") for arg in args)


def build_agent_args(
    descriptor: AgentDescriptor,
    prompt: str,
    input_mode: InputMode,
    passthrough: Sequence[str] = (),
    model: str | None = None,
) -> AssembledArgs:
    """Assemble the argument list for one agent run.

    Order: interpolated templates, model flag/value, positional prompt,
    passthrough tokens. The model pair is skipped when the flag is already
    present in the templates or the passthrough.
    """
    interpolated, used_prompt = interpolate_args(descriptor.args, prompt)
    args = list(interpolated)

    if model and not has_flag([*interpolated, *passthrough], descriptor.model_flag):
        args.extend([descriptor.model_flag, model])

    stdin_payload = None
    if prompt:
        if input_mode in (InputMode.AUTO, InputMode.ARG):
            if not used_prompt:
                args.append(prompt)
        elif input_mode == InputMode.STDIN:
            stdin_payload = prompt

    args.extend(passthrough)
    return AssembledArgs(args=args, stdin_payload=stdin_payload)
