"""Render a run outcome as a JSON report or a one-line diagnostic."""

import json

from agent_exec.core.models import AgentDescriptor, ChangeRecord, RunOutcome, RunReport


def build_report(
    outcome: RunOutcome,
    descriptor: AgentDescriptor,
    cwd: str,
    changes: list[ChangeRecord],
) -> RunReport:
    return RunReport(
        ok=outcome.exit_code == 0,
        agent=outcome.agent,
        model=outcome.model,
        command=descriptor.command,
        args=list(outcome.args),
        cwd=cwd,
        exit_code=outcome.exit_code,
        changes=changes,
    )


def report_to_dict(report: RunReport) -> dict:
    """Serialize the report in its stable field order.

    model stays in the output as null; unset change fields are dropped.
    """
    payload = report.model_dump(mode="json", by_alias=True, exclude={"changes"})
    payload["changes"] = [
        change.model_dump(mode="json", exclude_none=True) for change in report.changes
    ]
    return payload


def render_report(report: RunReport) -> str:
    return json.dumps(report_to_dict(report), indent=2, ensure_ascii=False)


def failure_line(exit_code: int) -> str | None:
    """Diagnostic for text mode: nothing on success, one line otherwise."""
    if exit_code == 0:
        return None
    return f"agent-exec exited with code {exit_code}"
