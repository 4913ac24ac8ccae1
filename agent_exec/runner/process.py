"""Local process execution for agent CLIs.

The agent runs directly on the host with the working directory set to the
target repository. Stream wiring is decided once per run by StreamPolicy:

- INHERIT: stdin/stdout/stderr are shared with the terminal (interactive)
- CAPTURE: stdout/stderr are piped and copied to our stderr, so stdout
  stays reserved for the JSON report

Child failures are data. A process that cannot be started is reported
with LAUNCH_FAILED_EXIT_CODE instead of an exception.
"""

import codecs
import logging
import subprocess
import sys
import threading
from collections.abc import Sequence
from enum import Enum
from typing import IO

from agent_exec.core.interpolation import build_agent_args
from agent_exec.core.models import AgentDescriptor, Invocation, OutputFormat, RunOutcome

logger = logging.getLogger(__name__)

LAUNCH_FAILED_EXIT_CODE = 127
_CHUNK_SIZE = 65536


class StreamPolicy(str, Enum):
    """How the child's standard streams are wired."""

    INHERIT = "inherit"
    CAPTURE = "capture"

    @classmethod
    def select(cls, output_format: OutputFormat, uses_stdin: bool) -> "StreamPolicy":
        """Capture when stdout must stay clean for JSON, or stdin carries the prompt."""
        if output_format == OutputFormat.JSON or uses_stdin:
            return cls.CAPTURE
        return cls.INHERIT


def _pump(source: IO[bytes], sink: IO[str], lock: threading.Lock) -> None:
    """Copy a child pipe into a text stream until EOF."""
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    try:
        for chunk in iter(lambda: source.read1(_CHUNK_SIZE), b""):
            text = decoder.decode(chunk)
            if text:
                with lock:
                    sink.write(text)
                    sink.flush()
        tail = decoder.decode(b"", final=True)
        if tail:
            with lock:
                sink.write(tail)
                sink.flush()
    finally:
        source.close()


def _write_stdin(stdin: IO[bytes], payload: str, command: str) -> None:
    """Write the prompt to the child and close its stdin."""
    try:
        stdin.write(payload.encode("utf-8"))
    except OSError as e:
        logger.debug(f"Could not write the prompt to {command}: {e}")
    try:
        stdin.close()
    except OSError:
        pass


class ProcessRunner:
    """Launch one child process and wait for it to exit.

    Args:
        sink: Text stream that receives captured child output. Defaults to
            sys.stderr as it is at run time.
    """

    def __init__(self, sink: IO[str] | None = None):
        self._sink = sink

    def run(
        self,
        command: str,
        args: Sequence[str],
        cwd: str,
        *,
        policy: StreamPolicy,
        stdin_payload: str | None = None,
    ) -> int:
        """Run command with args in cwd and return its exit code.

        A child killed by a signal reports 0, matching a close event that
        carries no explicit code.
        """
        capture = policy == StreamPolicy.CAPTURE
        pipe_stdin = stdin_payload is not None

        try:
            process = subprocess.Popen(
                [command, *args],
                cwd=cwd,
                stdin=subprocess.PIPE if pipe_stdin else None,
                stdout=subprocess.PIPE if capture else None,
                stderr=subprocess.PIPE if capture else None,
            )
        except OSError as e:
            logger.debug(f"Failed to launch {command}: {e}")
            return LAUNCH_FAILED_EXIT_CODE

        pumps: list[threading.Thread] = []
        if capture:
            sink = self._sink or sys.stderr
            lock = threading.Lock()
            for pipe in (process.stdout, process.stderr):
                if pipe is None:
                    continue
                thread = threading.Thread(target=_pump, args=(pipe, sink, lock), daemon=True)
                thread.start()
                pumps.append(thread)

        if pipe_stdin and process.stdin is not None:
            _write_stdin(process.stdin, stdin_payload, command)

        returncode = process.wait()
        for thread in pumps:
            thread.join()

        if returncode < 0:
            logger.debug(f"{command} terminated by signal {-returncode}")
            return 0
        return returncode


def run_agent(
    descriptor: AgentDescriptor,
    invocation: Invocation,
    runner: ProcessRunner | None = None,
) -> RunOutcome:
    """Assemble the agent's arguments and run it to completion."""
    config = invocation.config
    assembled = build_agent_args(
        descriptor,
        invocation.prompt,
        config.input_mode,
        invocation.passthrough,
        config.model,
    )
    policy = StreamPolicy.select(config.output_format, assembled.uses_stdin)
    logger.debug(
        f"Running {descriptor.command} with {len(assembled.args)} args "
        f"(policy={policy.value}, input={config.input_mode.value})"
    )

    exit_code = (runner or ProcessRunner()).run(
        descriptor.command,
        assembled.args,
        config.cwd,
        policy=policy,
        stdin_payload=assembled.stdin_payload,
    )
    return RunOutcome(
        exit_code=exit_code,
        args=assembled.args,
        agent=descriptor.name,
        model=config.model,
    )
