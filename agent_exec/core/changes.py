"""Collect the working-tree changes an agent left behind.

Changes come from `git status --porcelain=v1` in the run directory. Each
entry can be enriched with the file's content, capped at max_bytes.

Enrichment is best-effort:
- A directory that is not a git repository yields no changes
- A file that cannot be read (deleted, permission denied) keeps its
  status entry but carries no content
"""

import logging
import subprocess
from pathlib import Path

from agent_exec.core.models import ChangeRecord

logger = logging.getLogger(__name__)

GIT_STATUS_COMMAND = ["git", "status", "--porcelain=v1"]
RENAME_SEPARATOR = " -> "

# Binary heuristic thresholds. Downstream consumers depend on stable
# classification, keep these values as they are.
BINARY_SAMPLE_BYTES = 8000
BINARY_NON_PRINTABLE_RATIO = 0.3
_PRINTABLE_CONTROL_BYTES = frozenset({9, 10, 13})


def is_probably_binary(data: bytes) -> bool:
    """Classify content as binary from its first BINARY_SAMPLE_BYTES bytes.

    Any NUL byte means binary. Otherwise the sample is binary when more
    than 30% of its bytes are outside tab/newline/CR and printable ASCII.
    """
    sample = data[:BINARY_SAMPLE_BYTES]
    non_printable = 0
    for byte in sample:
        if byte == 0:
            return True
        if byte not in _PRINTABLE_CONTROL_BYTES and not 32 <= byte <= 126:
            non_printable += 1
    return len(sample) > 0 and non_printable / len(sample) > BINARY_NON_PRINTABLE_RATIO


def parse_status_line(line: str) -> tuple[str, str] | None:
    """Split a porcelain v1 line into (status, path).

    Renames ("R  old -> new") resolve to the destination path. Returns None
    for lines without a path.
    """
    status = line[:2].strip()
    path = line[3:].strip()
    if RENAME_SEPARATOR in path:
        path = path.split(RENAME_SEPARATOR)[-1].strip()
    if not path or not status:
        return None
    return status, path


def read_change_content(path: str, status: str, file_path: Path, max_bytes: int) -> ChangeRecord:
    """Build a ChangeRecord with the file's content, if it can be read."""
    try:
        data = file_path.read_bytes()
    except OSError as e:
        logger.debug(f"No content for {path}: {e}")
        return ChangeRecord(path=path, status=status)

    if is_probably_binary(data):
        return ChangeRecord(path=path, status=status, binary=True)
    if len(data) > max_bytes:
        return ChangeRecord(
            path=path,
            status=status,
            content=data[:max_bytes].decode("utf-8", errors="replace"),
            truncated=True,
        )
    return ChangeRecord(path=path, status=status, content=data.decode("utf-8", errors="replace"))


def _git_status(cwd: str) -> str | None:
    try:
        result = subprocess.run(
            GIT_STATUS_COMMAND,
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            capture_output=True,
        )
    except OSError as e:
        logger.warning(f"git status could not be run in {cwd}: {e}")
        return None
    if result.returncode != 0:
        logger.debug(f"git status exited with {result.returncode} in {cwd}; reporting no changes")
        return None
    return result.stdout.decode("utf-8", errors="replace")


def collect_changes(cwd: str, max_bytes: int, include_content: bool = True) -> list[ChangeRecord]:
    """List changed paths in cwd, reading each file in turn when include_content is set."""
    output = _git_status(cwd)
    if output is None:
        return []

    root = Path(cwd)
    changes = []
    for line in output.split("\n"):
        line = line.removesuffix("\r")
        parsed = parse_status_line(line)
        if parsed is None:
            continue
        status, path = parsed
        if include_content:
            changes.append(read_change_content(path, status, (root / path).resolve(), max_bytes))
        else:
            changes.append(ChangeRecord(path=path, status=status))
    return changes
