# conftest.py - Shared pytest fixtures for all tests
"""Shared pytest fixtures for the agent-exec test suite.

This module provides:
- A clean environment with no AGENT_EXEC_* / AGENT_RUN_* variables
- Temporary git repositories
- A fake agent script that records how it was invoked

Usage:
    Fixtures are discovered automatically by pytest.
"""

from __future__ import annotations

import json
import os
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Any

import pytest

FAKE_AGENT_SOURCE = '''\
"""Stand-in for an agent CLI. Behaviour is driven by FAKE_AGENT_* variables."""
import json
import os
import sys
from pathlib import Path

record = {"argv": sys.argv[1:], "cwd": os.getcwd(), "stdin": None}
if os.environ.get("FAKE_AGENT_READ_STDIN") == "1":
    record["stdin"] = sys.stdin.read()

stdout_text = os.environ.get("FAKE_AGENT_STDOUT")
if stdout_text:
    sys.stdout.write(stdout_text)
    sys.stdout.flush()

write_name = os.environ.get("FAKE_AGENT_WRITE")
if write_name:
    Path(write_name).write_text("written by agent\\n", encoding="utf-8")

record_path = os.environ.get("FAKE_AGENT_RECORD")
if record_path:
    Path(record_path).write_text(json.dumps(record), encoding="utf-8")

sys.exit(int(os.environ.get("FAKE_AGENT_EXIT", "0")))
'''


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove agent-exec and fake-agent variables inherited from the host."""
    for key in list(os.environ):
        if key.startswith(("AGENT_EXEC_", "AGENT_RUN_", "FAKE_AGENT_")):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Repository Fixtures
# =============================================================================


def _git(repo: Path, *args: str) -> None:
    subprocess.run(
        ["git", "-c", "user.email=test@example.com", "-c", "user.name=Test", *args],
        cwd=repo,
        check=True,
        capture_output=True,
    )


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Create a git repository with one committed file (README.md).

    Returns:
        Path to the repository root.
    """
    if shutil.which("git") is None:
        pytest.skip("git not installed")

    repo = tmp_path / "repo"
    repo.mkdir()
    _git(repo, "init", "-q")
    (repo / "README.md").write_text("# Test Project\n")
    _git(repo, "add", "README.md")
    _git(repo, "commit", "-q", "-m", "initial")
    return repo


@pytest.fixture
def plain_dir(tmp_path: Path) -> Path:
    """A directory that is not inside any git repository."""
    directory = tmp_path / "plain"
    directory.mkdir()
    return directory


# =============================================================================
# Fake Agent Fixtures
# =============================================================================


@pytest.fixture
def fake_agent_script(tmp_path: Path) -> Path:
    """Write the fake agent script and return its path."""
    script = tmp_path / "fake_agent.py"
    script.write_text(FAKE_AGENT_SOURCE, encoding="utf-8")
    return script


@pytest.fixture
def record_path(tmp_path: Path) -> Path:
    """File the fake agent writes its invocation record to."""
    return tmp_path / "record.json"


@pytest.fixture
def fake_agent_env(fake_agent_script: Path, record_path: Path) -> dict[str, str]:
    """Environment that points the codex agent at the fake agent script.

    The interpreter is the command and the script is the first template
    argument, so every real argument follows the script path.
    """
    return {
        "AGENT_EXEC_CODEX_CMD": sys.executable,
        "AGENT_EXEC_CODEX_ARGS": str(fake_agent_script),
        "FAKE_AGENT_RECORD": str(record_path),
    }


@pytest.fixture
def read_record(record_path: Path):
    """Return a loader for what the fake agent recorded about its invocation."""

    def _read() -> dict[str, Any]:
        return json.loads(record_path.read_text(encoding="utf-8"))

    return _read
