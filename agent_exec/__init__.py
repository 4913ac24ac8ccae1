"""agent-exec - run a coding agent CLI and report what it changed.

Launches Codex, Claude, or Cursor with an interpolated prompt, then
summarizes the working-tree changes from git status.
"""

__version__ = "0.1.0"
