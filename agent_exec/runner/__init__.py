"""Process execution for agent CLIs."""

from agent_exec.runner.process import ProcessRunner, StreamPolicy, run_agent

__all__ = ["ProcessRunner", "StreamPolicy", "run_agent"]
