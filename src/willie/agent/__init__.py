"""Agent process launching."""

from .launcher import AgentExitStatus, AgentLauncher, FakeAgentLauncher, SubprocessAgentLauncher

__all__ = [
    "AgentExitStatus",
    "AgentLauncher",
    "FakeAgentLauncher",
    "SubprocessAgentLauncher",
]
