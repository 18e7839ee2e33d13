"""Exception types raised by Rollizr.

Agent invocations never raise these to callers of the orchestrator; they
surface only from configuration loading and from direct runner lookups.
"""


class RollizrError(Exception):
    """Base class for all Rollizr errors."""


class ConfigError(RollizrError):
    """Raised when config loading or validation fails."""


class UnknownAgentError(RollizrError):
    """Raised when an agent id is not part of the agent table."""

    def __init__(self, agent_id: str):
        super().__init__(f"Agent '{agent_id}' not found")
        self.agent_id = agent_id
