"""
Environment configuration for didflow runs.

Each agent is configured with a name-prefixed set of variables, e.g. for Acme:
ACME_AGENT_URL, ACME_AUTH_KEY, ACME_AGENT_WEBHOOK_HOST, ACME_AGENT_WEBHOOK_PORT.
"""

import os
from dataclasses import dataclass

from didflow.exceptions import ConfigurationError


@dataclass(frozen=True)
class WaitConfig:
    """Bounds for every wait on an asynchronous state change."""

    timeout: float = 60.0  # seconds before TimeoutWaitingForStateError
    poll_interval: float = 0.5  # seconds between record listings

    @classmethod
    def from_env(cls) -> "WaitConfig":
        """
        Read DIDFLOW_WAIT_TIMEOUT and DIDFLOW_POLL_INTERVAL.

        Raises:
            ConfigurationError: If a value is not a positive number
        """
        return cls(
            timeout=_positive_float("DIDFLOW_WAIT_TIMEOUT", cls.timeout),
            poll_interval=_positive_float("DIDFLOW_POLL_INTERVAL", cls.poll_interval),
        )


@dataclass(frozen=True)
class AgentSettings:
    """Connection settings of one agent."""

    name: str
    url: str
    auth_key: str | None = None
    webhook_host: str | None = None
    webhook_port: int | None = None

    @property
    def webhook_url(self) -> str | None:
        if not self.webhook_host:
            return None
        if self.webhook_port is None:
            return f"http://{self.webhook_host}"
        return f"http://{self.webhook_host}:{self.webhook_port}"

    @classmethod
    def from_env(cls, name: str) -> "AgentSettings":
        """
        Read the settings of the agent called `name`.

        Raises:
            ConfigurationError: If {NAME}_AGENT_URL is missing or the port is not an integer
        """
        prefix = name.upper()
        url = os.environ.get(f"{prefix}_AGENT_URL")
        if not url:
            raise ConfigurationError(f"{prefix}_AGENT_URL environment variable not set")

        port_raw = os.environ.get(f"{prefix}_AGENT_WEBHOOK_PORT")
        port = None
        if port_raw:
            try:
                port = int(port_raw)
            except ValueError:
                raise ConfigurationError(
                    f"Invalid {prefix}_AGENT_WEBHOOK_PORT: {port_raw}. Must be an integer"
                ) from None

        return cls(
            name=name,
            url=url,
            auth_key=os.environ.get(f"{prefix}_AUTH_KEY") or None,
            webhook_host=os.environ.get(f"{prefix}_AGENT_WEBHOOK_HOST") or None,
            webhook_port=port,
        )


def _positive_float(variable: str, default: float) -> float:
    raw = os.environ.get(variable)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"Invalid {variable}: {raw}. Must be a number") from None
    if value <= 0:
        raise ConfigurationError(f"Invalid {variable}: {raw}. Must be positive")
    return value
