"""
didflow agent API client.

Provides the primary interface for talking to one cloud agent.
"""

import os
from typing import Any

from didflow.clients import (
    ConnectionsClient,
    DidRegistrarClient,
    IssueCredentialsClient,
    PresentProofClient,
    SchemaRegistryClient,
)
from didflow.exceptions import ConfigurationError
from didflow.transport import HTTPTransport, RetryConfig


class CloudAgentClient:
    """
    Client for one agent's REST API.

    Aggregates all resource clients over a single transport.

    Example:
        ```python
        from didflow import CloudAgentClient

        client = CloudAgentClient("http://localhost:8080/cloud-agent", auth_key="...")
        invitation = client.connections.create_invitation(label="Connection with Bob")

        # Or create from environment variables
        client = CloudAgentClient.from_env("ACME")
        ```
    """

    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        base_url: str,
        auth_key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        retry_config: RetryConfig | None = None,
        transport: Any = None,
    ) -> None:
        """
        Initialize the agent client.

        Args:
            base_url: Base URL of the agent API
            auth_key: Opaque key sent with every call (optional)
            timeout: Request timeout in seconds (default: 30.0)
            retry_config: Configuration for retry behavior (default: no retries)
            transport: Pre-built transport; anything with HTTPTransport's
                request() and close() (used by didflow.testing)
        """
        self.base_url = base_url
        self.timeout = timeout

        self._transport = transport or HTTPTransport(
            base_url=base_url,
            auth_key=auth_key,
            timeout=timeout,
            retry_config=retry_config,
        )

        self.connections = ConnectionsClient(self._transport)
        self.credentials = IssueCredentialsClient(self._transport)
        self.presentations = PresentProofClient(self._transport)
        self.dids = DidRegistrarClient(self._transport)
        self.schemas = SchemaRegistryClient(self._transport)

    @classmethod
    def from_env(
        cls,
        prefix: str,
        timeout: float = DEFAULT_TIMEOUT,
        retry_config: RetryConfig | None = None,
    ) -> "CloudAgentClient":
        """
        Create a client from environment variables.

        Environment variables:
            {PREFIX}_AGENT_URL: Base URL of the agent API (required)
            {PREFIX}_AUTH_KEY: Auth key (optional)

        Raises:
            ConfigurationError: If the agent URL is not set
        """
        prefix = prefix.upper()
        base_url = os.environ.get(f"{prefix}_AGENT_URL")
        if not base_url:
            raise ConfigurationError(f"{prefix}_AGENT_URL environment variable not set")

        return cls(
            base_url=base_url,
            auth_key=os.environ.get(f"{prefix}_AUTH_KEY") or None,
            timeout=timeout,
            retry_config=retry_config,
        )

    @property
    def transport(self) -> Any:
        """Get the underlying transport (for advanced use cases)."""
        return self._transport

    def close(self) -> None:
        """Close the client and release resources."""
        self._transport.close()

    def __enter__(self) -> "CloudAgentClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
