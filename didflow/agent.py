"""
Agents taking part in a run and the typed registry that resolves them.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any

from didflow.client import CloudAgentClient
from didflow.config import AgentSettings
from didflow.events import EventChannel
from didflow.exceptions import ConfigurationError
from didflow.memory import FactStore
from didflow.transport import RetryConfig


class Role(str, Enum):
    """Part an agent plays in the issue/verify flow."""

    ISSUER = "issuer"
    HOLDER = "holder"
    VERIFIER = "verifier"


@dataclass(frozen=True)
class Agent:
    """Identity of a participant. Immutable for the whole run."""

    name: str
    endpoint: str
    auth_key: str | None = None
    webhook_url: str | None = None

    def __repr__(self) -> str:
        return f"Agent(name={self.name!r}, endpoint={self.endpoint!r})"


class AgentHandle:
    """
    Everything needed to act as one agent.

    Bundles the agent's API client, its event channel and its private
    remembered-fact store.
    """

    def __init__(
        self,
        agent: Agent,
        client: CloudAgentClient,
        events: EventChannel | None = None,
        memory: FactStore | None = None,
    ) -> None:
        self.agent = agent
        self.client = client
        self.events = events or EventChannel(agent.name)
        self.memory = memory or FactStore(agent.name)

    @classmethod
    def connect(
        cls,
        agent: Agent,
        timeout: float = CloudAgentClient.DEFAULT_TIMEOUT,
        retry_config: RetryConfig | None = None,
    ) -> "AgentHandle":
        """Build a handle talking to the agent's real API."""
        client = CloudAgentClient(
            base_url=agent.endpoint,
            auth_key=agent.auth_key,
            timeout=timeout,
            retry_config=retry_config,
        )
        return cls(agent, client)

    @property
    def name(self) -> str:
        return self.agent.name

    def remember(self, key: str, value: Any) -> None:
        self.memory.remember(key, value)

    def recall(self, key: str, expected_type: Any = None) -> Any:
        return self.memory.recall(key, expected_type)

    def close(self) -> None:
        self.client.close()

    def __repr__(self) -> str:
        return f"AgentHandle({self.name!r})"


class Cast:
    """
    Registry of the agents taking part in one scenario or iteration.

    Resolved once, then passed around explicitly; there is no global stage.
    """

    DEFAULT_NAMES = {Role.ISSUER: "Acme", Role.HOLDER: "Bob", Role.VERIFIER: "Faber"}

    def __init__(self, handles: dict[Role, AgentHandle]) -> None:
        missing = [role.value for role in Role if role not in handles]
        if missing:
            raise ConfigurationError(f"Cast is missing agents for roles: {', '.join(missing)}")
        names = [handle.name for handle in handles.values()]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"Agent names must be unique within a cast: {names}")
        self._handles = dict(handles)

    @classmethod
    def from_env(
        cls,
        names: dict[Role, str] | None = None,
        retry_config: RetryConfig | None = None,
    ) -> "Cast":
        """
        Build the cast from {NAME}_AGENT_URL style environment variables.

        Args:
            names: Agent name per role (default: Acme, Bob, Faber)

        Raises:
            ConfigurationError: If any agent is not configured
        """
        handles = {}
        for role, name in (names or cls.DEFAULT_NAMES).items():
            settings = AgentSettings.from_env(name)
            agent = Agent(
                name=settings.name,
                endpoint=settings.url,
                auth_key=settings.auth_key,
                webhook_url=settings.webhook_url,
            )
            handles[role] = AgentHandle.connect(agent, retry_config=retry_config)
        return cls(handles)

    def __getitem__(self, role: Role) -> AgentHandle:
        return self._handles[role]

    def __iter__(self) -> Iterator[AgentHandle]:
        return iter(self._handles.values())

    @property
    def issuer(self) -> AgentHandle:
        return self._handles[Role.ISSUER]

    @property
    def holder(self) -> AgentHandle:
        return self._handles[Role.HOLDER]

    @property
    def verifier(self) -> AgentHandle:
        return self._handles[Role.VERIFIER]

    def by_name(self, name: str) -> AgentHandle:
        """
        Resolve a handle by agent name.

        Raises:
            ConfigurationError: If no agent of that name is in the cast
        """
        for handle in self._handles.values():
            if handle.name == name:
                return handle
        raise ConfigurationError(f"No agent named {name!r} in the cast")

    def roles(self) -> Iterable[Role]:
        return self._handles.keys()

    def close(self) -> None:
        for handle in self._handles.values():
            handle.close()
