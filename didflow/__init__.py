"""didflow - drive DID cloud agents through connection, issuance and proof presentation."""

from didflow.agent import Agent, AgentHandle, Cast, Role
from didflow.client import CloudAgentClient
from didflow.config import AgentSettings, WaitConfig
from didflow.driver import FlowContext, FlowDriver, IterationResult
from didflow.events import EventChannel, Subscription, parse_webhook_event
from didflow.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    ConflictError,
    DidFlowError,
    FactNotFoundError,
    NotFoundError,
    PreconditionUnsatisfiableError,
    RateLimitedError,
    ServerError,
    TimeoutWaitingForStateError,
    TransportError,
    UnexpectedStateError,
    ValidationError,
)
from didflow.flows import ConnectionFlow, IdentityFlow, IssuanceFlow, PresentationFlow
from didflow.loadtest import LoadReport, LoadTest
from didflow.logging import configure_logging, get_logger
from didflow.memory import FactStore
from didflow.reconciler import (
    Connected,
    HasDid,
    HasPublishedDid,
    HoldsCredential,
    PresentedProof,
    Reconciler,
)
from didflow.transport import HTTPTransport, RetryConfig

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Agents
    "Agent",
    "AgentHandle",
    "Cast",
    "Role",
    "FactStore",
    # Client
    "CloudAgentClient",
    # Configuration
    "AgentSettings",
    "WaitConfig",
    # Events
    "EventChannel",
    "Subscription",
    "parse_webhook_event",
    # Flows
    "ConnectionFlow",
    "IdentityFlow",
    "IssuanceFlow",
    "PresentationFlow",
    # Reconciler
    "Reconciler",
    "Connected",
    "HoldsCredential",
    "PresentedProof",
    "HasDid",
    "HasPublishedDid",
    # Driver
    "FlowContext",
    "FlowDriver",
    "IterationResult",
    "LoadTest",
    "LoadReport",
    # Exceptions
    "DidFlowError",
    "ConfigurationError",
    "FactNotFoundError",
    "TransportError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ConflictError",
    "RateLimitedError",
    "ValidationError",
    "ServerError",
    "UnexpectedStateError",
    "TimeoutWaitingForStateError",
    "PreconditionUnsatisfiableError",
    # Transport
    "HTTPTransport",
    "RetryConfig",
    # Logging
    "configure_logging",
    "get_logger",
]
