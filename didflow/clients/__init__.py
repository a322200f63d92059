"""didflow resource clients."""

from didflow.clients.connections import ConnectionsClient
from didflow.clients.credentials import IssueCredentialsClient
from didflow.clients.dids import DidRegistrarClient
from didflow.clients.presentations import PresentProofClient
from didflow.clients.schemas import SchemaRegistryClient

__all__ = [
    "ConnectionsClient",
    "IssueCredentialsClient",
    "PresentProofClient",
    "DidRegistrarClient",
    "SchemaRegistryClient",
]
