"""didflow type definitions.

This module exports the record and event types exchanged with agents.
"""

from didflow.types.connections import Connection, ConnectionState, Invitation
from didflow.types.credentials import CredentialState, IssueCredentialRecord
from didflow.types.dids import DidStatus, ManagedDid
from didflow.types.events import Event, EventType
from didflow.types.presentations import PresentationRecord, PresentationStatus
from didflow.types.schemas import CredentialSchema

__all__ = [
    # Connection types
    "Connection",
    "ConnectionState",
    "Invitation",
    # Credential issuance types
    "CredentialState",
    "IssueCredentialRecord",
    # Proof presentation types
    "PresentationRecord",
    "PresentationStatus",
    # DID registrar types
    "DidStatus",
    "ManagedDid",
    # Schema registry types
    "CredentialSchema",
    # Webhook event types
    "Event",
    "EventType",
]
