"""Webhook event data models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class EventType(str, Enum):
    """Notification types an agent pushes to its webhook."""

    CONNECTION_UPDATED = "ConnectionUpdated"
    CREDENTIAL_UPDATED = "IssueCredentialRecordUpdated"
    PRESENTATION_UPDATED = "PresentationUpdated"
    DID_STATUS_UPDATED = "DIDStatusUpdated"


@dataclass
class Event:
    """A single state-change notification."""

    id: str
    type: EventType
    ts: datetime
    data: dict[str, Any]
