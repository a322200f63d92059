"""DID registrar data models."""

from dataclasses import dataclass
from enum import Enum


class DidStatus(str, Enum):
    """Lifecycle of a DID managed by an agent."""

    CREATED = "CREATED"
    PUBLICATION_PENDING = "PUBLICATION_PENDING"
    PUBLISHED = "PUBLISHED"
    DEACTIVATED = "DEACTIVATED"


DID_PATH = (
    DidStatus.CREATED,
    DidStatus.PUBLICATION_PENDING,
    DidStatus.PUBLISHED,
)


@dataclass
class ManagedDid:
    """A DID held in an agent's wallet."""

    did: str
    long_form_did: str | None
    status: DidStatus

    @property
    def subject_id(self) -> str:
        """The form of the DID to use as a credential subject."""
        return self.long_form_did or self.did
