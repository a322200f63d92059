"""Connection-related data models."""

from dataclasses import dataclass
from enum import Enum


class ConnectionState(str, Enum):
    """DID-exchange connection states, as reported by the agent."""

    INVITATION_GENERATED = "InvitationGenerated"
    INVITATION_RECEIVED = "InvitationReceived"
    CONNECTION_REQUEST_PENDING = "ConnectionRequestPending"
    CONNECTION_REQUEST_SENT = "ConnectionRequestSent"
    CONNECTION_REQUEST_RECEIVED = "ConnectionRequestReceived"
    CONNECTION_RESPONSE_PENDING = "ConnectionResponsePending"
    CONNECTION_RESPONSE_SENT = "ConnectionResponseSent"
    CONNECTION_RESPONSE_RECEIVED = "ConnectionResponseReceived"
    PROBLEM_REPORT_PENDING = "ProblemReportPending"
    PROBLEM_REPORT_SENT = "ProblemReportSent"
    PROBLEM_REPORT_RECEIVED = "ProblemReportReceived"
    INVITATION_EXPIRED = "InvitationExpired"


# Ordered paths each side walks through
INVITER_PATH = (
    ConnectionState.INVITATION_GENERATED,
    ConnectionState.CONNECTION_REQUEST_RECEIVED,
    ConnectionState.CONNECTION_RESPONSE_PENDING,
    ConnectionState.CONNECTION_RESPONSE_SENT,
)
INVITEE_PATH = (
    ConnectionState.INVITATION_RECEIVED,
    ConnectionState.CONNECTION_REQUEST_PENDING,
    ConnectionState.CONNECTION_REQUEST_SENT,
    ConnectionState.CONNECTION_RESPONSE_RECEIVED,
)
FAILURE_STATES = frozenset({
    ConnectionState.PROBLEM_REPORT_PENDING,
    ConnectionState.PROBLEM_REPORT_SENT,
    ConnectionState.PROBLEM_REPORT_RECEIVED,
    ConnectionState.INVITATION_EXPIRED,
})


@dataclass
class Invitation:
    """Out-of-band invitation carried by an inviter's connection record."""

    id: str
    type: str
    from_did: str
    invitation_url: str

    @property
    def oob(self) -> str:
        """The encoded invitation, i.e. the `_oob` query value of the URL."""
        _, _, query = self.invitation_url.partition("_oob=")
        return query.split("&", 1)[0]


@dataclass
class Connection:
    """One side's view of a peer connection."""

    connection_id: str
    thid: str
    label: str | None
    my_did: str | None
    their_did: str | None
    role: str  # "Inviter" or "Invitee"
    state: ConnectionState
    invitation: Invitation | None = None
