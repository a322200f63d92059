"""Credential issuance data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class CredentialState(str, Enum):
    """Issue-credential protocol states, as reported by the agent."""

    OFFER_PENDING = "OfferPending"
    OFFER_SENT = "OfferSent"
    OFFER_RECEIVED = "OfferReceived"
    REQUEST_PENDING = "RequestPending"
    REQUEST_GENERATED = "RequestGenerated"
    REQUEST_SENT = "RequestSent"
    REQUEST_RECEIVED = "RequestReceived"
    CREDENTIAL_PENDING = "CredentialPending"
    CREDENTIAL_GENERATED = "CredentialGenerated"
    CREDENTIAL_SENT = "CredentialSent"
    CREDENTIAL_RECEIVED = "CredentialReceived"
    PROBLEM_REPORT_PENDING = "ProblemReportPending"
    PROBLEM_REPORT_SENT = "ProblemReportSent"
    PROBLEM_REPORT_RECEIVED = "ProblemReportReceived"


ISSUER_PATH = (
    CredentialState.OFFER_PENDING,
    CredentialState.OFFER_SENT,
    CredentialState.REQUEST_RECEIVED,
    CredentialState.CREDENTIAL_PENDING,
    CredentialState.CREDENTIAL_GENERATED,
    CredentialState.CREDENTIAL_SENT,
)
HOLDER_PATH = (
    CredentialState.OFFER_RECEIVED,
    CredentialState.REQUEST_PENDING,
    CredentialState.REQUEST_GENERATED,
    CredentialState.REQUEST_SENT,
    CredentialState.CREDENTIAL_RECEIVED,
)
FAILURE_STATES = frozenset({
    CredentialState.PROBLEM_REPORT_PENDING,
    CredentialState.PROBLEM_REPORT_SENT,
    CredentialState.PROBLEM_REPORT_RECEIVED,
})


@dataclass
class IssueCredentialRecord:
    """One side's record of a credential exchange."""

    record_id: str
    thid: str
    role: str  # "Issuer" or "Holder"
    protocol_state: CredentialState
    connection_id: str | None = None
    schema_id: str | None = None
    claims: dict[str, Any] = field(default_factory=dict)
    credential: str | None = None  # opaque, base64
