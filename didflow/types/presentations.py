"""Proof presentation data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class PresentationStatus(str, Enum):
    """Present-proof protocol statuses, as reported by the agent."""

    REQUEST_PENDING = "RequestPending"
    REQUEST_SENT = "RequestSent"
    REQUEST_RECEIVED = "RequestReceived"
    REQUEST_REJECTED = "RequestRejected"
    PRESENTATION_PENDING = "PresentationPending"
    PRESENTATION_GENERATED = "PresentationGenerated"
    PRESENTATION_SENT = "PresentationSent"
    PRESENTATION_RECEIVED = "PresentationReceived"
    PRESENTATION_VERIFIED = "PresentationVerified"
    PRESENTATION_VERIFICATION_FAILED = "PresentationVerificationFailed"
    PRESENTATION_ACCEPTED = "PresentationAccepted"
    PRESENTATION_REJECTED = "PresentationRejected"
    PROBLEM_REPORT_PENDING = "ProblemReportPending"
    PROBLEM_REPORT_SENT = "ProblemReportSent"
    PROBLEM_REPORT_RECEIVED = "ProblemReportReceived"


VERIFIER_PATH = (
    PresentationStatus.REQUEST_PENDING,
    PresentationStatus.REQUEST_SENT,
    PresentationStatus.PRESENTATION_RECEIVED,
    PresentationStatus.PRESENTATION_VERIFIED,
    PresentationStatus.PRESENTATION_ACCEPTED,
)
PROVER_PATH = (
    PresentationStatus.REQUEST_RECEIVED,
    PresentationStatus.PRESENTATION_PENDING,
    PresentationStatus.PRESENTATION_GENERATED,
    PresentationStatus.PRESENTATION_SENT,
)
FAILURE_STATES = frozenset({
    PresentationStatus.REQUEST_REJECTED,
    PresentationStatus.PRESENTATION_VERIFICATION_FAILED,
    PresentationStatus.PRESENTATION_REJECTED,
    PresentationStatus.PROBLEM_REPORT_PENDING,
    PresentationStatus.PROBLEM_REPORT_SENT,
    PresentationStatus.PROBLEM_REPORT_RECEIVED,
})


@dataclass
class PresentationRecord:
    """One side's record of a proof presentation exchange."""

    presentation_id: str
    thid: str
    role: str  # "Verifier" or "Prover"
    status: PresentationStatus
    connection_id: str | None = None
    proofs: list[dict[str, Any]] = field(default_factory=list)
    data: list[str] = field(default_factory=list)  # opaque presentations
