"""
Proof-presentation state machine.

request (verifier) -> accept request (holder) -> acknowledge (verifier),
correlated across both agents by the exchange's thread id.
"""

import uuid

from didflow.agent import AgentHandle
from didflow.flows._base import Flow
from didflow.logging import get_logger
from didflow.memory import ISSUED_CREDENTIAL, PRESENTATION, connection_with
from didflow.types.connections import Connection
from didflow.types.credentials import IssueCredentialRecord
from didflow.types.events import EventType
from didflow.types.presentations import (
    FAILURE_STATES,
    PROVER_PATH,
    VERIFIER_PATH,
    PresentationRecord,
    PresentationStatus,
)
from didflow.waiting import first

logger = get_logger("flow")

PENDING_PRESENTATION = "pendingPresentation"
DEFAULT_DOMAIN = "https://example-verifier.com"


def _status(record: PresentationRecord) -> PresentationStatus:
    return record.status


def _id(record: PresentationRecord) -> str:
    return record.presentation_id


class PresentationFlow(Flow):
    """State machine of the present-proof protocol."""

    record_kind = "presentation"

    def request_proof(
        self,
        verifier: AgentHandle,
        holder: AgentHandle,
        schema_id: str | None = None,
        trust_issuers: list[str] | None = None,
        domain: str = DEFAULT_DOMAIN,
    ) -> PresentationRecord:
        """
        Ask the holder for a presentation over their connection.

        Raises:
            FactNotFoundError: If the verifier has no connection with the holder
        """
        connection = verifier.recall(connection_with(holder.name), Connection)
        proofs = []
        if schema_id is not None:
            proofs.append({"schemaId": schema_id, "trustIssuers": trust_issuers or []})

        record = verifier.client.presentations.request_presentation(
            connection_id=connection.connection_id,
            challenge=str(uuid.uuid4()),
            domain=domain,
            proofs=proofs,
        )
        with self.opening(verifier, record.thid):
            self.trace(verifier, record.thid, VERIFIER_PATH, FAILURE_STATES).observe(
                record.status, record.presentation_id
            )

            record = self._await(verifier, record.thid, PresentationStatus.REQUEST_SENT, VERIFIER_PATH)
        logger.info(f"{verifier.name} requested a proof from {holder.name}")
        verifier.remember(PENDING_PRESENTATION, record)
        return record

    def accept_request(self, holder: AgentHandle, thid: str) -> PresentationRecord:
        """
        Wait for the proof request of thread `thid` and answer it with the
        holder's issued credential.

        Raises:
            FactNotFoundError: If the holder has no issued credential
        """
        requested = self._await(holder, thid, PresentationStatus.REQUEST_RECEIVED, PROVER_PATH)
        credential = holder.recall(ISSUED_CREDENTIAL, IssueCredentialRecord)

        record = holder.client.presentations.accept_request(
            requested.presentation_id, [credential.record_id]
        )
        self.trace(holder, thid, PROVER_PATH, FAILURE_STATES).observe(
            record.status, record.presentation_id
        )

        record = self._await(holder, thid, PresentationStatus.PRESENTATION_SENT, PROVER_PATH)
        logger.info(f"{holder.name} presented proof {thid}")
        self.finish(holder, thid)
        return record

    def acknowledge(self, verifier: AgentHandle) -> PresentationRecord:
        """
        Wait for the presentation to be verified and accept it.

        Raises:
            UnexpectedStateError: If verification failed or the holder rejected the request
        """
        pending = verifier.recall(PENDING_PRESENTATION, PresentationRecord)
        verified = self._await(
            verifier, pending.thid, PresentationStatus.PRESENTATION_VERIFIED, VERIFIER_PATH
        )

        if verified.status == PresentationStatus.PRESENTATION_VERIFIED:
            record = verifier.client.presentations.accept_presentation(verified.presentation_id)
            self.trace(verifier, pending.thid, VERIFIER_PATH, FAILURE_STATES).observe(
                record.status, record.presentation_id
            )

        record = self._await(
            verifier, pending.thid, PresentationStatus.PRESENTATION_ACCEPTED, VERIFIER_PATH
        )
        logger.info(f"{verifier.name} acknowledged proof {pending.thid}")
        verifier.remember(PRESENTATION, record)
        verifier.memory.forget(PENDING_PRESENTATION)
        self.finish(verifier, pending.thid)
        return record

    def run(
        self,
        verifier: AgentHandle,
        holder: AgentHandle,
        schema_id: str | None = None,
        trust_issuers: list[str] | None = None,
    ) -> PresentationRecord:
        """Run the whole exchange; returns the verifier's accepted record."""
        requested = self.request_proof(
            verifier, holder, schema_id=schema_id, trust_issuers=trust_issuers
        )
        try:
            self.accept_request(holder, requested.thid)
            return self.acknowledge(verifier)
        finally:
            self.discard(requested.thid)

    def _await(
        self,
        handle: AgentHandle,
        thid: str,
        target: PresentationStatus,
        path: tuple[PresentationStatus, ...],
    ) -> PresentationRecord:
        trace = self.trace(handle, thid, path, FAILURE_STATES)

        def fetch() -> PresentationRecord | None:
            return first(
                handle.client.presentations.list(thid=thid),
                lambda record: record.thid == thid,
            )

        with handle.events.subscribe(
            EventType.PRESENTATION_UPDATED,
            lambda event: event.data.get("thid") == thid,
        ) as subscription:
            return self.waiter.until_reached(
                fetch,
                target,
                trace,
                _status,
                f"{handle.name} presentation {thid}",
                subscription=subscription,
                id_of=_id,
            )
