"""
Credential-issuance state machine.

offer (issuer) -> request (holder) -> issue (issuer) -> receive (holder),
correlated across both agents by the exchange's thread id.
"""

from typing import Any

from didflow.agent import AgentHandle
from didflow.flows._base import Flow
from didflow.logging import get_logger
from didflow.memory import (
    CREDENTIAL_SCHEMA,
    ISSUED_CREDENTIAL,
    PUBLISHED_DID,
    SUBJECT_DID,
    connection_with,
)
from didflow.types.connections import Connection
from didflow.types.credentials import (
    FAILURE_STATES,
    HOLDER_PATH,
    ISSUER_PATH,
    CredentialState,
    IssueCredentialRecord,
)
from didflow.types.dids import ManagedDid
from didflow.types.events import EventType
from didflow.types.schemas import CredentialSchema
from didflow.waiting import first

logger = get_logger("flow")

PENDING_CREDENTIAL = "pendingCredential"

DEFAULT_CLAIMS: dict[str, Any] = {
    "emailAddress": "bob@example.com",
    "givenName": "Bob",
    "familyName": "Automation",
    "dateOfIssuance": "2020-11-13T20:20:39+00:00",
    "drivingLicenseID": "12345",
    "drivingClass": 3,
}


def _state(record: IssueCredentialRecord) -> CredentialState:
    return record.protocol_state


def _id(record: IssueCredentialRecord) -> str:
    return record.record_id


class IssuanceFlow(Flow):
    """State machine of the issue-credential protocol."""

    record_kind = "credential"

    def offer(
        self,
        issuer: AgentHandle,
        holder: AgentHandle,
        schema_id: str | None = None,
        claims: dict[str, Any] | None = None,
    ) -> IssueCredentialRecord:
        """
        Offer a credential to the holder over their connection.

        If no schema_id is given, the issuer's remembered schema is used when
        it has one.

        Raises:
            FactNotFoundError: If the issuer has no connection with the holder
                or no published DID
        """
        connection = issuer.recall(connection_with(holder.name), Connection)
        issuing_did = issuer.recall(PUBLISHED_DID, ManagedDid)
        if schema_id is None and CREDENTIAL_SCHEMA in issuer.memory:
            schema_id = issuer.recall(CREDENTIAL_SCHEMA, CredentialSchema).id

        record = issuer.client.credentials.create_offer(
            connection_id=connection.connection_id,
            issuing_did=issuing_did.did,
            claims=claims or DEFAULT_CLAIMS,
            schema_id=schema_id,
        )
        with self.opening(issuer, record.thid):
            trace = self.trace(issuer, record.thid, ISSUER_PATH, FAILURE_STATES)
            trace.observe(record.protocol_state, record.record_id)

            record = self._await(issuer, record.thid, CredentialState.OFFER_SENT, ISSUER_PATH)
        logger.info(f"{issuer.name} offered credential {record.thid} to {holder.name}")
        issuer.remember(PENDING_CREDENTIAL, record)
        return record

    def request(self, holder: AgentHandle, thid: str) -> IssueCredentialRecord:
        """
        Wait for the offer of thread `thid` to arrive and accept it.

        Raises:
            FactNotFoundError: If the holder has no DID to receive the credential on
        """
        offered = self._await(holder, thid, CredentialState.OFFER_RECEIVED, HOLDER_PATH)
        subject = holder.recall(SUBJECT_DID, ManagedDid)

        record = holder.client.credentials.accept_offer(offered.record_id, subject.subject_id)
        self.trace(holder, thid, HOLDER_PATH, FAILURE_STATES).observe(
            record.protocol_state, record.record_id
        )

        record = self._await(holder, thid, CredentialState.REQUEST_SENT, HOLDER_PATH)
        logger.info(f"{holder.name} requested credential {thid}")
        holder.remember(PENDING_CREDENTIAL, record)
        return record

    def issue(self, issuer: AgentHandle) -> IssueCredentialRecord:
        """Wait for the holder's request and issue the credential."""
        pending = issuer.recall(PENDING_CREDENTIAL, IssueCredentialRecord)
        requested = self._await(issuer, pending.thid, CredentialState.REQUEST_RECEIVED, ISSUER_PATH)

        record = issuer.client.credentials.issue(requested.record_id)
        self.trace(issuer, pending.thid, ISSUER_PATH, FAILURE_STATES).observe(
            record.protocol_state, record.record_id
        )

        record = self._await(issuer, pending.thid, CredentialState.CREDENTIAL_SENT, ISSUER_PATH)
        logger.info(f"{issuer.name} issued credential {pending.thid}")
        issuer.memory.forget(PENDING_CREDENTIAL)
        self.finish(issuer, pending.thid)
        return record

    def receive(self, holder: AgentHandle) -> IssueCredentialRecord:
        """
        Wait for the issued credential to arrive at the holder.

        Raises:
            UnexpectedStateError: If the credential arrived without the holder
                having requested it in this thread
        """
        pending = holder.recall(PENDING_CREDENTIAL, IssueCredentialRecord)
        record = self._await(holder, pending.thid, CredentialState.CREDENTIAL_RECEIVED, HOLDER_PATH)

        trace = self.trace(holder, pending.thid, HOLDER_PATH, FAILURE_STATES)
        trace.require_seen(
            {
                CredentialState.REQUEST_PENDING,
                CredentialState.REQUEST_GENERATED,
                CredentialState.REQUEST_SENT,
            },
            before=CredentialState.CREDENTIAL_RECEIVED,
        )

        logger.info(f"{holder.name} received credential {pending.thid}")
        holder.remember(ISSUED_CREDENTIAL, record)
        holder.memory.forget(PENDING_CREDENTIAL)
        self.finish(holder, pending.thid)
        return record

    def run(
        self,
        issuer: AgentHandle,
        holder: AgentHandle,
        schema_id: str | None = None,
        claims: dict[str, Any] | None = None,
    ) -> IssueCredentialRecord:
        """Run the whole exchange; returns the holder's received record."""
        offered = self.offer(issuer, holder, schema_id=schema_id, claims=claims)
        try:
            self.request(holder, offered.thid)
            self.issue(issuer)
            return self.receive(holder)
        finally:
            self.discard(offered.thid)

    def _await(
        self,
        handle: AgentHandle,
        thid: str,
        target: CredentialState,
        path: tuple[CredentialState, ...],
    ) -> IssueCredentialRecord:
        trace = self.trace(handle, thid, path, FAILURE_STATES)

        def fetch() -> IssueCredentialRecord | None:
            records = handle.client.credentials.list_records(thid=thid)
            return first(records, lambda record: record.thid == thid)

        with handle.events.subscribe(
            EventType.CREDENTIAL_UPDATED,
            lambda event: event.data.get("thid") == thid,
        ) as subscription:
            return self.waiter.until_reached(
                fetch,
                target,
                trace,
                _state,
                f"{handle.name} credential {thid}",
                subscription=subscription,
                id_of=_id,
            )
