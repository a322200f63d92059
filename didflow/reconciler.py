"""
Precondition reconciler.

`Reconciler.ensure(goal)` makes a declarative goal true. It first looks at the
records the agents already hold; if the goal is satisfied there it remembers
the existing artifact and returns without any protocol call. Otherwise it
ensures the goal's own preconditions and runs the full state machine.
"""

import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from didflow.agent import AgentHandle
from didflow.config import WaitConfig
from didflow.exceptions import DidFlowError, PreconditionUnsatisfiableError
from didflow.flows import ConnectionFlow, IdentityFlow, IssuanceFlow, PresentationFlow
from didflow.flows.connection import connection_label
from didflow.logging import get_logger
from didflow.memory import (
    ISSUED_CREDENTIAL,
    PRESENTATION,
    PUBLISHED_DID,
    SUBJECT_DID,
    connection_with,
)
from didflow.types.connections import Connection, ConnectionState
from didflow.types.credentials import CredentialState, IssueCredentialRecord
from didflow.types.dids import DidStatus, ManagedDid
from didflow.types.presentations import PresentationRecord, PresentationStatus
from didflow.waiting import StateWaiter, last

logger = get_logger("flow")


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Connected:
    """The inviter and the invitee share an established connection."""

    inviter: AgentHandle
    invitee: AgentHandle


@dataclass(frozen=True)
class HoldsCredential:
    """The holder holds a received credential issued over its connection with the issuer."""

    issuer: AgentHandle
    holder: AgentHandle
    schema_id: str | None = None


@dataclass(frozen=True)
class PresentedProof:
    """
    The verifier has accepted a proof presented by the holder.

    With an issuer, the holder's credential is ensured from it first;
    without one, the holder must already remember an issued credential.
    """

    verifier: AgentHandle
    holder: AgentHandle
    issuer: AgentHandle | None = None
    schema_id: str | None = None


@dataclass(frozen=True)
class HasDid:
    """The agent manages a DID it can receive credentials on."""

    agent: AgentHandle


@dataclass(frozen=True)
class HasPublishedDid:
    """The agent manages a DID published to the ledger."""

    agent: AgentHandle


Goal = Connected | HoldsCredential | PresentedProof | HasDid | HasPublishedDid


class Reconciler:
    """
    Idempotent provisioning of protocol end states.

    Example:
        ```python
        reconciler = Reconciler(WaitConfig(timeout=30))
        connection = reconciler.ensure(Connected(acme, bob))
        credential = reconciler.ensure(HoldsCredential(acme, bob))
        ```
    """

    def __init__(self, wait_config: WaitConfig | None = None) -> None:
        waiter = StateWaiter(wait_config)
        self.connections = ConnectionFlow(waiter)
        self.identity = IdentityFlow(waiter)
        self.issuance = IssuanceFlow(waiter)
        self.presentations = PresentationFlow(waiter)

        self._pair_locks: dict[tuple[str, str], threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._handlers: dict[type, Callable[[Any], Any]] = {
            Connected: self._ensure_connected,
            HoldsCredential: self._ensure_credential,
            PresentedProof: self._ensure_presentation,
            HasDid: self._ensure_did,
            HasPublishedDid: self._ensure_published_did,
        }

    def ensure(self, goal: Goal) -> Any:
        """
        Make `goal` true and return its artifact.

        Returns:
            Connected: the inviter's Connection
            HoldsCredential: the holder's IssueCredentialRecord
            PresentedProof: the verifier's PresentationRecord
            HasDid / HasPublishedDid: the ManagedDid

        Raises:
            PreconditionUnsatisfiableError: If a precondition of the goal failed
            TransportError, UnexpectedStateError, TimeoutWaitingForStateError:
                If the goal's own state machine failed
        """
        handler = self._handlers.get(type(goal))
        if handler is None:
            raise TypeError(f"Unsupported goal: {goal!r}")
        return handler(goal)

    def _ensure_precondition(self, goal: Goal) -> Any:
        try:
            return self.ensure(goal)
        except PreconditionUnsatisfiableError:
            raise
        except DidFlowError as e:
            raise PreconditionUnsatisfiableError(goal, e) from e

    # -- connections --------------------------------------------------------

    def find_connection(
        self, inviter: AgentHandle, invitee: AgentHandle
    ) -> tuple[Connection, Connection] | None:
        """
        Look up an established connection without changing anything.

        The inviter's record must be labelled for the invitee and be
        ConnectionResponseSent; the invitee's record must point at the
        inviter's DID and be ConnectionResponseReceived. A one-sided match
        counts as no connection.
        """
        label = connection_label(invitee.name)
        candidates = [
            c for c in inviter.client.connections.list()
            if c.label == label and c.state == ConnectionState.CONNECTION_RESPONSE_SENT
        ]
        if not candidates:
            return None

        received = {
            c.their_did: c for c in invitee.client.connections.list()
            if c.state == ConnectionState.CONNECTION_RESPONSE_RECEIVED
        }
        for inviter_connection in candidates:
            invitee_connection = received.get(inviter_connection.my_did)
            if invitee_connection is not None:
                return inviter_connection, invitee_connection
        return None

    def _ensure_connected(self, goal: Connected) -> Connection:
        inviter, invitee = goal.inviter, goal.invitee
        with self._pair_lock(inviter, invitee):
            found = self.find_connection(inviter, invitee)
            if found is not None:
                inviter_connection, invitee_connection = found
                logger.info(f"Reusing connection between {inviter.name} and {invitee.name}")
                inviter.remember(connection_with(invitee.name), inviter_connection)
                invitee.remember(connection_with(inviter.name), invitee_connection)
                return inviter_connection

            logger.info(f"Establishing connection between {inviter.name} and {invitee.name}")
            inviter_connection, _ = self.connections.establish(inviter, invitee)
            return inviter_connection

    def _pair_lock(self, inviter: AgentHandle, invitee: AgentHandle) -> threading.Lock:
        key = (inviter.name, invitee.name)
        with self._locks_guard:
            lock = self._pair_locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._pair_locks[key] = lock
            return lock

    # -- credentials --------------------------------------------------------

    def find_credential(
        self, holder: AgentHandle, schema_id: str | None = None
    ) -> IssueCredentialRecord | None:
        """
        The most recently added received credential of the holder.

        Restricted to `schema_id` when one is given.
        """
        return last(
            holder.client.credentials.list_records(),
            lambda r: r.protocol_state == CredentialState.CREDENTIAL_RECEIVED
            and (schema_id is None or r.schema_id == schema_id),
        )

    def _ensure_credential(self, goal: HoldsCredential) -> IssueCredentialRecord:
        issuer, holder = goal.issuer, goal.holder
        existing = self.find_credential(holder, goal.schema_id)
        if existing is not None:
            logger.info(f"Reusing credential {existing.thid} held by {holder.name}")
            holder.remember(ISSUED_CREDENTIAL, existing)
            return existing

        self._ensure_precondition(Connected(issuer, holder))
        self._ensure_precondition(HasDid(holder))
        self._ensure_precondition(HasPublishedDid(issuer))

        logger.info(f"Issuing a credential from {issuer.name} to {holder.name}")
        return self.issuance.run(issuer, holder, schema_id=goal.schema_id)

    # -- presentations ------------------------------------------------------

    def find_presentation(
        self, verifier: AgentHandle, holder: AgentHandle, schema_id: str | None = None
    ) -> PresentationRecord | None:
        """The most recently accepted presentation on the verifier's connection with the holder."""
        found = self.find_connection(verifier, holder)
        if found is None:
            return None
        verifier_connection, holder_connection = found

        record = last(
            verifier.client.presentations.list(),
            lambda r: r.status == PresentationStatus.PRESENTATION_ACCEPTED
            and r.connection_id == verifier_connection.connection_id
            and (schema_id is None or any(p.get("schemaId") == schema_id for p in r.proofs)),
        )
        if record is not None:
            verifier.remember(connection_with(holder.name), verifier_connection)
            holder.remember(connection_with(verifier.name), holder_connection)
        return record

    def _ensure_presentation(self, goal: PresentedProof) -> PresentationRecord:
        verifier, holder = goal.verifier, goal.holder
        existing = self.find_presentation(verifier, holder, goal.schema_id)
        if existing is not None:
            logger.info(f"Reusing presentation {existing.thid} accepted by {verifier.name}")
            verifier.remember(PRESENTATION, existing)
            return existing

        trust_issuers: list[str] = []
        if goal.issuer is not None:
            self._ensure_precondition(HoldsCredential(goal.issuer, holder, goal.schema_id))
            if PUBLISHED_DID in goal.issuer.memory:
                trust_issuers.append(goal.issuer.recall(PUBLISHED_DID, ManagedDid).did)
        elif ISSUED_CREDENTIAL not in holder.memory:
            raise PreconditionUnsatisfiableError(
                f"{holder.name} holds an issued credential",
                DidFlowError("NO_CREDENTIAL", f"{holder.name} remembers no issued credential"),
            )
        self._ensure_precondition(Connected(verifier, holder))

        logger.info(f"{verifier.name} requesting a proof from {holder.name}")
        return self.presentations.run(
            verifier, holder, schema_id=goal.schema_id, trust_issuers=trust_issuers
        )

    # -- DIDs ---------------------------------------------------------------

    def _ensure_did(self, goal: HasDid) -> ManagedDid:
        agent = goal.agent
        existing = last(agent.client.dids.list(), lambda d: d.status != DidStatus.DEACTIVATED)
        if existing is not None:
            agent.remember(SUBJECT_DID, existing)
            return existing
        return self.identity.create_unpublished_did(agent)

    def _ensure_published_did(self, goal: HasPublishedDid) -> ManagedDid:
        agent = goal.agent
        existing = last(agent.client.dids.list(), lambda d: d.status == DidStatus.PUBLISHED)
        if existing is not None:
            agent.remember(PUBLISHED_DID, existing)
            return existing
        self.identity.create_unpublished_did(agent)
        return self.identity.publish_did(agent)


__all__ = [
    "Reconciler",
    "Goal",
    "Connected",
    "HoldsCredential",
    "PresentedProof",
    "HasDid",
    "HasPublishedDid",
]
