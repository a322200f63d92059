"""
Connection state machine.

Drives invitation -> request -> response between an inviter and an invitee
until the inviter's record is ConnectionResponseSent and the invitee's record
is ConnectionResponseReceived.
"""

from didflow.agent import AgentHandle
from didflow.exceptions import UnexpectedStateError
from didflow.flows._base import Flow
from didflow.logging import get_logger
from didflow.memory import connection_with
from didflow.types.connections import (
    FAILURE_STATES,
    INVITEE_PATH,
    INVITER_PATH,
    Connection,
    ConnectionState,
)
from didflow.types.events import EventType

logger = get_logger("flow")


def connection_label(invitee_name: str) -> str:
    """Label an inviter gives its record of a connection with `invitee_name`."""
    return f"Connection with {invitee_name}"


def _state(connection: Connection) -> ConnectionState:
    return connection.state


def _id(connection: Connection) -> str:
    return connection.connection_id


class ConnectionFlow(Flow):
    """State machine of the DID-exchange connection protocol."""

    record_kind = "connection"

    def generate_invitation(self, inviter: AgentHandle, invitee: AgentHandle) -> Connection:
        """
        Have the inviter create an invitation meant for the invitee.

        The inviter remembers the new record as its connection with the invitee.
        """
        connection = inviter.client.connections.create_invitation(
            label=connection_label(invitee.name)
        )
        if connection.invitation is None:
            raise UnexpectedStateError(
                connection.connection_id,
                connection.state.value,
                ConnectionState.INVITATION_GENERATED.value,
                f"{inviter.name} created connection {connection.connection_id} without an invitation",
            )

        with self.opening(inviter, connection.connection_id):
            trace = self.trace(inviter, connection.connection_id, INVITER_PATH, FAILURE_STATES)
            trace.observe(connection.state, connection.connection_id)

        logger.info(f"{inviter.name} generated an invitation for {invitee.name}")
        inviter.remember(connection_with(invitee.name), connection)
        return connection

    def receive_invitation(self, invitee: AgentHandle, inviter: AgentHandle) -> Connection:
        """
        Have the invitee accept the inviter's pending invitation.

        Raises:
            FactNotFoundError: If the inviter has not generated an invitation
        """
        invitation = inviter.recall(connection_with(invitee.name), Connection).invitation
        if invitation is None:
            raise UnexpectedStateError(
                "?",
                "no invitation",
                ConnectionState.INVITATION_GENERATED.value,
                f"{inviter.name} holds no invitation for {invitee.name}",
            )

        connection = invitee.client.connections.accept_invitation(invitation.oob)
        with self.opening(invitee, connection.connection_id):
            trace = self.trace(invitee, connection.connection_id, INVITEE_PATH, FAILURE_STATES)
            trace.observe(connection.state, connection.connection_id)

        logger.info(f"{invitee.name} accepted the invitation of {inviter.name}")
        invitee.remember(connection_with(inviter.name), connection)
        return connection

    def send_request(self, invitee: AgentHandle, inviter: AgentHandle) -> Connection:
        """
        Wait for the invitee's request to go out and reach the inviter.

        Returns:
            The inviter's record, at least ConnectionRequestReceived
        """
        invitee_connection = invitee.recall(connection_with(inviter.name), Connection)
        self._await(invitee, invitee_connection, INVITEE_PATH, ConnectionState.CONNECTION_REQUEST_SENT)

        inviter_connection = inviter.recall(connection_with(invitee.name), Connection)
        return self._await(
            inviter, inviter_connection, INVITER_PATH, ConnectionState.CONNECTION_REQUEST_RECEIVED
        )

    def finalize(self, inviter: AgentHandle, invitee: AgentHandle) -> tuple[Connection, Connection]:
        """
        Wait until both sides have reached their terminal state.

        Returns:
            (inviter record, invitee record)

        Raises:
            TimeoutWaitingForStateError: If either side does not get there in time
            UnexpectedStateError: If the two records do not point at each other
        """
        inviter_connection = self._await(
            inviter,
            inviter.recall(connection_with(invitee.name), Connection),
            INVITER_PATH,
            ConnectionState.CONNECTION_RESPONSE_SENT,
        )
        invitee_connection = self._await(
            invitee,
            invitee.recall(connection_with(inviter.name), Connection),
            INVITEE_PATH,
            ConnectionState.CONNECTION_RESPONSE_RECEIVED,
        )

        if invitee_connection.their_did != inviter_connection.my_did:
            raise UnexpectedStateError(
                invitee_connection.connection_id,
                invitee_connection.state.value,
                inviter_connection.my_did,
                f"{invitee.name} connection {invitee_connection.connection_id} points at "
                f"{invitee_connection.their_did}, not at {inviter.name} ({inviter_connection.my_did})",
            )

        inviter.remember(connection_with(invitee.name), inviter_connection)
        invitee.remember(connection_with(inviter.name), invitee_connection)
        self.finish(inviter, inviter_connection.connection_id)
        self.finish(invitee, invitee_connection.connection_id)
        logger.info(f"{inviter.name} and {invitee.name} are connected")
        return inviter_connection, invitee_connection

    def establish(self, inviter: AgentHandle, invitee: AgentHandle) -> tuple[Connection, Connection]:
        """Run the whole exchange; returns (inviter record, invitee record)."""
        opened = [self.generate_invitation(inviter, invitee).connection_id]
        try:
            opened.append(self.receive_invitation(invitee, inviter).connection_id)
            self.send_request(invitee, inviter)
            return self.finalize(inviter, invitee)
        finally:
            self.discard(*opened)

    def _await(
        self,
        handle: AgentHandle,
        connection: Connection,
        path: tuple[ConnectionState, ...],
        target: ConnectionState,
    ) -> Connection:
        connection_id = connection.connection_id
        trace = self.trace(handle, connection_id, path, FAILURE_STATES)
        with handle.events.subscribe(
            EventType.CONNECTION_UPDATED,
            lambda event: event.data.get("connectionId") == connection_id,
        ) as subscription:
            return self.waiter.until_reached(
                lambda: handle.client.connections.get(connection_id),
                target,
                trace,
                _state,
                f"{handle.name} connection {connection_id}",
                subscription=subscription,
                id_of=_id,
            )
