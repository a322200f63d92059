"""Connections resource client."""

from typing import TYPE_CHECKING, Any

from didflow.types._state import parse_known, parse_state
from didflow.types.connections import Connection, ConnectionState, Invitation

if TYPE_CHECKING:
    from didflow.transport import HTTPTransport


def parse_connection(data: dict[str, Any]) -> Connection:
    """Build a Connection from its wire representation."""
    invitation = None
    raw_invitation = data.get("invitation")
    if raw_invitation:
        invitation = Invitation(
            id=raw_invitation["id"],
            type=raw_invitation.get("type", ""),
            from_did=raw_invitation.get("from", ""),
            invitation_url=raw_invitation["invitationUrl"],
        )

    connection_id = data["connectionId"]
    return Connection(
        connection_id=connection_id,
        thid=data.get("thid", connection_id),
        label=data.get("label"),
        my_did=data.get("myDid"),
        their_did=data.get("theirDid"),
        role=data.get("role", ""),
        state=parse_state(ConnectionState, data["state"], connection_id),
        invitation=invitation,
    )


class ConnectionsClient:
    """Client for DID-exchange connection operations."""

    def __init__(self, transport: "HTTPTransport") -> None:
        """
        Initialize the connections client.

        Args:
            transport: HTTP transport for making requests
        """
        self.transport = transport

    def create_invitation(self, label: str | None = None) -> Connection:
        """
        Create a connection record with a fresh out-of-band invitation.

        Args:
            label: Human readable label, conventionally "Connection with {peer}"

        Returns:
            Inviter-side Connection in InvitationGenerated, carrying the invitation
        """
        body = {"label": label} if label else {}
        response = self.transport.request("POST", "/connections", body=body)
        return parse_connection(response)

    def accept_invitation(self, invitation: str) -> Connection:
        """
        Accept an inviter's out-of-band invitation.

        The agent sends the connection request on its own once the
        invitation is accepted.

        Args:
            invitation: The encoded invitation (the `_oob` value)

        Returns:
            Invitee-side Connection
        """
        response = self.transport.request(
            "POST",
            "/connection-invitations",
            body={"invitation": invitation},
        )
        return parse_connection(response)

    def list(self) -> list[Connection]:
        """
        List every connection record held by the agent.

        Records in a state this library does not model are skipped.
        """
        response = self.transport.request("GET", "/connections")
        return parse_known(response.get("contents", []), parse_connection)

    def get(self, connection_id: str) -> Connection:
        """
        Get a connection record.

        Raises:
            NotFoundError: If the connection does not exist
        """
        response = self.transport.request("GET", f"/connections/{connection_id}")
        return parse_connection(response)
