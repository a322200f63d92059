"""DID registrar resource client."""

from typing import TYPE_CHECKING, Any

from didflow.types._state import parse_known, parse_state
from didflow.types.dids import DidStatus, ManagedDid

if TYPE_CHECKING:
    from didflow.transport import HTTPTransport

# Key set of a DID usable for issuing and holding credentials
DEFAULT_DOCUMENT_TEMPLATE: dict[str, Any] = {
    "publicKeys": [
        {"id": "auth-1", "purpose": "authentication"},
        {"id": "assertion-1", "purpose": "assertionMethod"},
    ],
    "services": [],
}


def parse_managed_did(data: dict[str, Any]) -> ManagedDid:
    """Build a ManagedDid from its wire representation."""
    did = data["did"]
    return ManagedDid(
        did=did,
        long_form_did=data.get("longFormDid"),
        status=parse_state(DidStatus, data["status"], did),
    )


class DidRegistrarClient:
    """Client for the agent's DID registrar."""

    def __init__(self, transport: "HTTPTransport") -> None:
        self.transport = transport

    def create(self, document_template: dict[str, Any] | None = None) -> str:
        """
        Create an unpublished DID.

        Returns:
            The long-form DID
        """
        response = self.transport.request(
            "POST",
            "/did-registrar/dids",
            body={"documentTemplate": document_template or DEFAULT_DOCUMENT_TEMPLATE},
        )
        return response["longFormDid"]

    def publish(self, did: str) -> str:
        """
        Schedule publication of a DID to the ledger.

        Returns:
            The short-form DID reference of the scheduled operation
        """
        response = self.transport.request("POST", f"/did-registrar/dids/{did}/publications")
        return response["scheduledOperation"]["didRef"]

    def list(self) -> list[ManagedDid]:
        """List every DID the agent manages in a known status."""
        response = self.transport.request("GET", "/did-registrar/dids")
        return parse_known(response.get("contents", []), parse_managed_did)

    def get(self, did: str) -> ManagedDid:
        """Get one managed DID by its short or long form."""
        response = self.transport.request("GET", f"/did-registrar/dids/{did}")
        return parse_managed_did(response)
