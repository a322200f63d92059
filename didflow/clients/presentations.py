"""Present-proof resource client."""

from typing import TYPE_CHECKING, Any

from didflow.types._state import parse_known, parse_state
from didflow.types.presentations import PresentationRecord, PresentationStatus

if TYPE_CHECKING:
    from didflow.transport import HTTPTransport


def parse_presentation(data: dict[str, Any]) -> PresentationRecord:
    """Build a PresentationRecord from its wire representation."""
    presentation_id = data["presentationId"]
    return PresentationRecord(
        presentation_id=presentation_id,
        thid=data["thid"],
        role=data.get("role", ""),
        status=parse_state(PresentationStatus, data["status"], presentation_id),
        connection_id=data.get("connectionId"),
        proofs=data.get("proofs") or [],
        data=data.get("data") or [],
    )


class PresentProofClient:
    """Client for proof presentation operations."""

    def __init__(self, transport: "HTTPTransport") -> None:
        self.transport = transport

    def request_presentation(
        self,
        connection_id: str,
        challenge: str,
        domain: str,
        proofs: list[dict[str, Any]] | None = None,
    ) -> PresentationRecord:
        """
        Request a proof presentation from the peer on a connection.

        Args:
            connection_id: Verifier-side connection with the holder
            challenge: Nonce the presentation must be bound to
            domain: Domain the presentation must be bound to
            proofs: Requested proofs, e.g. [{"schemaId": ..., "trustIssuers": [...]}]
        """
        body = {
            "connectionId": connection_id,
            "proofs": proofs or [],
            "options": {"challenge": challenge, "domain": domain},
        }
        response = self.transport.request("POST", "/present-proof/presentations", body=body)
        return parse_presentation(response)

    def accept_request(self, presentation_id: str, proof_ids: list[str]) -> PresentationRecord:
        """
        Answer a proof request with the given credential records.

        Args:
            presentation_id: Holder-side record in RequestReceived
            proof_ids: Credential record ids to present
        """
        return self._update(presentation_id, {"action": "request-accept", "proofId": proof_ids})

    def reject_request(self, presentation_id: str) -> PresentationRecord:
        """Decline a proof request."""
        return self._update(presentation_id, {"action": "request-reject"})

    def accept_presentation(self, presentation_id: str) -> PresentationRecord:
        """Acknowledge a verified presentation on the verifier side."""
        return self._update(presentation_id, {"action": "presentation-accept"})

    def list(self, thid: str | None = None) -> list[PresentationRecord]:
        """
        List presentation records, optionally for one thread.

        A thread lookup parses strictly. The unfiltered list skips records in a
        state this library does not model.
        """
        params = {"thid": thid} if thid else None
        response = self.transport.request("GET", "/present-proof/presentations", params=params)
        items = response.get("contents", [])
        if thid:
            return [parse_presentation(item) for item in items]
        return parse_known(items, parse_presentation)

    def get(self, presentation_id: str) -> PresentationRecord:
        """Get one presentation record."""
        response = self.transport.request("GET", f"/present-proof/presentations/{presentation_id}")
        return parse_presentation(response)

    def _update(self, presentation_id: str, body: dict[str, Any]) -> PresentationRecord:
        response = self.transport.request(
            "PATCH", f"/present-proof/presentations/{presentation_id}", body=body
        )
        return parse_presentation(response)
