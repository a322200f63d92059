"""Issue-credentials resource client."""

from typing import TYPE_CHECKING, Any

from didflow.types._state import parse_known, parse_state
from didflow.types.credentials import CredentialState, IssueCredentialRecord

if TYPE_CHECKING:
    from didflow.transport import HTTPTransport


def parse_credential_record(data: dict[str, Any]) -> IssueCredentialRecord:
    """Build an IssueCredentialRecord from its wire representation."""
    record_id = data["recordId"]
    schema_id = data.get("schemaId")
    if schema_id is None and data.get("schemaIds"):
        schema_id = data["schemaIds"][0]
    return IssueCredentialRecord(
        record_id=record_id,
        thid=data["thid"],
        role=data.get("role", ""),
        protocol_state=parse_state(CredentialState, data["protocolState"], record_id),
        connection_id=data.get("connectionId"),
        schema_id=schema_id,
        claims=data.get("claims") or {},
        credential=data.get("credential"),
    )


class IssueCredentialsClient:
    """Client for credential issuance operations."""

    def __init__(self, transport: "HTTPTransport") -> None:
        self.transport = transport

    def create_offer(
        self,
        connection_id: str,
        issuing_did: str,
        claims: dict[str, Any],
        schema_id: str | None = None,
        automatic_issuance: bool = False,
        validity_period: float | None = None,
    ) -> IssueCredentialRecord:
        """
        Offer a credential over an established connection.

        Args:
            connection_id: Issuer-side connection with the holder
            issuing_did: Published DID the issuer signs with
            claims: Credential claims
            schema_id: Optional schema the claims conform to
            automatic_issuance: Let the agent issue without an explicit call
            validity_period: Optional validity in seconds

        Returns:
            Issuer-side record, normally in OfferPending
        """
        body: dict[str, Any] = {
            "connectionId": connection_id,
            "issuingDID": issuing_did,
            "claims": claims,
            "automaticIssuance": automatic_issuance,
        }
        if schema_id is not None:
            body["schemaId"] = schema_id
        if validity_period is not None:
            body["validityPeriod"] = validity_period

        response = self.transport.request(
            "POST", "/issue-credentials/credential-offers", body=body
        )
        return parse_credential_record(response)

    def list_records(self, thid: str | None = None) -> list[IssueCredentialRecord]:
        """
        List credential exchange records, optionally for one thread.

        A thread lookup parses strictly. The unfiltered list skips records in a
        state this library does not model.
        """
        params = {"thid": thid} if thid else None
        response = self.transport.request("GET", "/issue-credentials/records", params=params)
        items = response.get("contents", [])
        if thid:
            return [parse_credential_record(item) for item in items]
        return parse_known(items, parse_credential_record)

    def get_record(self, record_id: str) -> IssueCredentialRecord:
        """Get one credential exchange record."""
        response = self.transport.request("GET", f"/issue-credentials/records/{record_id}")
        return parse_credential_record(response)

    def accept_offer(self, record_id: str, subject_id: str) -> IssueCredentialRecord:
        """
        Accept a received offer, which makes the holder send a request.

        Args:
            record_id: Holder-side record in OfferReceived
            subject_id: DID the credential is issued to
        """
        response = self.transport.request(
            "POST",
            f"/issue-credentials/records/{record_id}/accept-offer",
            body={"subjectId": subject_id},
        )
        return parse_credential_record(response)

    def issue(self, record_id: str) -> IssueCredentialRecord:
        """Issue the credential for an issuer-side record in RequestReceived."""
        response = self.transport.request(
            "POST", f"/issue-credentials/records/{record_id}/issue-credential"
        )
        return parse_credential_record(response)
