"""
Property-based tests for resource clients.

Feature: didflow
"""

from typing import Any
from unittest.mock import MagicMock

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from didflow.clients.connections import ConnectionsClient
from didflow.clients.credentials import IssueCredentialsClient
from didflow.clients.dids import DEFAULT_DOCUMENT_TEMPLATE, DidRegistrarClient
from didflow.clients.presentations import PresentProofClient
from didflow.clients.schemas import JSON_SCHEMA_TYPE, SchemaRegistryClient
from didflow.exceptions import UnexpectedStateError
from didflow.types.connections import ConnectionState
from didflow.types.credentials import CredentialState
from didflow.types.dids import DidStatus
from didflow.types.presentations import PresentationStatus

# Strategies for generating valid data
id_strategy = st.uuids().map(str)
label_strategy = st.text(
    min_size=1,
    max_size=50,
    alphabet=st.characters(whitelist_categories=("L", "N"), whitelist_characters=" -_"),
)
connection_state_strategy = st.sampled_from(list(ConnectionState))
credential_state_strategy = st.sampled_from(list(CredentialState))
presentation_status_strategy = st.sampled_from(list(PresentationStatus))


def make_transport(response: dict[str, Any]) -> MagicMock:
    transport = MagicMock()
    transport.request.return_value = response
    return transport


# ============================================================================
# Property 1: Wire records parse into typed records
# ============================================================================


@given(
    connection_id=id_strategy,
    thid=id_strategy,
    label=label_strategy,
    state=connection_state_strategy,
)
@settings(max_examples=100)
def test_connection_parsing(connection_id: str, thid: str, label: str, state: ConnectionState) -> None:
    """
    Property 1: Wire records parse into typed records

    For any connection record with a known state, get() SHALL return a
    Connection carrying the same id, thread, label and state.
    """
    transport = make_transport({
        "connectionId": connection_id,
        "thid": thid,
        "label": label,
        "myDid": "did:peer:me",
        "theirDid": "did:peer:them",
        "role": "Inviter",
        "state": state.value,
    })

    connection = ConnectionsClient(transport).get(connection_id)

    assert connection.connection_id == connection_id
    assert connection.thid == thid
    assert connection.label == label
    assert connection.state == state
    transport.request.assert_called_once_with("GET", f"/connections/{connection_id}")


@given(record_id=id_strategy, thid=id_strategy, state=credential_state_strategy)
@settings(max_examples=100)
def test_credential_record_parsing(record_id: str, thid: str, state: CredentialState) -> None:
    """
    Property 1: Wire records parse into typed records

    For any credential record with a known protocol state, list_records()
    SHALL return records carrying the same id, thread and state.
    """
    transport = make_transport({
        "contents": [{"recordId": record_id, "thid": thid, "role": "Holder", "protocolState": state.value}],
    })

    records = IssueCredentialsClient(transport).list_records(thid=thid)

    assert len(records) == 1
    assert records[0].record_id == record_id
    assert records[0].protocol_state == state
    transport.request.assert_called_once_with(
        "GET", "/issue-credentials/records", params={"thid": thid}
    )


@given(presentation_id=id_strategy, thid=id_strategy, status=presentation_status_strategy)
@settings(max_examples=100)
def test_presentation_parsing(presentation_id: str, thid: str, status: PresentationStatus) -> None:
    transport = make_transport({
        "presentationId": presentation_id,
        "thid": thid,
        "role": "Verifier",
        "status": status.value,
        "proofs": [{"schemaId": "s-1", "trustIssuers": []}],
        "data": ["opaque"],
    })

    record = PresentProofClient(transport).get(presentation_id)

    assert record.presentation_id == presentation_id
    assert record.status == status
    assert record.proofs == [{"schemaId": "s-1", "trustIssuers": []}]
    assert record.data == ["opaque"]


@given(state=st.text(min_size=1, max_size=30).filter(
    lambda value: value not in {s.value for s in ConnectionState}
))
@settings(max_examples=100)
def test_unknown_state_is_an_unexpected_state(state: str) -> None:
    """
    Property 2: Unknown states are protocol errors

    A record fetched by id in a state this library does not know SHALL
    raise UnexpectedStateError instead of being silently accepted.
    """
    transport = make_transport({"connectionId": "c-1", "state": state})

    with pytest.raises(UnexpectedStateError) as exc_info:
        ConnectionsClient(transport).get("c-1")

    assert exc_info.value.state == state
    assert exc_info.value.record_id == "c-1"


# ============================================================================
# Request shapes
# ============================================================================


class TestConnectionsClient:
    """Tests for ConnectionsClient."""

    def test_create_invitation(self) -> None:
        transport = make_transport({
            "connectionId": "c-1",
            "thid": "inv-1",
            "label": "Connection with Bob",
            "state": "InvitationGenerated",
            "role": "Inviter",
            "invitation": {
                "id": "inv-1",
                "type": "https://didcomm.org/out-of-band/2.0/invitation",
                "from": "did:peer:acme",
                "invitationUrl": "https://acme.local/?_oob=eyJpZCI6Imludi0xIn0",
            },
        })

        connection = ConnectionsClient(transport).create_invitation(label="Connection with Bob")

        transport.request.assert_called_once_with(
            "POST", "/connections", body={"label": "Connection with Bob"}
        )
        assert connection.state == ConnectionState.INVITATION_GENERATED
        assert connection.invitation is not None
        assert connection.invitation.from_did == "did:peer:acme"
        assert connection.invitation.oob == "eyJpZCI6Imludi0xIn0"

    def test_accept_invitation(self) -> None:
        transport = make_transport({
            "connectionId": "c-2",
            "thid": "inv-1",
            "state": "ConnectionRequestPending",
            "role": "Invitee",
        })

        connection = ConnectionsClient(transport).accept_invitation("eyJpZCI6Imludi0xIn0")

        transport.request.assert_called_once_with(
            "POST", "/connection-invitations", body={"invitation": "eyJpZCI6Imludi0xIn0"}
        )
        assert connection.invitation is None
        assert connection.state == ConnectionState.CONNECTION_REQUEST_PENDING

    def test_list(self) -> None:
        transport = make_transport({"contents": [
            {"connectionId": "c-1", "state": "ConnectionResponseSent"},
            {"connectionId": "c-2", "state": "ConnectionResponseReceived"},
        ]})

        connections = ConnectionsClient(transport).list()

        assert [c.connection_id for c in connections] == ["c-1", "c-2"]
        # thid defaults to the connection id
        assert connections[0].thid == "c-1"

    def test_list_skips_unknown_states(self) -> None:
        transport = make_transport({"contents": [
            {"connectionId": "c-1", "state": "ConnectionResponseSent"},
            {"connectionId": "c-2", "state": "ConnectionSuspended"},
        ]})

        connections = ConnectionsClient(transport).list()

        assert [c.connection_id for c in connections] == ["c-1"]


class TestIssueCredentialsClient:
    """Tests for IssueCredentialsClient."""

    def test_create_offer(self) -> None:
        transport = make_transport({"recordId": "r-1", "thid": "t-1", "protocolState": "OfferPending"})

        record = IssueCredentialsClient(transport).create_offer(
            connection_id="c-1",
            issuing_did="did:prism:acme",
            claims={"givenName": "Bob"},
            schema_id="https://acme.local/schemas/1",
        )

        transport.request.assert_called_once_with(
            "POST",
            "/issue-credentials/credential-offers",
            body={
                "connectionId": "c-1",
                "issuingDID": "did:prism:acme",
                "claims": {"givenName": "Bob"},
                "automaticIssuance": False,
                "schemaId": "https://acme.local/schemas/1",
            },
        )
        assert record.protocol_state == CredentialState.OFFER_PENDING

    def test_schema_id_falls_back_to_schema_ids(self) -> None:
        transport = make_transport({
            "recordId": "r-1",
            "thid": "t-1",
            "protocolState": "CredentialReceived",
            "schemaIds": ["https://acme.local/schemas/2"],
        })

        record = IssueCredentialsClient(transport).get_record("r-1")

        assert record.schema_id == "https://acme.local/schemas/2"

    def test_list_skips_unknown_states(self) -> None:
        transport = make_transport({"contents": [
            {"recordId": "old", "thid": "t-1", "protocolState": "CredentialReceived"},
            {"recordId": "inflight", "thid": "t-2", "protocolState": "RequestGenerated"},
            {"recordId": "odd", "thid": "t-3", "protocolState": "CredentialRevoked"},
        ]})

        records = IssueCredentialsClient(transport).list_records()

        assert [r.record_id for r in records] == ["old", "inflight"]
        assert records[1].protocol_state == CredentialState.REQUEST_GENERATED

    def test_thread_lookup_is_strict(self) -> None:
        transport = make_transport({"contents": [
            {"recordId": "odd", "thid": "t-3", "protocolState": "CredentialRevoked"},
        ]})

        with pytest.raises(UnexpectedStateError) as exc_info:
            IssueCredentialsClient(transport).list_records(thid="t-3")

        assert exc_info.value.record_id == "odd"
        transport.request.assert_called_once_with(
            "GET", "/issue-credentials/records", params={"thid": "t-3"}
        )

    def test_accept_offer_and_issue(self) -> None:
        transport = make_transport({"recordId": "r-1", "thid": "t-1", "protocolState": "RequestPending"})
        client = IssueCredentialsClient(transport)

        client.accept_offer("r-1", "did:prism:bob:long")
        transport.request.assert_called_with(
            "POST",
            "/issue-credentials/records/r-1/accept-offer",
            body={"subjectId": "did:prism:bob:long"},
        )

        transport.request.return_value = {"recordId": "r-2", "thid": "t-1", "protocolState": "CredentialPending"}
        client.issue("r-2")
        transport.request.assert_called_with("POST", "/issue-credentials/records/r-2/issue-credential")


class TestPresentProofClient:
    """Tests for PresentProofClient."""

    def test_request_presentation(self) -> None:
        transport = make_transport({"presentationId": "p-1", "thid": "t-1", "status": "RequestPending"})

        PresentProofClient(transport).request_presentation(
            connection_id="c-1",
            challenge="challenge-1",
            domain="https://example-verifier.com",
            proofs=[{"schemaId": "s-1", "trustIssuers": ["did:prism:acme"]}],
        )

        transport.request.assert_called_once_with(
            "POST",
            "/present-proof/presentations",
            body={
                "connectionId": "c-1",
                "proofs": [{"schemaId": "s-1", "trustIssuers": ["did:prism:acme"]}],
                "options": {"challenge": "challenge-1", "domain": "https://example-verifier.com"},
            },
        )

    @pytest.mark.parametrize(
        ("method", "args", "body"),
        [
            ("accept_request", (["r-1"],), {"action": "request-accept", "proofId": ["r-1"]}),
            ("reject_request", (), {"action": "request-reject"}),
            ("accept_presentation", (), {"action": "presentation-accept"}),
        ],
    )
    def test_updates(self, method: str, args: tuple[Any, ...], body: dict[str, Any]) -> None:
        transport = make_transport({"presentationId": "p-1", "thid": "t-1", "status": "PresentationPending"})

        getattr(PresentProofClient(transport), method)("p-1", *args)

        transport.request.assert_called_once_with("PATCH", "/present-proof/presentations/p-1", body=body)

    def test_list_skips_unknown_states(self) -> None:
        transport = make_transport({"contents": [
            {"presentationId": "p-1", "thid": "t-1", "status": "PresentationAccepted"},
            {"presentationId": "p-2", "thid": "t-2", "status": "PresentationExpired"},
        ]})

        client = PresentProofClient(transport)

        assert [p.presentation_id for p in client.list()] == ["p-1"]
        with pytest.raises(UnexpectedStateError):
            client.list(thid="t-2")


class TestDidRegistrarClient:
    """Tests for DidRegistrarClient."""

    def test_create_returns_long_form(self) -> None:
        transport = make_transport({"longFormDid": "did:prism:abc:xyz"})

        assert DidRegistrarClient(transport).create() == "did:prism:abc:xyz"
        transport.request.assert_called_once_with(
            "POST", "/did-registrar/dids", body={"documentTemplate": DEFAULT_DOCUMENT_TEMPLATE}
        )

    def test_publish_returns_did_ref(self) -> None:
        transport = make_transport({"scheduledOperation": {"id": "op-1", "didRef": "did:prism:abc"}})

        assert DidRegistrarClient(transport).publish("did:prism:abc:xyz") == "did:prism:abc"
        transport.request.assert_called_once_with(
            "POST", "/did-registrar/dids/did:prism:abc:xyz/publications"
        )

    def test_list(self) -> None:
        transport = make_transport({"contents": [
            {"did": "did:prism:a", "longFormDid": "did:prism:a:x", "status": "CREATED"},
            {"did": "did:prism:b", "status": "PUBLISHED"},
        ]})

        dids = DidRegistrarClient(transport).list()

        assert [d.status for d in dids] == [DidStatus.CREATED, DidStatus.PUBLISHED]
        assert dids[0].subject_id == "did:prism:a:x"
        assert dids[1].subject_id == "did:prism:b"


class TestSchemaRegistryClient:
    """Tests for SchemaRegistryClient."""

    def test_create(self) -> None:
        transport = make_transport({
            "guid": "g-1",
            "id": "https://acme.local/schemas/g-1",
            "name": "driving-license",
            "version": "1.0.0",
            "author": "did:prism:acme",
            "tags": ["automation"],
        })

        schema = SchemaRegistryClient(transport).create(
            name="driving-license",
            version="1.0.0",
            author="did:prism:acme",
            schema={"type": "object"},
            tags=["automation"],
        )

        body = transport.request.call_args.kwargs["body"]
        assert body["type"] == JSON_SCHEMA_TYPE
        assert body["author"] == "did:prism:acme"
        assert schema.guid == "g-1"
        assert schema.tags == ["automation"]
