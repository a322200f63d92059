"""
Tests for didflow testing utilities.

Verifies that FakeAgentNetwork and fixtures behave like the agents they stand in for.
"""

import pytest

from didflow.agent import AgentHandle, Cast
from didflow.exceptions import ConflictError, NotFoundError, ServerError, ValidationError
from didflow.testing import FakeAgentNetwork, FakeTransport
from didflow.types.connections import Connection, ConnectionState
from didflow.types.credentials import IssueCredentialRecord
from didflow.types.dids import DidStatus
from didflow.types.events import Event, EventType
from didflow.types.presentations import PresentationRecord


class TestFakeAgentNetwork:
    """Tests for FakeAgentNetwork."""

    def test_handles_share_agent_state(self, fake_network: FakeAgentNetwork) -> None:
        first = fake_network.handle("Acme")
        second = fake_network.handle("Acme")

        created = first.client.connections.create_invitation(label="Connection with Bob")

        assert [c.connection_id for c in second.client.connections.list()] == [created.connection_id]
        assert first.memory is not second.memory
        assert first.events is not second.events

    def test_connection_exchange(self, fake_network: FakeAgentNetwork, acme: AgentHandle, bob: AgentHandle) -> None:
        invitation = acme.client.connections.create_invitation(label="Connection with Bob")
        assert invitation.invitation is not None

        accepted = bob.client.connections.accept_invitation(invitation.invitation.oob)

        # the snapshot is returned before the asynchronous steps
        assert accepted.state == ConnectionState.CONNECTION_REQUEST_PENDING
        inviter_side = acme.client.connections.get(invitation.connection_id)
        invitee_side = bob.client.connections.get(accepted.connection_id)
        assert inviter_side.state == ConnectionState.CONNECTION_RESPONSE_SENT
        assert invitee_side.state == ConnectionState.CONNECTION_RESPONSE_RECEIVED
        assert inviter_side.their_did == invitee_side.my_did
        assert invitee_side.their_did == inviter_side.my_did

    def test_invitation_cannot_be_reused(self, acme: AgentHandle, bob: AgentHandle, faber: AgentHandle) -> None:
        invitation = acme.client.connections.create_invitation(label="Connection with Bob")
        bob.client.connections.accept_invitation(invitation.invitation.oob)

        with pytest.raises(ConflictError):
            faber.client.connections.accept_invitation(invitation.invitation.oob)

    def test_garbage_invitation(self, bob: AgentHandle) -> None:
        with pytest.raises(ValidationError):
            bob.client.connections.accept_invitation("not-an-invitation")

    def test_partition_drops_messages(self, fake_network: FakeAgentNetwork, acme: AgentHandle, bob: AgentHandle) -> None:
        invitation = acme.client.connections.create_invitation(label="Connection with Bob")
        fake_network.partition("Acme")

        accepted = bob.client.connections.accept_invitation(invitation.invitation.oob)

        assert bob.client.connections.get(accepted.connection_id).state == ConnectionState.CONNECTION_REQUEST_SENT
        assert acme.client.connections.get(invitation.connection_id).state == ConnectionState.INVITATION_GENERATED

    def test_offer_needs_a_published_did(self, fake_network: FakeAgentNetwork, acme: AgentHandle, bob: AgentHandle) -> None:
        invitation = acme.client.connections.create_invitation(label="Connection with Bob")
        bob.client.connections.accept_invitation(invitation.invitation.oob)
        long_form = acme.client.dids.create()

        with pytest.raises(ValidationError):
            acme.client.credentials.create_offer(
                connection_id=invitation.connection_id, issuing_did=long_form, claims={}
            )

    def test_offer_needs_an_established_connection(self, acme: AgentHandle) -> None:
        invitation = acme.client.connections.create_invitation(label="Connection with Bob")

        with pytest.raises(ValidationError):
            acme.client.credentials.create_offer(
                connection_id=invitation.connection_id, issuing_did="did:prism:acme", claims={}
            )

    def test_did_publication(self, acme: AgentHandle) -> None:
        long_form = acme.client.dids.create()
        assert acme.client.dids.get(long_form).status == DidStatus.CREATED

        short = acme.client.dids.publish(long_form)

        assert long_form.startswith(short + ":")
        assert acme.client.dids.get(short).status == DidStatus.PUBLISHED

    def test_schema_author_must_be_published(self, acme: AgentHandle) -> None:
        long_form = acme.client.dids.create()
        short = ":".join(long_form.split(":")[:3])

        with pytest.raises(ValidationError):
            acme.client.schemas.create(name="s", version="1.0.0", author=short, schema={})

    def test_unknown_record(self, acme: AgentHandle) -> None:
        with pytest.raises(NotFoundError):
            acme.client.credentials.get_record("missing")

    def test_unknown_route(self, fake_network: FakeAgentNetwork) -> None:
        transport = FakeTransport(fake_network.agent("Acme"))

        with pytest.raises(NotFoundError):
            transport.request("DELETE", "/connections")

    def test_fail_next_applies_once(self, fake_network: FakeAgentNetwork, acme: AgentHandle) -> None:
        fake_network.agent("Acme").fail_next("connections.list", ServerError("INTERNAL", "down"))

        with pytest.raises(ServerError):
            acme.client.connections.list()
        assert acme.client.connections.list() == []

    def test_events_reach_every_handle(self, fake_network: FakeAgentNetwork) -> None:
        first = fake_network.handle("Acme")
        second = fake_network.handle("Acme")

        with first.events.subscribe(EventType.CONNECTION_UPDATED) as a, \
                second.events.subscribe(EventType.CONNECTION_UPDATED) as b:
            first.client.connections.create_invitation(label="Connection with Bob")

            assert a.get(timeout=0.1).data["state"] == "InvitationGenerated"
            assert b.get(timeout=0.1).data["state"] == "InvitationGenerated"

    def test_call_recording(self, fake_network: FakeAgentNetwork, acme: AgentHandle) -> None:
        acme.client.connections.create_invitation(label="Connection with Bob")
        acme.client.connections.list()

        assert fake_network.was_called("connections.create_invitation", "Acme")
        assert not fake_network.was_called("connections.create_invitation", "Bob")
        assert fake_network.call_count("connections.list") == 1
        assert [c.route for c in fake_network.protocol_calls("Acme")] == ["connections.create_invitation"]
        call = fake_network.calls("Acme")[0]
        assert call.method == "POST"
        assert call.body == {"label": "Connection with Bob"}

        fake_network.reset_calls()
        assert fake_network.calls() == []

    def test_cast(self, fake_network: FakeAgentNetwork) -> None:
        cast = fake_network.cast(holder="Alice")

        assert isinstance(cast, Cast)
        assert [handle.name for handle in cast] == ["Acme", "Alice", "Faber"]


class TestFixtures:
    """Tests for the pytest fixtures."""

    def test_fake_cast(self, fake_cast: Cast) -> None:
        assert fake_cast.issuer.name == "Acme"
        assert fake_cast.holder.name == "Bob"
        assert fake_cast.verifier.name == "Faber"

    def test_sample_connection(self, sample_connection: Connection) -> None:
        assert sample_connection.state == ConnectionState.CONNECTION_RESPONSE_SENT
        assert sample_connection.label == "Connection with Bob"

    def test_sample_records(
        self,
        sample_credential_record: IssueCredentialRecord,
        sample_presentation: PresentationRecord,
    ) -> None:
        assert sample_credential_record.credential is not None
        assert sample_presentation.data == [sample_credential_record.credential]

    def test_sample_event(self, sample_event: Event) -> None:
        assert sample_event.type == EventType.CREDENTIAL_UPDATED
        assert sample_event.data["thid"] == "thread-1"
