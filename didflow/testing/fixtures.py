"""
Pytest fixtures for didflow testing.

Provides a fake agent network and handles onto it for testing code that
drives agents through didflow.
"""

from collections.abc import Generator
from datetime import datetime
from typing import Any

import pytest

from didflow.agent import AgentHandle, Cast
from didflow.config import WaitConfig
from didflow.driver import FlowContext
from didflow.testing.fake import FakeAgentNetwork
from didflow.types.connections import Connection, ConnectionState, Invitation
from didflow.types.credentials import CredentialState, IssueCredentialRecord
from didflow.types.events import Event, EventType
from didflow.types.presentations import PresentationRecord, PresentationStatus

# Short bounds so that a missing transition fails a test quickly
TEST_WAIT_CONFIG = WaitConfig(timeout=2.0, poll_interval=0.01)


# ============================================================================
# Fake Network Fixtures
# ============================================================================


@pytest.fixture
def wait_config() -> WaitConfig:
    """Provide the bounded-wait settings used by the fake network fixtures."""
    return TEST_WAIT_CONFIG


@pytest.fixture
def fake_network() -> Generator[FakeAgentNetwork, None, None]:
    """
    Provide a FakeAgentNetwork that delivers every message synchronously.

    Example:
        ```python
        def test_my_flow(fake_network, acme, bob):
            ConnectionFlow().establish(acme, bob)
            assert fake_network.was_called("connections.accept_invitation", "Bob")
        ```
    """
    network = FakeAgentNetwork()
    yield network
    network.close()


@pytest.fixture
def delayed_network() -> Generator[FakeAgentNetwork, None, None]:
    """Provide a FakeAgentNetwork that delivers every message from a timer thread."""
    network = FakeAgentNetwork(delivery_delay=0.005)
    yield network
    network.close()


@pytest.fixture
def acme(fake_network: FakeAgentNetwork) -> AgentHandle:
    """Provide a handle onto the issuer agent "Acme"."""
    return fake_network.handle("Acme")


@pytest.fixture
def bob(fake_network: FakeAgentNetwork) -> AgentHandle:
    """Provide a handle onto the holder agent "Bob"."""
    return fake_network.handle("Bob")


@pytest.fixture
def faber(fake_network: FakeAgentNetwork) -> AgentHandle:
    """Provide a handle onto the verifier agent "Faber"."""
    return fake_network.handle("Faber")


@pytest.fixture
def fake_cast(fake_network: FakeAgentNetwork) -> Cast:
    """Provide a cast of Acme, Bob and Faber on the fake network."""
    return fake_network.cast()


@pytest.fixture
def flow_context(
    fake_network: FakeAgentNetwork, wait_config: WaitConfig
) -> Generator[FlowContext, None, None]:
    """Provide a FlowContext over a fresh cast of the fake network."""
    context = fake_network.context(wait_config)
    yield context
    context.close()


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def sample_invitation() -> Invitation:
    """Provide a sample out-of-band Invitation."""
    return Invitation(
        id="f0d41b2a-8d55-4b4e-a0b3-2b6bd1e7c0a1",
        type="https://didcomm.org/out-of-band/2.0/invitation",
        from_did="did:peer:2.Ez6LSinviter",
        invitation_url="https://acme.example/?_oob=eyJpZCI6ImYwZDQxYjJhIn0",
    )


@pytest.fixture
def sample_connection(sample_invitation: Invitation) -> Connection:
    """Provide a sample inviter Connection at its terminal state."""
    return Connection(
        connection_id="conn-acme-bob",
        thid=sample_invitation.id,
        label="Connection with Bob",
        my_did="did:peer:2.Ez6LSinviter",
        their_did="did:peer:2.Ez6LSinvitee",
        role="Inviter",
        state=ConnectionState.CONNECTION_RESPONSE_SENT,
        invitation=sample_invitation,
    )


@pytest.fixture
def sample_credential_record() -> IssueCredentialRecord:
    """Provide a sample holder IssueCredentialRecord that was received."""
    return IssueCredentialRecord(
        record_id="cred-bob",
        thid="thread-1",
        role="Holder",
        protocol_state=CredentialState.CREDENTIAL_RECEIVED,
        connection_id="conn-bob-acme",
        schema_id="https://acme.example/schema-registry/schemas/1",
        claims={"emailAddress": "bob@example.com"},
        credential="eyJjbGFpbXMiOnt9fQ",
    )


@pytest.fixture
def sample_presentation() -> PresentationRecord:
    """Provide a sample verifier PresentationRecord that was accepted."""
    return PresentationRecord(
        presentation_id="pres-faber",
        thid="thread-2",
        role="Verifier",
        status=PresentationStatus.PRESENTATION_ACCEPTED,
        connection_id="conn-faber-bob",
        proofs=[],
        data=["eyJjbGFpbXMiOnt9fQ"],
    )


@pytest.fixture
def sample_webhook_payload() -> dict[str, Any]:
    """Provide a sample raw webhook payload."""
    return {
        "id": "8b6f6c4e-1f0a-4c5e-9d7b-0d1b2c3d4e5f",
        "ts": "2024-01-15T10:30:00Z",
        "type": EventType.CONNECTION_UPDATED.value,
        "data": {"connectionId": "conn-acme-bob", "state": "ConnectionResponseSent"},
    }


@pytest.fixture
def sample_event() -> Event:
    """Provide a sample Event."""
    return Event(
        id="event-1",
        type=EventType.CREDENTIAL_UPDATED,
        ts=datetime(2024, 1, 15, 10, 30, 0),
        data={"thid": "thread-1", "protocolState": "OfferSent"},
    )
