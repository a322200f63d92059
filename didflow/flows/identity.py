"""
DID and schema setup an issuer and a holder need before issuance.
"""

import uuid
from typing import Any

from didflow.agent import AgentHandle
from didflow.flows._base import Flow
from didflow.logging import get_logger
from didflow.memory import CREDENTIAL_SCHEMA, PUBLISHED_DID, SUBJECT_DID
from didflow.types.dids import DID_PATH, DidStatus, ManagedDid
from didflow.types.events import EventType
from didflow.types.schemas import CredentialSchema

logger = get_logger("flow")

DEFAULT_SCHEMA: dict[str, Any] = {
    "$id": "https://example.com/driving-license-1.0",
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "description": "Driving License",
    "type": "object",
    "properties": {
        "emailAddress": {"type": "string", "format": "email"},
        "givenName": {"type": "string"},
        "familyName": {"type": "string"},
        "dateOfIssuance": {"type": "string", "format": "date-time"},
        "drivingLicenseID": {"type": "string"},
        "drivingClass": {"type": "integer"},
    },
    "required": ["emailAddress", "familyName", "dateOfIssuance", "drivingLicenseID", "drivingClass"],
    "additionalProperties": True,
}


def _status(did: ManagedDid) -> DidStatus:
    return did.status


class IdentityFlow(Flow):
    """Creates and publishes DIDs and registers credential schemas."""

    record_kind = "did"

    def create_unpublished_did(self, handle: AgentHandle) -> ManagedDid:
        """Create a DID the agent can use as a credential subject."""
        long_form_did = handle.client.dids.create()
        managed = handle.client.dids.get(long_form_did)
        logger.info(f"{handle.name} created DID {managed.did}")
        handle.remember(SUBJECT_DID, managed)
        return managed

    def publish_did(self, handle: AgentHandle) -> ManagedDid:
        """
        Publish the agent's subject DID and wait for it to land on the ledger.

        Raises:
            FactNotFoundError: If the agent has not created a DID yet
            TimeoutWaitingForStateError: If publication does not complete in time
        """
        managed = handle.recall(SUBJECT_DID, ManagedDid)
        did_ref = handle.client.dids.publish(managed.subject_id)
        trace = self.trace(handle, did_ref, DID_PATH, ())

        with self.opening(handle, did_ref), handle.events.subscribe(
            EventType.DID_STATUS_UPDATED,
            lambda event: event.data.get("did") == did_ref,
        ) as subscription:
            published = self.waiter.until_reached(
                lambda: handle.client.dids.get(did_ref),
                DidStatus.PUBLISHED,
                trace,
                _status,
                f"{handle.name} DID {did_ref}",
                subscription=subscription,
            )

        self.finish(handle, did_ref)
        logger.info(f"{handle.name} published DID {published.did}")
        handle.remember(PUBLISHED_DID, published)
        return published

    def create_schema(
        self,
        issuer: AgentHandle,
        name: str | None = None,
        version: str = "1.0.0",
        schema: dict[str, Any] | None = None,
    ) -> CredentialSchema:
        """
        Register a credential schema authored by the issuer's published DID.

        Raises:
            FactNotFoundError: If the issuer has no published DID
        """
        author = issuer.recall(PUBLISHED_DID, ManagedDid)
        created = issuer.client.schemas.create(
            name=name or f"automation-schema-{uuid.uuid4()}",
            version=version,
            author=author.did,
            schema=schema or DEFAULT_SCHEMA,
            description="Automation schema",
            tags=["automation"],
        )
        logger.info(f"{issuer.name} registered schema {created.guid}")
        issuer.remember(CREDENTIAL_SCHEMA, created)
        return created
