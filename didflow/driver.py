"""
Orchestration driver.

Sequences connection -> issuance -> connection -> presentation for one
scenario or load-test iteration and turns typed failures into a failed
result instead of a crash.
"""

import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from didflow.agent import Cast
from didflow.config import WaitConfig
from didflow.exceptions import DidFlowError
from didflow.logging import get_logger
from didflow.memory import CREDENTIAL_SCHEMA, PUBLISHED_DID
from didflow.reconciler import (
    Connected,
    HasDid,
    HasPublishedDid,
    HoldsCredential,
    PresentedProof,
    Reconciler,
)
from didflow.types.dids import ManagedDid
from didflow.types.schemas import CredentialSchema

logger = get_logger()

HOLDER_CONNECTS_WITH_ISSUER = "Holder connects with Issuer"
ISSUER_OFFERS_CREDENTIAL = "Issuer creates credential offer for Holder"
HOLDER_CONNECTS_WITH_VERIFIER = "Holder connects with Verifier"
VERIFIER_REQUESTS_PROOF = "Verifier requests proof from Holder"

GROUPS = (
    HOLDER_CONNECTS_WITH_ISSUER,
    ISSUER_OFFERS_CREDENTIAL,
    HOLDER_CONNECTS_WITH_VERIFIER,
    VERIFIER_REQUESTS_PROOF,
)


@dataclass
class FlowContext:
    """
    Everything one scenario or iteration works with.

    Passed explicitly to every orchestration call.
    """

    cast: Cast
    reconciler: Reconciler

    @classmethod
    def create(cls, cast: Cast, wait_config: WaitConfig | None = None) -> "FlowContext":
        return cls(cast=cast, reconciler=Reconciler(wait_config))

    @classmethod
    def from_env(cls) -> "FlowContext":
        """Build the context from environment configuration."""
        return cls.create(Cast.from_env(), WaitConfig.from_env())

    def close(self) -> None:
        self.cast.close()


@dataclass
class IterationResult:
    """Outcome of one run through the groups."""

    durations: dict[str, float] = field(default_factory=dict)  # seconds per completed group
    error: DidFlowError | None = None
    failed_group: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_failure(self) -> None:
        """Re-raise the failure, if there was one."""
        if self.error is not None:
            raise self.error


class FlowDriver:
    """
    Runs the issue-and-verify flow for one FlowContext.

    run_iteration() always runs every exchange, the way a load-test
    iteration does; run_scenario() goes through the reconciler and only
    runs the exchanges whose end state does not exist yet.
    """

    def __init__(self, context: FlowContext) -> None:
        self.context = context

    def prepare(self, create_schema: bool = False) -> None:
        """
        Give the issuer a published DID and the holder a DID.

        Raises:
            DidFlowError: If either cannot be provisioned
        """
        reconciler = self.context.reconciler
        cast = self.context.cast
        reconciler.ensure(HasPublishedDid(cast.issuer))
        reconciler.ensure(HasDid(cast.holder))
        if create_schema and CREDENTIAL_SCHEMA not in cast.issuer.memory:
            reconciler.identity.create_schema(cast.issuer)

    def run_iteration(self) -> IterationResult:
        """Run every exchange from scratch. Expects prepare() (or seeded facts)."""
        cast = self.context.cast
        reconciler = self.context.reconciler
        issuer, holder, verifier = cast.issuer, cast.holder, cast.verifier
        schema_id = self._schema_id()
        trust_issuers = self._trust_issuers()

        result = IterationResult()
        try:
            with self._group(result, HOLDER_CONNECTS_WITH_ISSUER):
                reconciler.connections.establish(issuer, holder)
            with self._group(result, ISSUER_OFFERS_CREDENTIAL):
                reconciler.issuance.run(issuer, holder, schema_id=schema_id)
            with self._group(result, HOLDER_CONNECTS_WITH_VERIFIER):
                reconciler.connections.establish(verifier, holder)
            with self._group(result, VERIFIER_REQUESTS_PROOF):
                reconciler.presentations.run(
                    verifier, holder, schema_id=schema_id, trust_issuers=trust_issuers
                )
        except DidFlowError as e:
            self._record_failure(result, e)
        return result

    def run_scenario(self) -> IterationResult:
        """Reach the same end state as run_iteration(), reusing whatever already exists."""
        cast = self.context.cast
        reconciler = self.context.reconciler
        issuer, holder, verifier = cast.issuer, cast.holder, cast.verifier
        schema_id = self._schema_id()

        result = IterationResult()
        try:
            with self._group(result, HOLDER_CONNECTS_WITH_ISSUER):
                reconciler.ensure(Connected(issuer, holder))
            with self._group(result, ISSUER_OFFERS_CREDENTIAL):
                reconciler.ensure(HoldsCredential(issuer, holder, schema_id))
            with self._group(result, HOLDER_CONNECTS_WITH_VERIFIER):
                reconciler.ensure(Connected(verifier, holder))
            with self._group(result, VERIFIER_REQUESTS_PROOF):
                reconciler.ensure(PresentedProof(verifier, holder, issuer, schema_id))
        except DidFlowError as e:
            self._record_failure(result, e)
        return result

    def _schema_id(self) -> str | None:
        issuer = self.context.cast.issuer
        if CREDENTIAL_SCHEMA in issuer.memory:
            return issuer.recall(CREDENTIAL_SCHEMA, CredentialSchema).id
        return None

    def _trust_issuers(self) -> list[str]:
        issuer = self.context.cast.issuer
        if PUBLISHED_DID in issuer.memory:
            return [issuer.recall(PUBLISHED_DID, ManagedDid).did]
        return []

    @contextmanager
    def _group(self, result: IterationResult, name: str) -> Iterator[None]:
        started = time.perf_counter()
        try:
            yield
        except DidFlowError:
            result.failed_group = name
            raise
        result.durations[name] = time.perf_counter() - started

    def _record_failure(self, result: IterationResult, error: DidFlowError) -> None:
        result.error = error
        logger.error(f"{result.failed_group or 'Iteration'} failed: {error}")


__all__ = [
    "FlowContext",
    "FlowDriver",
    "IterationResult",
    "GROUPS",
]
