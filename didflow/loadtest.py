"""
Load harness.

Runs the issue-and-verify flow with many concurrent virtual users. Every
virtual user gets its own FlowContext (its own handles and fact stores);
only the one-time setup (issuer DID, schema, holder DID) is shared, as data.
"""

import math
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from didflow.driver import GROUPS, FlowContext, FlowDriver, IterationResult
from didflow.logging import get_logger
from didflow.memory import CREDENTIAL_SCHEMA, PUBLISHED_DID, SUBJECT_DID
from didflow.types.dids import ManagedDid
from didflow.types.schemas import CredentialSchema

logger = get_logger("loadtest")

ContextFactory = Callable[[], FlowContext]


@dataclass
class SetupData:
    """Facts produced once by setup() and handed to every virtual user."""

    issuer_did: ManagedDid
    holder_did: ManagedDid
    schema: CredentialSchema | None = None

    def seed(self, context: FlowContext) -> None:
        """Make a fresh context remember the shared setup facts."""
        context.cast.issuer.remember(PUBLISHED_DID, self.issuer_did)
        context.cast.holder.remember(SUBJECT_DID, self.holder_did)
        if self.schema is not None:
            context.cast.issuer.remember(CREDENTIAL_SCHEMA, self.schema)


@dataclass
class GroupStats:
    """Duration statistics of one group, in seconds."""

    count: int
    mean: float
    max: float
    p95: float


@dataclass
class LoadReport:
    """Aggregated outcome of a load test."""

    iterations: list[IterationResult] = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def failures(self) -> list[IterationResult]:
        return [result for result in self.iterations if not result.ok]

    @property
    def checks_rate(self) -> float:
        """Share of iterations that succeeded (1.0 when nothing ran)."""
        if not self.iterations:
            return 1.0
        return 1 - len(self.failures) / len(self.iterations)

    @property
    def passed(self) -> bool:
        return self.checks_rate == 1.0

    def group_stats(self) -> dict[str, GroupStats]:
        stats: dict[str, GroupStats] = {}
        for group in GROUPS:
            durations = sorted(
                result.durations[group] for result in self.iterations if group in result.durations
            )
            if not durations:
                continue
            stats[group] = GroupStats(
                count=len(durations),
                mean=sum(durations) / len(durations),
                max=durations[-1],
                p95=percentile(durations, 95),
            )
        return stats


def percentile(sorted_values: list[float], pct: float) -> float:
    """Nearest-rank percentile of an already sorted, non-empty list."""
    rank = max(1, math.ceil(pct / 100 * len(sorted_values)))
    return sorted_values[rank - 1]


class LoadTest:
    """
    Concurrent virtual users running FlowDriver.run_iteration().

    Example:
        ```python
        load = LoadTest(FlowContext.from_env, virtual_users=10, iterations=5)
        report = load.run()
        assert report.passed
        ```
    """

    def __init__(
        self,
        context_factory: ContextFactory,
        virtual_users: int = 10,
        iterations: int = 1,
        create_schema: bool = True,
    ) -> None:
        if virtual_users < 1:
            raise ValueError("virtual_users must be at least 1")
        if iterations < 1:
            raise ValueError("iterations must be at least 1")
        self.context_factory = context_factory
        self.virtual_users = virtual_users
        self.iterations = iterations
        self.create_schema = create_schema

    def setup(self) -> SetupData:
        """
        Provision what every iteration shares.

        Raises:
            DidFlowError: If provisioning fails; the load test does not start
        """
        context = self.context_factory()
        try:
            FlowDriver(context).prepare(create_schema=self.create_schema)
            issuer, holder = context.cast.issuer, context.cast.holder
            return SetupData(
                issuer_did=issuer.recall(PUBLISHED_DID, ManagedDid),
                holder_did=holder.recall(SUBJECT_DID, ManagedDid),
                schema=issuer.memory.get(CREDENTIAL_SCHEMA),
            )
        finally:
            context.close()

    def run(self) -> LoadReport:
        data = self.setup()
        started = time.perf_counter()

        with ThreadPoolExecutor(
            max_workers=self.virtual_users, thread_name_prefix="didflow-vu"
        ) as pool:
            futures = [
                pool.submit(self._virtual_user, index, data)
                for index in range(self.virtual_users)
            ]
            results = [result for future in futures for result in future.result()]

        report = LoadReport(iterations=results, elapsed=time.perf_counter() - started)
        logger.info(
            f"{len(report.iterations)} iterations, {len(report.failures)} failed, "
            f"{report.elapsed:.2f}s"
        )
        return report

    def _virtual_user(self, index: int, data: SetupData) -> list[IterationResult]:
        context = self.context_factory()
        data.seed(context)
        driver = FlowDriver(context)
        results = []
        try:
            for iteration in range(self.iterations):
                result = driver.run_iteration()
                if not result.ok:
                    logger.warning(f"VU {index} iteration {iteration} failed in {result.failed_group}")
                results.append(result)
        finally:
            context.close()
        return results


__all__ = [
    "LoadTest",
    "LoadReport",
    "GroupStats",
    "SetupData",
    "percentile",
]
