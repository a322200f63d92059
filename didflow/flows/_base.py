"""Shared plumbing of the protocol flows."""

from collections.abc import Collection, Iterator, Sequence
from contextlib import contextmanager
from enum import Enum

from didflow.agent import AgentHandle
from didflow.waiting import ProtocolTrace, StateWaiter


class Flow:
    """
    Base of the protocol state machines.

    Keeps one ProtocolTrace per (agent, exchange) so that the steps of an
    exchange, which run as separate calls, observe its states monotonically.
    A trace lives until its exchange completes on that agent, or until the
    exchange fails.
    """

    record_kind = "record"

    def __init__(self, waiter: StateWaiter | None = None) -> None:
        self.waiter = waiter or StateWaiter()
        self._traces: dict[tuple[str, str], ProtocolTrace] = {}

    def trace(
        self,
        handle: AgentHandle,
        exchange_id: str,
        path: Sequence[Enum],
        failure_states: Collection[Enum],
    ) -> ProtocolTrace:
        key = (handle.name, exchange_id)
        trace = self._traces.get(key)
        if trace is None:
            trace = ProtocolTrace(handle.name, self.record_kind, path, failure_states)
            self._traces[key] = trace
        return trace

    def finish(self, handle: AgentHandle, exchange_id: str) -> None:
        """Drop the trace of a completed exchange."""
        self._traces.pop((handle.name, exchange_id), None)

    def discard(self, *exchange_ids: str) -> None:
        """Drop the traces every agent holds for the given exchanges."""
        wanted = set(exchange_ids)
        for key in list(self._traces):
            if key[1] in wanted:
                self._traces.pop(key, None)

    @contextmanager
    def opening(self, handle: AgentHandle, exchange_id: str) -> Iterator[None]:
        """Drop the agent's trace of a new exchange if the step opening it fails."""
        try:
            yield
        except Exception:
            self.finish(handle, exchange_id)
            raise
