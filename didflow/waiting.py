"""
Bounded waits on asynchronous protocol state.

A counterparty's messages arrive out-of-band, so every transition that
depends on one is awaited: the waiter re-lists the agent's records whenever
a matching event arrives on the agent's channel, and at least once per poll
interval, until the record is acceptable or the bound elapses.
"""

import time
from collections.abc import Callable, Collection, Iterable, Sequence
from enum import Enum
from typing import TypeVar

from didflow.config import WaitConfig
from didflow.events import Subscription
from didflow.exceptions import TimeoutWaitingForStateError, UnexpectedStateError
from didflow.logging import log_state_transition

R = TypeVar("R")


class ProtocolTrace:
    """
    Monotonic record of the states one side of one exchange went through.

    States are ranked by their position on the role's path. A state ranked
    lower than one already observed is stale (delivery is unordered) and is
    ignored. A state off the path, or a failure state, is an error.
    """

    def __init__(
        self,
        agent_name: str,
        record_kind: str,
        path: Sequence[Enum],
        failure_states: Collection[Enum] = (),
    ) -> None:
        self.agent_name = agent_name
        self.record_kind = record_kind
        self.record_id = "?"
        self._rank = {state: index for index, state in enumerate(path)}
        self._path = tuple(path)
        self._failures = frozenset(failure_states)
        self.observed: list[Enum] = []

    @property
    def current(self) -> Enum | None:
        return self.observed[-1] if self.observed else None

    def observe(self, state: Enum, record_id: str | None = None) -> bool:
        """
        Record a newly observed state.

        Returns:
            True if the state advanced the trace, False if it was stale or a repeat

        Raises:
            UnexpectedStateError: On a failure state or a state off this role's path
        """
        if record_id:
            self.record_id = record_id

        if state in self._failures:
            raise UnexpectedStateError(
                self.record_id,
                state.value,
                [s.value for s in self._path],
                f"{self.agent_name} {self.record_kind} {self.record_id} failed with {state.value}",
            )
        if state not in self._rank:
            raise UnexpectedStateError(
                self.record_id,
                state.value,
                [s.value for s in self._path],
                f"{self.agent_name} {self.record_kind} {self.record_id} entered {state.value}, "
                f"which is not on its path",
            )

        current = self.current
        if current is not None and self._rank[state] <= self._rank[current]:
            return False

        log_state_transition(
            self.agent_name,
            self.record_kind,
            self.record_id,
            state.value,
            current.value if current is not None else None,
        )
        self.observed.append(state)
        return True

    def reached(self, state: Enum) -> bool:
        """True once the trace is at or past `state`."""
        current = self.current
        return current is not None and self._rank[current] >= self._rank[state]

    def require_seen(self, any_of: Iterable[Enum], before: Enum) -> None:
        """
        Check that one of `any_of` was observed before `before`.

        Raises:
            UnexpectedStateError: If the exchange skipped that phase
        """
        wanted = set(any_of)
        for state in self.observed:
            if state == before:
                break
            if state in wanted:
                return
        raise UnexpectedStateError(
            self.record_id,
            before.value,
            sorted(s.value for s in wanted),
            f"{self.agent_name} {self.record_kind} {self.record_id} reached {before.value} "
            f"without passing through {sorted(s.value for s in wanted)}",
        )


class StateWaiter:
    """Runs bounded waits under one WaitConfig."""

    def __init__(self, config: WaitConfig | None = None) -> None:
        self.config = config or WaitConfig()

    def until(
        self,
        fetch: Callable[[], R | None],
        accept: Callable[[R], bool],
        description: str,
        expected: object,
        subscription: Subscription | None = None,
        trace: ProtocolTrace | None = None,
        state_of: Callable[[R], Enum] | None = None,
        id_of: Callable[[R], str] | None = None,
    ) -> R:
        """
        Re-fetch a record until it is accepted.

        Args:
            fetch: Returns the current record, or None if it does not exist yet
            accept: Decides whether the record has reached the awaited state
            description: Human readable subject, used in the timeout error
            expected: Awaited state(s), used in the timeout error
            subscription: Wakes the wait early when the agent announces a change
            trace: Receives every state fetched, to enforce monotonic progress
            state_of: Extracts the state of a record (required with trace)
            id_of: Extracts the record id (for the trace)

        Raises:
            TimeoutWaitingForStateError: If the bound elapses first
            UnexpectedStateError: If the trace rejects an observed state
        """
        deadline = time.monotonic() + self.config.timeout
        last_state: str | None = None

        while True:
            record = fetch()
            if record is not None:
                if state_of is not None:
                    state = state_of(record)
                    last_state = state.value
                    if trace is not None:
                        trace.observe(state, id_of(record) if id_of else None)
                if accept(record):
                    return record

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise TimeoutWaitingForStateError(
                    description, expected, self.config.timeout, last_state
                )

            pause = min(self.config.poll_interval, remaining)
            if subscription is not None:
                if subscription.get(timeout=pause) is not None:
                    # Several events may have queued up; one fetch covers them all
                    subscription.drain()
            else:
                time.sleep(pause)

    def until_reached(
        self,
        fetch: Callable[[], R | None],
        target: Enum,
        trace: ProtocolTrace,
        state_of: Callable[[R], Enum],
        description: str,
        subscription: Subscription | None = None,
        id_of: Callable[[R], str] | None = None,
    ) -> R:
        """
        Wait until the trace is at or past `target`.

        Counterparties may move a record on faster than it is polled, so a
        record already beyond `target` on the role's path satisfies the wait.
        """
        return self.until(
            fetch,
            lambda record: trace.reached(target),
            description,
            target.value,
            subscription=subscription,
            trace=trace,
            state_of=state_of,
            id_of=id_of,
        )

    def until_state(
        self,
        fetch: Callable[[], R | None],
        states: Enum | Collection[Enum],
        state_of: Callable[[R], Enum],
        description: str,
        subscription: Subscription | None = None,
        trace: ProtocolTrace | None = None,
        id_of: Callable[[R], str] | None = None,
    ) -> R:
        """Wait until the fetched record is in one of `states`."""
        wanted = {states} if isinstance(states, Enum) else set(states)
        expected = "/".join(sorted(s.value for s in wanted))
        return self.until(
            fetch,
            lambda record: state_of(record) in wanted,
            description,
            expected,
            subscription=subscription,
            trace=trace,
            state_of=state_of,
            id_of=id_of,
        )


def first(records: Iterable[R], predicate: Callable[[R], bool]) -> R | None:
    """The first record matching predicate, or None."""
    for record in records:
        if predicate(record):
            return record
    return None


def last(records: Iterable[R], predicate: Callable[[R], bool]) -> R | None:
    """The last (most recently added) record matching predicate, or None."""
    found = None
    for record in records:
        if predicate(record):
            found = record
    return found
