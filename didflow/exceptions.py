"""didflow exception classes."""

from typing import Any


class DidFlowError(Exception):
    """Base exception for all didflow errors."""

    def __init__(
        self, code: str, message: str, request_id: str | None = None
    ) -> None:
        self.code = code
        self.message = message
        self.request_id = request_id
        super().__init__(f"[{code}] {message}")


class ConfigurationError(DidFlowError):
    """Raised when agent configuration is invalid or missing."""

    def __init__(self, message: str) -> None:
        super().__init__("CONFIGURATION_ERROR", message)


class FactNotFoundError(DidFlowError):
    """Raised when an agent is asked to recall a fact it never remembered."""

    def __init__(self, agent_name: str, key: str) -> None:
        super().__init__("FACT_NOT_FOUND", f"{agent_name} does not remember '{key}'")
        self.agent_name = agent_name
        self.key = key


# ---------------------------------------------------------------------------
# Transport errors: the agent API call itself failed
# ---------------------------------------------------------------------------


class TransportError(DidFlowError):
    """Raised when an agent API call fails at the HTTP layer."""

    pass


class AuthenticationError(TransportError):
    """Raised when the agent rejects the auth key."""

    pass


class AuthorizationError(TransportError):
    """Raised when access is denied."""

    pass


class NotFoundError(TransportError):
    """Raised when a record or route is not found."""

    pass


class ConflictError(TransportError):
    """Raised on conflicts (record already in a later state, etc.)."""

    pass


class RateLimitedError(TransportError):
    """Raised when rate limited."""

    def __init__(
        self,
        code: str,
        message: str,
        retry_after: int,
        request_id: str | None = None,
    ) -> None:
        super().__init__(code, message, request_id)
        self.retry_after = retry_after


class ValidationError(TransportError):
    """Raised on validation errors."""

    pass


class ServerError(TransportError):
    """Raised on server errors (5xx) and connection failures."""

    pass


# ---------------------------------------------------------------------------
# Protocol errors: the agent answered, but not with what the exchange needs
# ---------------------------------------------------------------------------


class UnexpectedStateError(DidFlowError):
    """Raised when a record is in a state the current transition does not allow."""

    def __init__(
        self,
        record_id: str,
        state: str,
        expected: Any,
        message: str | None = None,
    ) -> None:
        self.record_id = record_id
        self.state = state
        self.expected = expected
        super().__init__(
            "UNEXPECTED_STATE",
            message or f"record {record_id} is {state}, expected {expected}",
        )


class TimeoutWaitingForStateError(DidFlowError):
    """Raised when an awaited state does not arrive within the bound."""

    def __init__(
        self,
        description: str,
        expected: Any,
        timeout: float,
        last_state: str | None = None,
    ) -> None:
        self.description = description
        self.expected = expected
        self.timeout = timeout
        self.last_state = last_state
        super().__init__(
            "TIMEOUT_WAITING_FOR_STATE",
            f"{description} did not reach {expected} within {timeout:g}s "
            f"(last seen: {last_state or 'nothing'})",
        )


class PreconditionUnsatisfiableError(DidFlowError):
    """Raised when a sub-precondition of an exchange could not be ensured."""

    def __init__(self, goal: Any, cause: Exception) -> None:
        self.goal = goal
        self.cause = cause
        super().__init__(
            "PRECONDITION_UNSATISFIABLE",
            f"could not ensure {goal}: {cause}",
        )
