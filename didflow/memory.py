"""Per-agent remembered facts passed between protocol steps."""

import threading
from typing import Any, TypeVar

from didflow.exceptions import FactNotFoundError

T = TypeVar("T")

# Well-known fact keys
ISSUED_CREDENTIAL = "issuedCredential"
PRESENTATION = "presentation"
SUBJECT_DID = "subjectDid"
PUBLISHED_DID = "publishedDid"
CREDENTIAL_SCHEMA = "credentialSchema"


def connection_with(peer_name: str) -> str:
    """Fact key under which an agent remembers its side of a connection with `peer_name`."""
    return f"connection-with-{peer_name}"


class FactStore:
    """
    Key/value memory owned by a single agent.

    Facts are never shared between agents; each side of an exchange
    remembers its own view of the records it took part in.
    """

    def __init__(self, owner: str) -> None:
        self.owner = owner
        self._facts: dict[str, Any] = {}
        self._lock = threading.Lock()

    def remember(self, key: str, value: Any) -> None:
        with self._lock:
            self._facts[key] = value

    def recall(self, key: str, expected_type: type[T] | None = None) -> T:
        """
        Recall a remembered fact.

        Args:
            key: Fact key
            expected_type: If given, the fact must be an instance of this type

        Raises:
            FactNotFoundError: If nothing (of the expected type) was remembered under key
        """
        with self._lock:
            if key not in self._facts:
                raise FactNotFoundError(self.owner, key)
            value = self._facts[key]
        if expected_type is not None and not isinstance(value, expected_type):
            raise FactNotFoundError(self.owner, f"{key} as {expected_type.__name__}")
        return value

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._facts.get(key, default)

    def forget(self, key: str) -> None:
        with self._lock:
            self._facts.pop(key, None)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._facts

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._facts)

    def clear(self) -> None:
        with self._lock:
            self._facts.clear()
