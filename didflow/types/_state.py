"""Parsing of wire state values into state enums."""

from collections.abc import Callable, Iterable
from enum import Enum
from typing import Any, TypeVar

from didflow.exceptions import UnexpectedStateError
from didflow.logging import get_logger

S = TypeVar("S", bound=Enum)
T = TypeVar("T")

logger = get_logger("client")


def parse_state(enum_cls: type[S], value: str, record_id: str) -> S:
    """
    Convert a wire state string into its enum member.

    Raises:
        UnexpectedStateError: If the agent reports a state this library does not model
    """
    try:
        return enum_cls(value)
    except ValueError:
        raise UnexpectedStateError(
            record_id,
            value,
            [member.value for member in enum_cls],
            f"record {record_id} reports unknown {enum_cls.__name__} '{value}'",
        ) from None


def parse_known(items: Iterable[dict[str, Any]], parse: Callable[[dict[str, Any]], T]) -> list[T]:
    """
    Parse a page of records, skipping records in a state this library does not model.

    An agent's full record list holds exchanges unrelated to the caller, so one
    of them in an unmodelled state must not hide the others.
    """
    parsed = []
    for item in items:
        try:
            parsed.append(parse(item))
        except UnexpectedStateError as e:
            logger.warning(f"Skipping record: {e.message}")
    return parsed
