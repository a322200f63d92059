"""
didflow logging utilities.

Provides configurable logging for HTTP requests/responses and protocol state
transitions. Ensures no auth keys or other secrets are logged.
"""

import logging
import re
from typing import Any

# Create library-specific loggers
_root_logger = logging.getLogger("didflow")
_http_logger = logging.getLogger("didflow.http")
_flow_logger = logging.getLogger("didflow.flow")

# Patterns for sensitive data that should be masked
_SENSITIVE_PATTERNS = [
    # Auth key headers and JSON fields
    (re.compile(r"(apikey|api_key|auth_key)(['\"]?\s*[:=]\s*['\"]?)[^'\"\s,}]+", re.IGNORECASE), r"\1\2[REDACTED]"),
    # Bearer tokens
    (re.compile(r"Bearer\s+[A-Za-z0-9\-._~+/]+=*"), "Bearer [REDACTED]"),
    # Secret/token patterns
    (re.compile(r"(secret|token|password)['\"]?\s*[:=]\s*['\"][^'\"]+['\"]", re.IGNORECASE), r"\1: [REDACTED]"),
]

_DEFAULT_SENSITIVE_KEYS = {"apikey", "api_key", "auth_key", "authorization", "secret", "token", "password"}

# Number of characters of an auth key that may be shown
_KEY_PREVIEW_LENGTH = 4


def configure_logging(
    level: int = logging.INFO,
    http_level: int | None = None,
    flow_level: int | None = None,
    handler: logging.Handler | None = None,
    format_string: str | None = None,
) -> None:
    """
    Configure didflow logging.

    Args:
        level: Default log level for all didflow loggers (default: INFO)
        http_level: Log level for HTTP request/response logging (default: same as level)
        flow_level: Log level for state transitions and reconciliation (default: same as level)
        handler: Custom handler to use (default: StreamHandler to stderr)
        format_string: Custom format string (default: includes timestamp, level, logger name)

    Example:
        ```python
        import logging
        from didflow.logging import configure_logging

        # Watch every state transition, keep HTTP quiet
        configure_logging(level=logging.INFO, flow_level=logging.DEBUG)
        ```
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    formatter = logging.Formatter(format_string)

    if handler is None:
        handler = logging.StreamHandler()

    handler.setFormatter(formatter)

    _root_logger.setLevel(level)
    _root_logger.addHandler(handler)

    _http_logger.setLevel(http_level if http_level is not None else level)
    _flow_logger.setLevel(flow_level if flow_level is not None else level)


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Get a didflow logger.

    Args:
        name: Logger name suffix (e.g., "http", "flow"). If None, returns the root library logger.

    Returns:
        Logger instance
    """
    if name is None:
        return _root_logger
    return logging.getLogger(f"didflow.{name}")


def mask_sensitive_data(text: str) -> str:
    """
    Mask sensitive data in a string.

    Args:
        text: Text that may contain auth keys or tokens

    Returns:
        Text with sensitive data masked
    """
    result = text
    for pattern, replacement in _SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def truncate_key(key: str) -> str:
    """
    Truncate an auth key for safe logging.

    Keys too short to leave anything hidden are redacted completely.
    """
    if len(key) <= _KEY_PREVIEW_LENGTH * 3:
        return "[REDACTED]"
    return f"{key[:_KEY_PREVIEW_LENGTH]}..."


def safe_log_dict(data: dict[str, Any], sensitive_keys: set[str] | None = None) -> dict[str, Any]:
    """
    Create a copy of a dictionary with sensitive values masked.

    Args:
        data: Dictionary that may contain sensitive values
        sensitive_keys: Set of keys to mask (default: apikey, auth_key, authorization, secret, token, password)

    Returns:
        Dictionary with sensitive values replaced
    """
    if sensitive_keys is None:
        sensitive_keys = _DEFAULT_SENSITIVE_KEYS

    result: dict[str, Any] = {}
    for key, value in data.items():
        key_lower = key.lower()
        if key_lower in sensitive_keys or any(sk in key_lower for sk in sensitive_keys):
            if isinstance(value, str):
                result[key] = truncate_key(value)
            else:
                result[key] = "[REDACTED]"
        elif isinstance(value, dict):
            result[key] = safe_log_dict(value, sensitive_keys)
        elif isinstance(value, list):
            result[key] = [
                safe_log_dict(item, sensitive_keys) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            result[key] = value

    return result


def log_http_request(
    method: str,
    url: str,
    headers: dict[str, str] | None = None,
    body: dict[str, Any] | None = None,
) -> None:
    """Log an HTTP request at DEBUG level with sensitive data masked."""
    if not _http_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"{method} {url}"]

    if headers:
        log_parts.append(f"headers={safe_log_dict(headers)}")

    if body:
        log_parts.append(f"body={safe_log_dict(body)}")

    _http_logger.debug(" | ".join(log_parts))


def log_http_response(
    status_code: int,
    url: str,
    body: dict[str, Any] | None = None,
    elapsed_ms: float | None = None,
) -> None:
    """Log an HTTP response at DEBUG level with sensitive data masked."""
    if not _http_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"Response {status_code} from {url}"]

    if elapsed_ms is not None:
        log_parts.append(f"elapsed={elapsed_ms:.2f}ms")

    if body:
        log_parts.append(f"body={safe_log_dict(body)}")

    _http_logger.debug(" | ".join(log_parts))


def log_state_transition(
    agent_name: str,
    record_kind: str,
    record_id: str,
    state: str,
    previous: str | None = None,
) -> None:
    """
    Log an observed protocol state transition at DEBUG level.

    Args:
        agent_name: Agent whose record moved
        record_kind: "connection", "credential", "presentation" or "did"
        record_id: Record identifier (thid or record id)
        state: Newly observed state
        previous: Previously observed state, if any
    """
    if not _flow_logger.isEnabledFor(logging.DEBUG):
        return

    if previous is None:
        _flow_logger.debug(f"{agent_name} {record_kind} {record_id}: {state}")
    else:
        _flow_logger.debug(f"{agent_name} {record_kind} {record_id}: {previous} -> {state}")


__all__ = [
    "configure_logging",
    "get_logger",
    "mask_sensitive_data",
    "truncate_key",
    "safe_log_dict",
    "log_http_request",
    "log_http_response",
    "log_state_transition",
]
