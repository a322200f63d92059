"""
Pytest plugin for didflow testing fixtures.

This module re-exports all fixtures from fixtures.py so they can be
automatically discovered by pytest when this package is installed.

To use these fixtures in your tests, add this to your conftest.py:

    pytest_plugins = ["didflow.testing.conftest"]

Or import the fixtures directly:

    from didflow.testing.fixtures import fake_network, flow_context
"""

# Re-export all fixtures for pytest auto-discovery
from didflow.testing.fixtures import (
    acme,
    bob,
    delayed_network,
    faber,
    fake_cast,
    fake_network,
    flow_context,
    sample_connection,
    sample_credential_record,
    sample_event,
    sample_invitation,
    sample_presentation,
    sample_webhook_payload,
    wait_config,
)

__all__ = [
    "fake_network",
    "delayed_network",
    "wait_config",
    "acme",
    "bob",
    "faber",
    "fake_cast",
    "flow_context",
    "sample_invitation",
    "sample_connection",
    "sample_credential_record",
    "sample_presentation",
    "sample_webhook_payload",
    "sample_event",
]
