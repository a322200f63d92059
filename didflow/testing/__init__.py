"""didflow testing utilities.

Provides an in-memory fake agent network and fixtures for testing code that
drives agents through didflow.
"""

from didflow.testing.fake import FakeAgent, FakeAgentNetwork, FakeTransport, MockCall
from didflow.testing.fixtures import TEST_WAIT_CONFIG

__all__ = [
    # Fake network
    "FakeAgentNetwork",
    "FakeAgent",
    "FakeTransport",
    "MockCall",
    # Settings
    "TEST_WAIT_CONFIG",
]
