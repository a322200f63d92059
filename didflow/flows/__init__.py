"""Protocol state machines driving exchanges between agents."""

from didflow.flows.connection import ConnectionFlow, connection_label
from didflow.flows.identity import IdentityFlow
from didflow.flows.issuance import IssuanceFlow
from didflow.flows.presentation import PresentationFlow

__all__ = [
    "ConnectionFlow",
    "IdentityFlow",
    "IssuanceFlow",
    "PresentationFlow",
    "connection_label",
]
