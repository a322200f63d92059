"""Schema registry data models."""

from dataclasses import dataclass, field


@dataclass
class CredentialSchema:
    """A credential schema registered by an issuer."""

    guid: str
    id: str
    name: str
    version: str
    author: str
    tags: list[str] = field(default_factory=list)
