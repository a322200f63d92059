"""Schema registry resource client."""

from typing import TYPE_CHECKING, Any

from didflow.types.schemas import CredentialSchema

if TYPE_CHECKING:
    from didflow.transport import HTTPTransport

JSON_SCHEMA_TYPE = "https://w3c-ccg.github.io/vc-json-schemas/schema/2.0/schema.json"


def parse_schema(data: dict[str, Any]) -> CredentialSchema:
    """Build a CredentialSchema from its wire representation."""
    return CredentialSchema(
        guid=data["guid"],
        id=data.get("id", data["guid"]),
        name=data["name"],
        version=data["version"],
        author=data["author"],
        tags=data.get("tags") or [],
    )


class SchemaRegistryClient:
    """Client for the agent's credential schema registry."""

    def __init__(self, transport: "HTTPTransport") -> None:
        self.transport = transport

    def create(
        self,
        name: str,
        version: str,
        author: str,
        schema: dict[str, Any],
        description: str = "",
        tags: list[str] | None = None,
    ) -> CredentialSchema:
        """
        Register a credential schema.

        Args:
            name: Schema name
            version: Semantic version, e.g. "1.0.0"
            author: Published DID of the author
            schema: JSON schema of the claims
            description: Free text description
            tags: Optional tags
        """
        body = {
            "name": name,
            "version": version,
            "description": description,
            "type": JSON_SCHEMA_TYPE,
            "author": author,
            "schema": schema,
            "tags": tags or [],
        }
        response = self.transport.request("POST", "/schema-registry/schemas", body=body)
        return parse_schema(response)

    def get(self, guid: str) -> CredentialSchema:
        """Get a schema by its guid."""
        response = self.transport.request("GET", f"/schema-registry/schemas/{guid}")
        return parse_schema(response)
