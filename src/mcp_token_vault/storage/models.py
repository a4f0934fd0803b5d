"""Credential data model for MCP OAuth token storage.

Records are serialized with camelCase keys so that the stored representation
is stable regardless of the Python attribute names:

    {"serverName": "github", "token": {"accessToken": "...", "tokenType": "Bearer"},
     "updatedAt": 1735689600000}
"""

from __future__ import annotations

__all__ = [
    "OAuthCredentials",
    "OAuthToken",
    "TokenStorageType",
    "now_ms",
]

import time
from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


class TokenStorageType(str, Enum):
    """Which backend a HybridTokenStorage ended up using."""

    KEYCHAIN = "keychain"
    ENCRYPTED_FILE = "encrypted_file"


class OAuthToken(BaseModel):
    """OAuth token issued by an MCP server's authorization server.

    Attributes:
        access_token: Bearer credential sent to the MCP server.
        token_type: Token type, usually "Bearer".
        refresh_token: Token for obtaining new access tokens.
        scope: Space-separated granted scopes.
        expires_at: Epoch milliseconds when access_token expires.
            None means the token never expires.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    access_token: str
    token_type: str
    refresh_token: str | None = None
    scope: str | None = None
    expires_at: int | None = None


class OAuthCredentials(BaseModel):
    """Stored OAuth credentials for a single MCP server.

    Attributes:
        server_name: Unique key within a backend.
        token: The OAuth token.
        client_id: OAuth client id used for refresh.
        token_url: Token endpoint used for refresh.
        mcp_server_url: URL of the MCP server the token belongs to.
        updated_at: Epoch milliseconds of the last successful write.
            Stamped by the storage layer, not by callers.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    server_name: str
    token: OAuthToken
    client_id: str | None = None
    token_url: str | None = None
    mcp_server_url: str | None = None
    updated_at: int = 0

    def to_json(self) -> str:
        """Serialize to JSON string for storage."""
        return self.model_dump_json(by_alias=True, exclude_none=True)

    @classmethod
    def from_json(cls, data: str | bytes) -> "OAuthCredentials":
        """Deserialize from JSON string."""
        return cls.model_validate_json(data)
