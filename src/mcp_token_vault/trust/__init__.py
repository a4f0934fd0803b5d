"""Folder trust: trust levels, effective trust resolution and modification."""

from mcp_token_vault.trust.listener import (
    TrustChangeListener,
    TrustChangeNotifier,
    subscribe_trust_changes,
)
from mcp_token_vault.trust.permissions import (
    DialogAction,
    MessageAction,
    PermissionsModifyTrust,
    TrustUpdate,
    permissions_command,
)
from mcp_token_vault.trust.resolver import (
    TrustState,
    inspect_trust,
    is_path_trusted,
    is_workspace_trusted,
)
from mcp_token_vault.trust.trusted_folders import (
    TrustedFolders,
    TrustLevel,
    load_trusted_folders,
)

__all__ = [
    "DialogAction",
    "MessageAction",
    "PermissionsModifyTrust",
    "TrustChangeListener",
    "TrustChangeNotifier",
    "TrustLevel",
    "TrustState",
    "TrustUpdate",
    "TrustedFolders",
    "inspect_trust",
    "is_path_trusted",
    "is_workspace_trusted",
    "load_trusted_folders",
    "permissions_command",
    "subscribe_trust_changes",
]
