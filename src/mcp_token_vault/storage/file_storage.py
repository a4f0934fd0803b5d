"""Encrypted file credential storage (fallback backend).

Stores all servers' credentials in one Fernet-encrypted JSON document:

    {"<sanitized server name>": {<credential record>}, ...}

Used when the OS keychain is unavailable or file storage is forced. Always
available - no probe.

Key derivation uses:
- Machine ID (platform-specific)
- Hostname
- Static salt for this application

The encrypted file lives in the protected config directory with 0o600
permissions (directory 0o700).
"""

from __future__ import annotations

__all__ = ["FileTokenStorage"]

import asyncio
import base64
import hashlib
import json
import platform
import socket
import subprocess
from pathlib import Path
from typing import TYPE_CHECKING, Any

from mcp_token_vault.constants import (
    APP_NAME,
    DEFAULT_KEYRING_SERVICE,
    ENCRYPTED_TOKEN_FILE,
    PBKDF2_ITERATIONS,
)
from mcp_token_vault.exceptions import CorruptDataError, NotFoundError, TokenStorageError
from mcp_token_vault.storage.base import BaseTokenStorage
from mcp_token_vault.storage.models import OAuthCredentials
from mcp_token_vault.telemetry.system.system_logger import get_system_logger
from mcp_token_vault.utils.file_helpers import get_config_dir, write_secure_bytes

if TYPE_CHECKING:
    from cryptography.fernet import Fernet


def _get_machine_id() -> str:
    """Get platform-specific machine identifier.

    Returns:
        String that's unique and stable for this machine.
    """
    system = platform.system()

    if system == "Darwin":
        try:
            result = subprocess.run(
                ["ioreg", "-rd1", "-c", "IOPlatformExpertDevice"],
                capture_output=True,
                text=True,
                timeout=5,
            )
            for line in result.stdout.split("\n"):
                if "IOPlatformUUID" in line:
                    # "IOPlatformUUID" = "..."
                    parts = line.split("=")
                    if len(parts) >= 2:
                        return parts[1].strip().strip('"')
        except (subprocess.SubprocessError, OSError):
            pass

    elif system == "Linux":
        for path in ["/etc/machine-id", "/var/lib/dbus/machine-id"]:
            try:
                with open(path) as f:
                    return f.read().strip()
            except OSError:
                continue

    elif system == "Windows":
        try:
            winreg = __import__("winreg")
            key = winreg.OpenKey(
                winreg.HKEY_LOCAL_MACHINE,
                r"SOFTWARE\Microsoft\Cryptography",
                0,
                winreg.KEY_READ | winreg.KEY_WOW64_64KEY,
            )
            value, _ = winreg.QueryValueEx(key, "MachineGuid")
            winreg.CloseKey(key)
            return str(value)
        except (OSError, ImportError, AttributeError):
            pass

    # Fallback: hostname (less unique but always available)
    return socket.gethostname()


class FileTokenStorage(BaseTokenStorage):
    """Fallback credential storage in a Fernet-encrypted file.

    Less secure than the keychain (the key is derived from machine data),
    but works everywhere. Read-modify-write cycles are serialized with an
    asyncio.Lock so concurrent writers don't lose updates.
    """

    def __init__(
        self,
        service_name: str = DEFAULT_KEYRING_SERVICE,
        storage_path: Path | None = None,
    ) -> None:
        """Initialize encrypted file storage.

        Args:
            service_name: Namespace mixed into the key derivation.
            storage_path: Encrypted file location (defaults to the protected
                config directory).
        """
        super().__init__(service_name)
        self._storage_path = storage_path or get_config_dir() / ENCRYPTED_TOKEN_FILE
        self._key: bytes | None = None
        self._lock = asyncio.Lock()

    @property
    def storage_path(self) -> Path:
        return self._storage_path

    def _derive_key(self) -> bytes:
        """Derive the Fernet key from machine-specific data (PBKDF2-SHA256)."""
        if self._key is not None:
            return self._key

        combined = f"{_get_machine_id()}:{socket.gethostname()}:{self.service_name}"

        # Static salt keeps the key stable across restarts; machine id and
        # hostname provide per-machine uniqueness.
        salt = f"{APP_NAME}-v1".encode()
        key = hashlib.pbkdf2_hmac(
            "sha256",
            combined.encode(),
            salt,
            iterations=PBKDF2_ITERATIONS,
            dklen=32,
        )

        # Fernet requires URL-safe base64 encoded key
        self._key = base64.urlsafe_b64encode(key)
        return self._key

    def _get_fernet(self) -> "Fernet":
        from cryptography.fernet import Fernet

        return Fernet(self._derive_key())

    # -------------------------------------------------------------------------
    # Whole-file I/O (blocking, called via asyncio.to_thread)
    # -------------------------------------------------------------------------

    def _load_entries(self) -> dict[str, Any]:
        """Decrypt the file into {key: raw record}.

        Raises:
            CorruptDataError: If the file cannot be decrypted or decoded.
        """
        from cryptography.fernet import InvalidToken

        if not self._storage_path.exists():
            return {}

        try:
            encrypted = self._storage_path.read_bytes()
        except OSError as e:
            raise TokenStorageError(f"Failed to read token file: {e}") from e

        try:
            decrypted = self._get_fernet().decrypt(encrypted)
        except InvalidToken as e:
            raise CorruptDataError(
                self._storage_path.name, "token file may be corrupted or key changed"
            ) from e

        try:
            entries = json.loads(decrypted)
        except ValueError as e:
            raise CorruptDataError(self._storage_path.name, "token file is not valid JSON") from e

        if not isinstance(entries, dict):
            raise CorruptDataError(self._storage_path.name, "token file has unexpected shape")
        return entries

    def _save_entries(self, entries: dict[str, Any]) -> None:
        if not entries:
            self._storage_path.unlink(missing_ok=True)
            return

        encrypted = self._get_fernet().encrypt(json.dumps(entries).encode())
        try:
            write_secure_bytes(self._storage_path, encrypted)
        except OSError as e:
            raise TokenStorageError(f"Failed to save encrypted token file: {e}") from e

    def _parse_entry(self, raw: Any, server_name: str) -> OAuthCredentials:
        if not isinstance(raw, dict):
            raise CorruptDataError(server_name, "entry is not an object")
        return self.deserialize(json.dumps(raw), server_name)

    # -------------------------------------------------------------------------
    # TokenStorage
    # -------------------------------------------------------------------------

    async def get_credentials(self, server_name: str) -> OAuthCredentials | None:
        key = self.sanitize_server_name(server_name)
        entries = await asyncio.to_thread(self._load_entries)
        if key not in entries:
            return None

        credentials = self._parse_entry(entries[key], server_name)
        if self.is_token_expired(credentials):
            return None
        return credentials

    async def set_credentials(self, credentials: OAuthCredentials) -> None:
        self.validate_credentials(credentials)
        key = self.sanitize_server_name(credentials.server_name)
        record = json.loads(self.serialize(self.stamp(credentials)))

        async with self._lock:
            entries = await asyncio.to_thread(self._load_entries)
            entries[key] = record
            await asyncio.to_thread(self._save_entries, entries)

    async def delete_credentials(self, server_name: str) -> None:
        key = self.sanitize_server_name(server_name)

        async with self._lock:
            entries = await asyncio.to_thread(self._load_entries)
            if key not in entries:
                raise NotFoundError(server_name)
            del entries[key]
            await asyncio.to_thread(self._save_entries, entries)

    async def list_servers(self) -> list[str]:
        entries = await asyncio.to_thread(self._load_entries)
        return list(entries)

    async def get_all_credentials(self) -> dict[str, OAuthCredentials]:
        entries = await asyncio.to_thread(self._load_entries)
        result: dict[str, OAuthCredentials] = {}

        for key, raw in entries.items():
            try:
                credentials = self._parse_entry(raw, key)
            except CorruptDataError as e:
                get_system_logger().debug(
                    {"event": "credentials_parse_failed", "server": key, "error": str(e)}
                )
                continue
            if not self.is_token_expired(credentials):
                result[key] = credentials

        return result

    async def clear_all(self) -> None:
        async with self._lock:
            try:
                await asyncio.to_thread(self._storage_path.unlink, missing_ok=True)
            except OSError as e:
                raise TokenStorageError(f"Failed to delete encrypted token file: {e}") from e

    def get_storage_info(self) -> dict[str, str]:
        """Describe this backend for status display."""
        return {"backend": "encrypted_file", "location": str(self._storage_path)}
