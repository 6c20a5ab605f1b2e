"""
HashiCorp Vault client for point-of-sale secrets.

AppRole authentication, KV v2 reads, every path under the 'pos/' prefix.
The only secret the service needs is the database URL; a DATABASE_URL
environment variable short-circuits Vault entirely (local development, CI).
"""

import os
import logging
from typing import Dict, Tuple

import hvac
from hvac.exceptions import InvalidPath, Unauthorized, Forbidden

logger = logging.getLogger(__name__)

_SECRET_PREFIX = "pos"

_vault_client_instance: "VaultClient | None" = None
_secret_cache: Dict[Tuple[str, str], str] = {}


class VaultClient:
    """AppRole-authenticated Vault reader. Fails fast on missing configuration."""

    def __init__(
        self,
        vault_addr: str | None = None,
        role_id: str | None = None,
        secret_id: str | None = None,
        vault_namespace: str | None = None,
    ):
        self.vault_addr = vault_addr or os.getenv("VAULT_ADDR")
        self.vault_namespace = vault_namespace or os.getenv("VAULT_NAMESPACE")
        role_id = role_id or os.getenv("VAULT_ROLE_ID")
        secret_id = secret_id or os.getenv("VAULT_SECRET_ID")

        if not self.vault_addr:
            raise ValueError("VAULT_ADDR environment variable is required")
        if not role_id or not secret_id:
            raise ValueError(
                "VAULT_ROLE_ID and VAULT_SECRET_ID environment variables are required"
            )

        if self.vault_namespace:
            self.client = hvac.Client(url=self.vault_addr, namespace=self.vault_namespace)
        else:
            self.client = hvac.Client(url=self.vault_addr)

        self._login(role_id, secret_id)
        if not self.client.is_authenticated():
            raise PermissionError("Vault authentication failed")

        logger.info(f"Vault client ready: {self.vault_addr}")

    def _login(self, role_id: str, secret_id: str) -> None:
        try:
            response = self.client.auth.approle.login(role_id=role_id, secret_id=secret_id)
        except Exception as e:
            logger.error(f"AppRole authentication failed: {e}")
            raise PermissionError(f"AppRole authentication failed: {e}")
        self.client.token = response["auth"]["client_token"]

    def get_secret(self, path: str, field: str) -> str:
        """
        Read one field of a KV v2 secret under 'pos/'.

        get_secret("database", "url") reads field 'url' of 'pos/database'.

        Raises:
            PermissionError: Path missing or not readable with this role.
            KeyError: Field not present in the secret.
        """
        full_path = f"{_SECRET_PREFIX}/{path}"

        try:
            response = self.client.secrets.kv.v2.read_secret_version(
                path=full_path, raise_on_deleted_version=True
            )
        except InvalidPath:
            logger.error(f"Secret path not found: {full_path}")
            raise PermissionError(f"Secret path '{full_path}' not found in Vault")
        except (Unauthorized, Forbidden) as e:
            logger.error(f"Access denied to secret {full_path}: {e}")
            raise PermissionError(f"Access denied to secret '{full_path}': {e}")

        secret_data = response["data"]["data"]
        if field not in secret_data:
            raise KeyError(
                f"Field '{field}' not found in secret '{full_path}'. "
                f"Available: {', '.join(secret_data)}"
            )
        return secret_data[field]


def reset_vault_state() -> None:
    """Forget the shared client and cached secrets (tests, credential rotation)."""
    global _vault_client_instance
    _vault_client_instance = None
    _secret_cache.clear()


def _cached_secret(path: str, field: str) -> str:
    global _vault_client_instance
    key = (path, field)
    if key not in _secret_cache:
        if _vault_client_instance is None:
            _vault_client_instance = VaultClient()
        _secret_cache[key] = _vault_client_instance.get_secret(path, field)
    return _secret_cache[key]


def get_database_url() -> str:
    """
    PostgreSQL connection URL.

    DATABASE_URL wins when set; otherwise 'pos/database' -> 'url' is read
    from Vault once and cached for the life of the process.
    """
    env_url = os.getenv("DATABASE_URL")
    if env_url:
        return env_url
    return _cached_secret("database", "url")
