"""
Secret Key Lifecycle — set, read and rotate the plaintext secret key.

States of an env file over its life::

    NO_KEY --set--> KEY_SET --encrypt--> ENCRYPTED --decrypt--> KEY_SET
                    KEY_SET --rotate--> KEY_SET

Rotation here only replaces the stored value; data that is already encrypted
is not touched. Rotating while encrypted is a separate, composed operation
(see :mod:`env_secure.key_rotation`).
"""
import hmac
import logging
from enum import Enum
from typing import Optional

from .exceptions import (
    InvalidInput,
    MissingSecretKey,
    SecretKeyExists,
    SecretKeyMismatch,
)
from .store import SecretKeyStore

logger = logging.getLogger("env_secure")


class KeyState(str, Enum):
    NO_KEY = "no-key"
    KEY_SET = "key-set"
    ENCRYPTED = "encrypted"


class SecretKeyManager:
    """Policy layer over a :class:`~env_secure.store.SecretKeyStore`."""

    def __init__(self, store: SecretKeyStore):
        self._store = store

    @property
    def store(self) -> SecretKeyStore:
        return self._store

    def get_secret_key(self) -> Optional[str]:
        """Return the stored secret key, or None when none is set."""
        return self._store.read()

    def has_secret_key(self) -> bool:
        return self.get_secret_key() is not None

    def state(self) -> KeyState:
        return KeyState.KEY_SET if self.has_secret_key() else KeyState.NO_KEY

    def set_secret_key(self, value: str) -> None:
        """Store the first secret key.

        Raises:
            InvalidInput: If ``value`` is empty.
            SecretKeyExists: If a secret key is already stored.
        """
        if not value:
            raise InvalidInput("Secret key cannot be empty")
        if self.has_secret_key():
            raise SecretKeyExists(
                "Secret key is already set. Use `rotate-key` to change it."
            )
        self._store.write(value)
        logger.info("Secret key set")

    def verify_secret_key(self, candidate: str) -> bool:
        """Constant-time comparison of ``candidate`` with the stored key."""
        current = self.get_secret_key()
        if current is None or not candidate:
            return False
        return hmac.compare_digest(
            current.encode("utf-8"), candidate.encode("utf-8"),
        )

    def rotate_secret_key(self, current: str, new: str) -> None:
        """Replace the stored secret key with ``new``.

        Nothing previously encrypted is re-encrypted.

        Raises:
            MissingSecretKey: If no secret key is stored.
            SecretKeyMismatch: If ``current`` is not the stored key.
            InvalidInput: If ``new`` is empty.
        """
        if not self.has_secret_key():
            raise MissingSecretKey(
                "Secret key is not set. Use `set-key` to set it first."
            )
        if not self.verify_secret_key(current):
            raise SecretKeyMismatch("Current secret key is incorrect")
        if not new:
            raise InvalidInput("New secret key cannot be empty")
        self._store.write(new)
        logger.info("Secret key rotated")
