"""
Encrypted Key Rotation — change the secret key of a file that stays encrypted.

Plain rotation (:meth:`SecretKeyManager.rotate_secret_key`) only works while
the env file is in plaintext. This module composes decrypt, rotate and
re-encrypt so the key (and optionally the passphrase) can be replaced without
leaving plaintext on disk. Every data line is re-sealed with a fresh IV.

Security Note:
    Plaintext exists in memory only for the duration of the call.
    Never log plaintext, keys or tokens.
"""
import logging
from typing import Optional
from collections.abc import Sequence

from .codec import DEFAULT_KEY_LABEL, decrypt_lines, encrypt_lines
from .exceptions import InvalidInput
from .parser import replace_assignment

logger = logging.getLogger("env_secure")


def rotate_encrypted_secret_key(
    enc_lines: Sequence[str],
    passphrase: str,
    new_secret_key: str,
    new_passphrase: Optional[str] = None,
    key_label: str = DEFAULT_KEY_LABEL,
) -> list[str]:
    """Re-encrypt an encrypted env file under a new secret key.

    Args:
        enc_lines: Lines of the encrypted file.
        passphrase: Current passphrase.
        new_secret_key: Secret key to rotate to. Pass the current key to
            change only the passphrase.
        new_passphrase: Passphrase for the re-encrypted file; defaults to
            ``passphrase``.
        key_label: Reserved variable name the secret key is stored under.

    Returns:
        Lines of the re-encrypted file.

    Raises:
        InvalidInput: If ``new_secret_key`` is empty, multi-line or padded
            with whitespace.
        MissingPassphrase: If ``new_passphrase`` is given but empty.
        InvalidFormat: If ``enc_lines`` is not an encrypted env file.
        DecryptionFailed: If ``passphrase`` is wrong.
    """
    if not new_secret_key or not new_secret_key.strip():
        raise InvalidInput("New secret key cannot be empty")
    if "\n" in new_secret_key or "\r" in new_secret_key:
        raise InvalidInput("Secret key cannot contain line breaks")
    if new_secret_key != new_secret_key.strip():
        raise InvalidInput("Secret key cannot start or end with whitespace")

    logger.info("Starting encrypted key rotation")
    plain_lines = decrypt_lines(enc_lines, passphrase, key_label)
    plain_lines = replace_assignment(plain_lines, key_label, new_secret_key)
    rotated = encrypt_lines(
        plain_lines,
        new_secret_key,
        passphrase if new_passphrase is None else new_passphrase,
        key_label,
    )
    logger.info(
        "Encrypted key rotation complete: %d line(s) re-encrypted",
        len(rotated) - 1,
    )
    return rotated
