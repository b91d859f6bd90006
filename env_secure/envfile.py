"""
Env file operations — the codec applied to files on disk.

Each operation reads one file, fully processes it in memory and writes its
result atomically before removing the input. A crash between the write and
the remove leaves both files present, never a partial output.
"""
import logging
from pathlib import Path
from typing import Optional

from .codec import DEFAULT_KEY_LABEL, HEADER_MARKER, decrypt_lines, encrypt_lines
from .config import EnvSecureConfig
from .exceptions import EmptyInput, FileStateError, MissingSecretKey
from .key_rotation import rotate_encrypted_secret_key
from .lifecycle import KeyState, SecretKeyManager
from .parser import join_lines, split_lines
from .store import FileSecretKeyStore, PathLike, read_text, write_text_atomic

logger = logging.getLogger("env_secure")


def _require_file(path: Path) -> str:
    if not path.is_file():
        raise FileStateError(f"File {path} does not exist.")
    return read_text(path)


def key_manager(config: EnvSecureConfig) -> SecretKeyManager:
    """Secret key manager backed by the configured plaintext env file."""
    return SecretKeyManager(FileSecretKeyStore(config.env_file, config.key_label))


def is_encrypted(path: PathLike) -> bool:
    """True if ``path`` exists and starts with an encrypted file header."""
    path = Path(path)
    if not path.is_file():
        return False
    return read_text(path).startswith(HEADER_MARKER)


def key_state(config: EnvSecureConfig) -> KeyState:
    """Where the configured env file currently is in its lifecycle."""
    if is_encrypted(config.encrypted_file) and not config.env_file.exists():
        return KeyState.ENCRYPTED
    return key_manager(config).state()


def encrypt_env(
    source: PathLike,
    output: PathLike,
    passphrase: str,
    key_label: Optional[str] = None,
) -> Path:
    """Encrypt the env file ``source`` into ``output`` and remove ``source``.

    The secret key is read from ``source`` itself.

    Raises:
        FileStateError: If ``source`` does not exist.
        EmptyInput: If ``source`` is empty.
        MissingSecretKey: If ``source`` holds no secret key.
        MissingPassphrase: If ``passphrase`` is empty.
    """
    source, output = Path(source), Path(output)
    label = key_label or DEFAULT_KEY_LABEL
    content = _require_file(source)
    if not content:
        raise EmptyInput(f"File {source} is empty.")

    secret_key = FileSecretKeyStore(source, label).read()
    if not secret_key:
        raise MissingSecretKey(
            "Secret key is required for encryption. Use `set-key` first."
        )

    encrypted = encrypt_lines(split_lines(content), secret_key, passphrase, label)
    write_text_atomic(output, join_lines(encrypted))
    source.unlink()
    logger.info("Encrypted %s to %s", source.name, output.name)
    return output


def decrypt_env(
    source: PathLike,
    output: PathLike,
    passphrase: str,
    key_label: Optional[str] = None,
) -> Path:
    """Decrypt the encrypted file ``source`` into ``output`` and remove ``source``.

    Raises:
        FileStateError: If ``source`` does not exist.
        InvalidFormat: If ``source`` is not an encrypted env file.
        DecryptionFailed: If ``passphrase`` is wrong.
    """
    source, output = Path(source), Path(output)
    label = key_label or DEFAULT_KEY_LABEL
    content = _require_file(source)

    decrypted = decrypt_lines(split_lines(content), passphrase, label)
    write_text_atomic(output, join_lines(decrypted))
    source.unlink()
    logger.info("Decrypted %s to %s", source.name, output.name)
    return output


def rotate_encrypted_env(
    path: PathLike,
    passphrase: str,
    new_secret_key: str,
    new_passphrase: Optional[str] = None,
    key_label: Optional[str] = None,
) -> Path:
    """Rotate the secret key of an encrypted file in place.

    Raises:
        FileStateError: If ``path`` does not exist.
        InvalidFormat: If ``path`` is not an encrypted env file.
        DecryptionFailed: If ``passphrase`` is wrong.
    """
    path = Path(path)
    label = key_label or DEFAULT_KEY_LABEL
    content = _require_file(path)

    rotated = rotate_encrypted_secret_key(
        split_lines(content), passphrase, new_secret_key, new_passphrase, label,
    )
    write_text_atomic(path, join_lines(rotated))
    logger.info("Rotated secret key of %s", path.name)
    return path
