"""Env Secure — Encryption at rest for .env files.

Security Note (Threat Model):
    The secret key lives in plaintext inside the .env file until the file is
    encrypted; it is then wrapped with a passphrase-derived key and stored in
    the header of the encrypted file. Tokens are AES-256-CBC without a MAC,
    so tampering is only detected incidentally. This is an accepted
    limitation of the file format.
"""

from .version import __version__
from .crypto import derive_key, seal, open_token
from .codec import encrypt_lines, decrypt_lines
from .lifecycle import KeyState, SecretKeyManager
from .store import FileSecretKeyStore, MemorySecretKeyStore, SecretKeyStore
from .key_rotation import rotate_encrypted_secret_key
from .envfile import encrypt_env, decrypt_env, rotate_encrypted_env
from .config import EnvSecureConfig, generate_secret_key
from .exceptions import (
    EnvSecureError,
    InvalidInput,
    MalformedToken,
    DecryptionFailed,
    InvalidFormat,
    MissingSecretKey,
    MissingPassphrase,
    FileStateError,
    EmptyInput,
    SecretKeyExists,
    SecretKeyMismatch,
)

__all__ = [
    "__version__",
    "derive_key",
    "seal",
    "open_token",
    "encrypt_lines",
    "decrypt_lines",
    "KeyState",
    "SecretKeyManager",
    "SecretKeyStore",
    "FileSecretKeyStore",
    "MemorySecretKeyStore",
    "rotate_encrypted_secret_key",
    "encrypt_env",
    "decrypt_env",
    "rotate_encrypted_env",
    "EnvSecureConfig",
    "generate_secret_key",
    "EnvSecureError",
    "InvalidInput",
    "MalformedToken",
    "DecryptionFailed",
    "InvalidFormat",
    "MissingSecretKey",
    "MissingPassphrase",
    "FileStateError",
    "EmptyInput",
    "SecretKeyExists",
    "SecretKeyMismatch",
]
