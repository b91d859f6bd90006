"""
Env Secure Errors — exception taxonomy shared by the core and the CLI.

Every error raised by ``env_secure`` derives from :class:`EnvSecureError`, so
callers can present them uniformly. Cryptographic failures are never
transient: nothing in the package retries them.
"""


class EnvSecureError(Exception):
    """Base class for all env_secure errors."""


class InvalidInput(EnvSecureError, ValueError):
    """Empty passphrase, secret key or text where a value is required."""


class MissingSecretKey(InvalidInput):
    """No secret key is available for an operation that needs one."""


class MissingPassphrase(InvalidInput):
    """No passphrase was supplied for an encrypt/decrypt attempt."""


class MalformedToken(EnvSecureError, ValueError):
    """A ciphertext token could not be parsed (bad delimiter or hex)."""


class DecryptionFailed(EnvSecureError):
    """The cipher rejected a token.

    Raised identically for a wrong key and for corrupted ciphertext.
    """


class InvalidFormat(EnvSecureError, ValueError):
    """An encrypted file lacks its header, or the header content is invalid."""


class FileStateError(EnvSecureError, OSError):
    """Target file is absent, or empty when content is required."""


class EmptyInput(FileStateError):
    """There is nothing to encrypt."""


class SecretKeyExists(EnvSecureError):
    """A secret key is already stored; use rotation to change it."""


class SecretKeyMismatch(EnvSecureError):
    """The supplied current secret key does not match the stored one."""
