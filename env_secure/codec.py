"""
Env Secure File Codec — on-disk framing of an encrypted env file.

Layout::

    SECRET_KEY=<hex-iv>:<hex-ciphertext>     header, wraps "ENV_SECURE_KEY=<secret>"
    <blank or comment line, verbatim>
    <hex-iv>:<hex-ciphertext>                one token per data line
    ...

The header is sealed with a key derived from the passphrase; data lines are
sealed with a key derived from the secret key. Line order is preserved
exactly, and the secret key never appears in plaintext in the output.

Security Note:
    Never log passphrases, secret keys, plaintext lines or tokens.
"""
import re
import logging
from collections.abc import Sequence

from .crypto import derive_key, wrapping_key, seal, open_token
from .parser import is_passthrough, parse_lines
from .exceptions import (
    DecryptionFailed,
    EmptyInput,
    InvalidFormat,
    MalformedToken,
    MissingPassphrase,
    MissingSecretKey,
)

logger = logging.getLogger("env_secure")

HEADER_MARKER = "SECRET_KEY="
DEFAULT_KEY_LABEL = "ENV_SECURE_KEY"


def _label_pattern(key_label: str) -> "re.Pattern[str]":
    return re.compile(rf"{re.escape(key_label)}=(.+)")


def encrypt_lines(
    plain_lines: Sequence[str],
    secret_key: str,
    passphrase: str,
    key_label: str = DEFAULT_KEY_LABEL,
) -> list[str]:
    """Encrypt the lines of a plaintext env file.

    Args:
        plain_lines: Lines of the plaintext file, in order.
        secret_key: Secret key that encrypts the data lines.
        passphrase: Passphrase that wraps the secret key in the header.
        key_label: Reserved variable name the secret key is stored under.

    Returns:
        Header line followed by one output line per input line.

    Raises:
        MissingSecretKey: If ``secret_key`` is empty.
        MissingPassphrase: If ``passphrase`` is empty.
        EmptyInput: If ``plain_lines`` is empty.
    """
    if not secret_key:
        raise MissingSecretKey("Secret key is required for encryption")
    if not passphrase:
        raise MissingPassphrase("Passphrase is required for encryption")
    if not plain_lines:
        raise EmptyInput("Nothing to encrypt")

    header_token = seal(f"{key_label}={secret_key}", wrapping_key(passphrase))
    encrypted = [f"{HEADER_MARKER}{header_token}"]

    # derivation is deterministic, one line key serves the whole file
    line_key = derive_key(secret_key)
    sealed = 0
    for line in parse_lines(plain_lines):
        if is_passthrough(line):
            encrypted.append(line.raw)
        else:
            encrypted.append(seal(line.raw, line_key))
            sealed += 1

    logger.debug(
        "Encrypted %d line(s), %d passed through",
        sealed, len(plain_lines) - sealed,
    )
    return encrypted


def read_header(
    enc_lines: Sequence[str],
    passphrase: str,
    key_label: str = DEFAULT_KEY_LABEL,
) -> str:
    """Unwrap and return the secret key held in an encrypted file header.

    Raises:
        MissingPassphrase: If ``passphrase`` is empty.
        InvalidFormat: If the header is missing or does not carry the key.
        DecryptionFailed: If the passphrase is wrong.
    """
    if not passphrase:
        raise MissingPassphrase("Passphrase is required for decryption")
    if not enc_lines or not enc_lines[0].startswith(HEADER_MARKER):
        raise InvalidFormat("Encrypted file is invalid: secret key not found")

    header_token = enc_lines[0][len(HEADER_MARKER):]
    try:
        unwrapped = open_token(header_token, wrapping_key(passphrase))
    except MalformedToken as err:
        raise InvalidFormat(f"Encrypted file header is invalid: {err}") from err
    match = _label_pattern(key_label).fullmatch(unwrapped)
    if not match:
        raise InvalidFormat("Encrypted file is invalid: secret key not found")
    return match.group(1)


def decrypt_lines(
    enc_lines: Sequence[str],
    passphrase: str,
    key_label: str = DEFAULT_KEY_LABEL,
) -> list[str]:
    """Decrypt the lines of an encrypted env file.

    Args:
        enc_lines: Lines of the encrypted file, header first.
        passphrase: Passphrase the secret key was wrapped with.
        key_label: Reserved variable name the secret key is stored under.

    Returns:
        The plaintext lines (header excluded), in order.

    Raises:
        InvalidFormat: If the header is missing or malformed.
        DecryptionFailed: If the passphrase is wrong, or a data line is
            corrupted or not a valid token.
    """
    secret_key = read_header(enc_lines, passphrase, key_label)
    line_key = derive_key(secret_key)

    decrypted = []
    for lineno, line in enumerate(parse_lines(enc_lines[1:]), start=2):
        if is_passthrough(line):
            decrypted.append(line.raw)
            continue
        try:
            decrypted.append(open_token(line.raw, line_key))
        except MalformedToken as err:
            raise DecryptionFailed(f"Line {lineno}: {err}") from err

    logger.debug("Decrypted %d line(s)", len(decrypted))
    return decrypted
