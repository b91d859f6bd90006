"""
Env Secure Crypto Core — Key derivation and the line cipher.

Implements the two primitives every env file operation is built on:
- Key derivation: scrypt(secret, fixed salt) → 32-byte AES-256 key
- Line cipher: AES-256-CBC + PKCS7 → token ``hex(iv):hex(ciphertext)``

The salt is fixed so that derivation stays deterministic without storing a
salt next to the data. This trades protection against precomputation across
installations for a self-contained file format that stays readable across
releases.

Security Note:
    CBC without a MAC gives confidentiality only. Tampering is detected
    incidentally, through padding errors, not reliably.
    Never log keys, plaintext or tokens.
"""
import os
import logging
from typing import Union

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from .exceptions import InvalidInput, MalformedToken, DecryptionFailed

logger = logging.getLogger("env_secure")

KEY_LENGTH = 32  # AES-256
IV_SIZE = 16  # AES block size
TOKEN_SEPARATOR = ":"

# scrypt cost parameters (N, r, p) and the fixed salt of the file format.
SCRYPT_N = 2 ** 14
SCRYPT_R = 8
SCRYPT_P = 1
SALT = b"some-fixed-salt"


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def derive_key(secret: Union[str, bytes]) -> bytes:
    """Derive a 32-byte key from a passphrase or secret key with scrypt.

    Args:
        secret: Passphrase or secret key. ``str`` is UTF-8 encoded.

    Returns:
        32-byte derived key, identical for identical input.

    Raises:
        InvalidInput: If ``secret`` is empty.
    """
    if not secret:
        raise InvalidInput("Cannot derive a key from an empty secret")
    if isinstance(secret, str):
        secret = secret.encode("utf-8")
    kdf = Scrypt(
        salt=SALT,
        length=KEY_LENGTH,
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
    )
    return kdf.derive(secret)


def wrapping_key(passphrase: str) -> bytes:
    """Return the key that wraps the secret key in an encrypted file header.

    The passphrase-derived key is derived once more, which is how the file
    format has always produced its header key.
    """
    return derive_key(derive_key(passphrase))


# ---------------------------------------------------------------------------
# Line cipher
# ---------------------------------------------------------------------------

def _aes_cbc(key: bytes, iv: bytes) -> Cipher:
    if len(key) != KEY_LENGTH:
        raise InvalidInput(
            f"Key must be exactly {KEY_LENGTH} bytes, got {len(key)}"
        )
    return Cipher(algorithms.AES(key), modes.CBC(iv))


def seal(plaintext: str, key: bytes) -> str:
    """Encrypt a single text value into a self-contained token.

    A fresh random IV is generated on every call.

    Args:
        plaintext: Non-empty text to encrypt.
        key: 32-byte derived key.

    Returns:
        Token in the form ``<hex-iv>:<hex-ciphertext>``.

    Raises:
        InvalidInput: If ``plaintext`` is empty or the key has the wrong size.
    """
    if not plaintext:
        raise InvalidInput("Cannot encrypt empty text")
    iv = os.urandom(IV_SIZE)
    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
    encryptor = _aes_cbc(key, iv).encryptor()
    ct = encryptor.update(padded) + encryptor.finalize()
    return f"{iv.hex()}{TOKEN_SEPARATOR}{ct.hex()}"


def _parse_token(token: str) -> tuple[bytes, bytes]:
    iv_hex, sep, ct_hex = token.partition(TOKEN_SEPARATOR)
    if not sep or not iv_hex or not ct_hex:
        raise MalformedToken(
            "Invalid token format, expected '<hex-iv>:<hex-ciphertext>'"
        )
    try:
        iv = bytes.fromhex(iv_hex)
        ct = bytes.fromhex(ct_hex)
    except ValueError as err:
        raise MalformedToken("Token is not valid hex") from err
    if len(iv) != IV_SIZE:
        raise MalformedToken(
            f"Token IV must be {IV_SIZE} bytes, got {len(iv)}"
        )
    return iv, ct


def open_token(token: str, key: bytes) -> str:
    """Decrypt a token produced by :func:`seal`.

    Args:
        token: ``<hex-iv>:<hex-ciphertext>`` string.
        key: 32-byte derived key.

    Returns:
        The original text.

    Raises:
        MalformedToken: If the token cannot be split or decoded.
        DecryptionFailed: If the key is wrong or the ciphertext is corrupted.
    """
    iv, ct = _parse_token(token)
    decryptor = _aes_cbc(key, iv).decryptor()
    unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
    try:
        padded = decryptor.update(ct) + decryptor.finalize()
        data = unpadder.update(padded) + unpadder.finalize()
        return data.decode("utf-8")
    except ValueError as err:
        # wrong key and corrupted data are indistinguishable here
        raise DecryptionFailed(
            "Decryption failed: wrong key or corrupted data"
        ) from err
