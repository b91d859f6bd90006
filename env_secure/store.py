"""
Secret key storage — where the plaintext secret key lives.

The lifecycle logic only needs two capabilities from its storage medium,
``read()`` and ``write(value)``, described by :class:`SecretKeyStore`.
:class:`FileSecretKeyStore` keeps the key as a reserved assignment inside the
plaintext env file; :class:`MemorySecretKeyStore` keeps it in process memory.
"""
import os
import logging
import tempfile
from pathlib import Path
from contextlib import contextmanager
from typing import IO, Optional, Protocol, Union
from collections.abc import Iterator

from .codec import DEFAULT_KEY_LABEL
from .exceptions import InvalidInput
from .parser import assignment_value, join_lines, replace_assignment, split_lines

logger = logging.getLogger("env_secure")

PathLike = Union[str, os.PathLike]


@contextmanager
def atomic_write(path: PathLike, mode: int = 0o600) -> Iterator[IO[str]]:
    """Write a text file atomically.

    Yields a handle on a temporary file in the target directory. On success
    the data is flushed, fsynced and renamed over ``path``; on failure the
    temporary file is removed and ``path`` is left untouched.
    """
    target = Path(path)
    fd, tmp = tempfile.mkstemp(
        dir=target.parent, prefix=f".{target.name}.", suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            os.chmod(tmp, mode)
            yield f
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, target)
    except BaseException:
        try:
            os.unlink(tmp)
        except FileNotFoundError:
            pass
        raise


def write_text_atomic(path: PathLike, content: str) -> None:
    with atomic_write(path) as f:
        f.write(content)


def read_text(path: PathLike) -> str:
    # newline="" keeps \r so round trips are byte exact
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def _check_value(value: str) -> None:
    if not value or not value.strip():
        raise InvalidInput("Secret key cannot be empty")
    if "\n" in value or "\r" in value:
        raise InvalidInput("Secret key cannot contain line breaks")
    if value != value.strip():
        raise InvalidInput(
            "Secret key cannot start or end with whitespace"
        )


class SecretKeyStore(Protocol):
    """Storage capability for the plaintext secret key."""

    def read(self) -> Optional[str]:
        ...

    def write(self, value: str) -> None:
        ...


class MemorySecretKeyStore:
    """Secret key kept in process memory."""

    def __init__(self, value: Optional[str] = None):
        self._value = value

    def read(self) -> Optional[str]:
        return self._value or None

    def write(self, value: str) -> None:
        _check_value(value)
        self._value = value


class FileSecretKeyStore:
    """Secret key kept as ``<key_label>=<value>`` in a plaintext env file.

    Every call reads the file fresh; nothing is cached between calls.
    """

    def __init__(self, path: PathLike, key_label: str = DEFAULT_KEY_LABEL):
        self.path = Path(path)
        self.key_label = key_label

    def __repr__(self) -> str:
        return f"<FileSecretKeyStore {self.path} [{self.key_label}]>"

    def read(self) -> Optional[str]:
        """Return the stored secret key, or None if the file or label is absent."""
        if not self.path.exists():
            return None
        return assignment_value(split_lines(read_text(self.path)), self.key_label)

    def write(self, value: str) -> None:
        """Store ``value``, keeping every other line of the file.

        Raises:
            InvalidInput: If ``value`` is empty or spans several lines.
        """
        _check_value(value)
        if self.path.exists():
            lines = split_lines(read_text(self.path))
        else:
            lines = [""]
        updated = replace_assignment(lines, self.key_label, value)
        write_text_atomic(self.path, join_lines(updated))
        logger.debug("Secret key written to %s", self.path.name)
