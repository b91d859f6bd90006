"""
Env Secure Configuration — file locations and validated settings.

Reads overrides from environment variables:
    ENV_SECURE_FILE = <path of the plaintext env file, default .env>
    ENV_SECURE_ENCRYPTED_FILE = <path of the encrypted file, default .env.enc>
    ENV_SECURE_KEY_LABEL = <reserved variable name, default ENV_SECURE_KEY>

Relative paths are resolved against the current working directory.
"""
import os
import re
import secrets
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .codec import DEFAULT_KEY_LABEL

logger = logging.getLogger("env_secure")

_LABEL_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

DEFAULT_ENV_FILE = ".env"
DEFAULT_ENCRYPTED_FILE = ".env.enc"


def generate_secret_key() -> str:
    """Generate a random secret key (32 bytes of entropy, URL-safe text).

    This is a utility for operators who do not want to invent a key.
    """
    return secrets.token_urlsafe(32)


class EnvSecureConfig(BaseModel):
    """Validated env_secure settings."""

    env_file: Path = Field(default=Path(DEFAULT_ENV_FILE))
    encrypted_file: Path = Field(default=Path(DEFAULT_ENCRYPTED_FILE))
    key_label: str = Field(default=DEFAULT_KEY_LABEL)

    @field_validator("key_label")
    @classmethod
    def validate_key_label(cls, v: str) -> str:
        """Key label must be a plain variable name."""
        if not _LABEL_PATTERN.match(v):
            raise ValueError(f"Invalid key label: {v!r}")
        return v

    @model_validator(mode="after")
    def validate_distinct_files(self) -> "EnvSecureConfig":
        """Plaintext and encrypted files must not be the same path."""
        if self.env_file.resolve() == self.encrypted_file.resolve():
            raise ValueError(
                f"env_file and encrypted_file both point to {self.env_file}"
            )
        return self

    @classmethod
    def from_env(cls, base_dir: Optional[Path] = None, **overrides) -> "EnvSecureConfig":
        """Create EnvSecureConfig from environment variables.

        Args:
            base_dir: Directory relative paths resolve against (default: cwd).
            overrides: Explicit values; ``None`` values are ignored.

        Returns:
            Populated EnvSecureConfig instance.
        """
        base = Path(base_dir) if base_dir else Path.cwd()
        values = {
            "env_file": os.environ.get("ENV_SECURE_FILE", DEFAULT_ENV_FILE),
            "encrypted_file": os.environ.get(
                "ENV_SECURE_ENCRYPTED_FILE", DEFAULT_ENCRYPTED_FILE,
            ),
            "key_label": os.environ.get("ENV_SECURE_KEY_LABEL", DEFAULT_KEY_LABEL),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        for name in ("env_file", "encrypted_file"):
            values[name] = base / Path(values[name])
        config = cls(**values)
        logger.debug(
            "Config: env_file=%s encrypted_file=%s key_label=%s",
            config.env_file, config.encrypted_file, config.key_label,
        )
        return config
