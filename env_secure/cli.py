"""
env-secure — command line front end.

Commands:
    set-key        store the first secret key in the env file
    encrypt        encrypt the env file (removes the plaintext)
    decrypt        decrypt the encrypted file (removes the ciphertext)
    rotate-key     replace the secret key (--encrypted to rotate in place)
    generate-key   print a random secret key
    status         show where the env file is in its lifecycle

Exit status is 0 on success, 1 on any env_secure error and 130 when a
prompt is cancelled.
"""
import sys
import getpass
import logging
import argparse
from typing import Optional

from colorama import Fore, Style, just_fix_windows_console

from .config import EnvSecureConfig, generate_secret_key
from .envfile import (
    decrypt_env,
    encrypt_env,
    key_manager,
    key_state,
    rotate_encrypted_env,
)
from .exceptions import (
    EnvSecureError,
    FileStateError,
    InvalidInput,
    MissingPassphrase,
)
from .lifecycle import KeyState
from .version import __version__

logger = logging.getLogger("env_secure")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CANCELLED = 130


def success(message: str) -> None:
    print(f"{Fore.GREEN}{message}{Style.RESET_ALL}")


def error(message: str) -> None:
    print(f"{Fore.RED}Error: {message}{Style.RESET_ALL}", file=sys.stderr)


def prompt_secret(question: str) -> str:
    """Prompt without echo; the answer is never logged."""
    return getpass.getpass(question)


def prompt_passphrase(confirm: bool = False) -> str:
    passphrase = prompt_secret("Enter your passphrase: ")
    if not passphrase:
        raise MissingPassphrase("Passphrase cannot be empty.")
    if confirm and prompt_secret("Confirm your passphrase: ") != passphrase:
        raise InvalidInput("Passphrases do not match.")
    return passphrase


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_set_key(config: EnvSecureConfig, args: argparse.Namespace) -> int:
    manager = key_manager(config)
    if key_state(config) is KeyState.ENCRYPTED:
        raise FileStateError(
            f"{config.encrypted_file.name} is encrypted. Decrypt it first."
        )
    if manager.has_secret_key():
        error("Secret key is already set. Use `rotate-key` to change it.")
        return EXIT_ERROR
    secret_key = prompt_secret("Enter your secret key: ")
    if not secret_key:
        raise InvalidInput("Secret key cannot be empty.")
    manager.set_secret_key(secret_key)
    success("Secret key saved successfully.")
    return EXIT_OK


def cmd_encrypt(config: EnvSecureConfig, args: argparse.Namespace) -> int:
    if not config.env_file.exists():
        raise FileStateError(f"File {config.env_file} does not exist.")
    passphrase = prompt_passphrase(confirm=True)
    encrypt_env(
        config.env_file, config.encrypted_file, passphrase, config.key_label,
    )
    success(
        f"Successfully encrypted {config.env_file.name} "
        f"to {config.encrypted_file.name}."
    )
    return EXIT_OK


def cmd_decrypt(config: EnvSecureConfig, args: argparse.Namespace) -> int:
    if not config.encrypted_file.exists():
        raise FileStateError(f"File {config.encrypted_file} does not exist.")
    passphrase = prompt_passphrase()
    decrypt_env(
        config.encrypted_file, config.env_file, passphrase, config.key_label,
    )
    success(
        f"Successfully decrypted {config.encrypted_file.name} "
        f"to {config.env_file.name}."
    )
    return EXIT_OK


def cmd_rotate_key(config: EnvSecureConfig, args: argparse.Namespace) -> int:
    if args.encrypted:
        return _rotate_encrypted(config, args)
    if args.new_passphrase:
        raise InvalidInput("--new-passphrase requires --encrypted.")
    if key_state(config) is KeyState.ENCRYPTED:
        error(
            f"{config.encrypted_file.name} is encrypted. "
            "Use `rotate-key --encrypted` to rotate its key."
        )
        return EXIT_ERROR

    manager = key_manager(config)
    if not manager.has_secret_key():
        error("Secret key is not set. Use `set-key` to set it first.")
        return EXIT_ERROR
    current = prompt_secret("Enter your current secret key: ")
    if not manager.verify_secret_key(current):
        error("Current secret key is incorrect.")
        return EXIT_ERROR
    new = prompt_secret("Enter your new secret key: ")
    if not new:
        raise InvalidInput("New secret key cannot be empty.")
    manager.rotate_secret_key(current, new)
    success("Secret key updated successfully.")
    return EXIT_OK


def _rotate_encrypted(config: EnvSecureConfig, args: argparse.Namespace) -> int:
    if not config.encrypted_file.exists():
        raise FileStateError(f"File {config.encrypted_file} does not exist.")
    passphrase = prompt_passphrase()
    new = prompt_secret("Enter your new secret key: ")
    if not new:
        raise InvalidInput("New secret key cannot be empty.")
    new_passphrase = None
    if args.new_passphrase:
        print("New passphrase:")
        new_passphrase = prompt_passphrase(confirm=True)
    rotate_encrypted_env(
        config.encrypted_file, passphrase, new, new_passphrase, config.key_label,
    )
    success(f"Secret key of {config.encrypted_file.name} updated successfully.")
    return EXIT_OK


def cmd_generate_key(config: EnvSecureConfig, args: argparse.Namespace) -> int:
    print(generate_secret_key())
    return EXIT_OK


def cmd_status(config: EnvSecureConfig, args: argparse.Namespace) -> int:
    state = key_state(config)
    print(f"{config.env_file.name}: {state.value}")
    return EXIT_OK


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="env-secure",
        description="Encrypt and decrypt .env files with a rotatable secret key.",
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "--env-file", default=None,
        help="Plaintext env file (default: .env or $ENV_SECURE_FILE).",
    )
    parser.add_argument(
        "--encrypted-file", default=None,
        help="Encrypted env file (default: .env.enc or $ENV_SECURE_ENCRYPTED_FILE).",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser(
        "set-key",
        help="Set the secret key for encryption/decryption (only works the first time).",
    ).set_defaults(func=cmd_set_key)
    subparsers.add_parser(
        "encrypt", help="Encrypt the env file.",
    ).set_defaults(func=cmd_encrypt)
    subparsers.add_parser(
        "decrypt", help="Decrypt the encrypted env file.",
    ).set_defaults(func=cmd_decrypt)

    rotate_parser = subparsers.add_parser(
        "rotate-key",
        help="Change the secret key (no encryption/decryption is performed).",
    )
    rotate_parser.add_argument(
        "--encrypted", action="store_true",
        help="Rotate the key of the encrypted file, re-encrypting it in place.",
    )
    rotate_parser.add_argument(
        "--new-passphrase", action="store_true",
        help="With --encrypted, also change the passphrase.",
    )
    rotate_parser.set_defaults(func=cmd_rotate_key)

    subparsers.add_parser(
        "generate-key", help="Print a random secret key.",
    ).set_defaults(func=cmd_generate_key)
    subparsers.add_parser(
        "status", help="Show whether a key is set and the file is encrypted.",
    ).set_defaults(func=cmd_status)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    just_fix_windows_console()
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    try:
        config = EnvSecureConfig.from_env(
            env_file=args.env_file, encrypted_file=args.encrypted_file,
        )
        return args.func(config, args)
    except (KeyboardInterrupt, EOFError):
        print(file=sys.stderr)
        error("Cancelled.")
        return EXIT_CANCELLED
    except (EnvSecureError, ValueError, OSError) as err:
        # ValueError covers invalid settings from pydantic
        logger.debug("Command %s failed", args.command, exc_info=True)
        error(str(err))
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
