"""
Tests for the env-secure command line.

Prompts are answered through a patched getpass; every test runs in its own
working directory.
"""
import getpass

import pytest

from env_secure import cli
from env_secure.codec import HEADER_MARKER


@pytest.fixture(autouse=True)
def workdir(tmp_path, monkeypatch):
    for name in ("ENV_SECURE_FILE", "ENV_SECURE_ENCRYPTED_FILE", "ENV_SECURE_KEY_LABEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def answers(monkeypatch):
    """Queue answers for the getpass prompts."""
    queue = []

    def fake_getpass(prompt=""):
        if not queue:
            raise EOFError
        return queue.pop(0)

    monkeypatch.setattr(getpass, "getpass", fake_getpass)
    return queue


def run(answers, argv, *responses):
    answers.extend(responses)
    return cli.main(argv)


class TestSetKey:
    """Tests for `set-key`."""

    def test_set_key(self, workdir, answers, capsys):
        """Test the first key is saved to .env."""
        assert run(answers, ["set-key"], "s3cr3t") == cli.EXIT_OK
        assert (workdir / ".env").read_text() == "ENV_SECURE_KEY=s3cr3t\n"
        assert "Secret key saved successfully." in capsys.readouterr().out

    def test_set_key_twice(self, workdir, answers, capsys):
        """Test a second set-key is refused."""
        run(answers, ["set-key"], "s3cr3t")
        assert run(answers, ["set-key"], "other") == cli.EXIT_ERROR
        assert "already set" in capsys.readouterr().err
        assert (workdir / ".env").read_text() == "ENV_SECURE_KEY=s3cr3t\n"

    def test_set_key_empty(self, workdir, answers, capsys):
        """Test an empty key is refused."""
        assert run(answers, ["set-key"], "") == cli.EXIT_ERROR
        assert "cannot be empty" in capsys.readouterr().err
        assert not (workdir / ".env").exists()

    def test_set_key_padded(self, workdir, answers, capsys):
        """Test a key with surrounding whitespace is refused."""
        assert run(answers, ["set-key"], " abc ") == cli.EXIT_ERROR
        assert "whitespace" in capsys.readouterr().err
        assert not (workdir / ".env").exists()

    def test_set_key_keeps_settings(self, workdir, answers):
        """Test set-key adds the key to an existing .env."""
        (workdir / ".env").write_text("A=1\n")
        assert run(answers, ["set-key"], "k") == cli.EXIT_OK
        assert (workdir / ".env").read_text() == "A=1\nENV_SECURE_KEY=k\n"


class TestEncryptDecrypt:
    """Tests for `encrypt` and `decrypt`."""

    @pytest.fixture
    def env(self, workdir):
        path = workdir / ".env"
        path.write_text("ENV_SECURE_KEY=s3cr3t\nA=1\n\n#comment\nB=2\n")
        return path

    def test_encrypt_decrypt(self, workdir, env, answers, capsys):
        """Test a full encrypt/decrypt cycle through the CLI."""
        original = env.read_text()
        assert run(answers, ["encrypt"], "pw", "pw") == cli.EXIT_OK
        assert "Successfully encrypted .env to .env.enc." in capsys.readouterr().out
        assert not env.exists()
        assert (workdir / ".env.enc").read_text().startswith(HEADER_MARKER)

        assert run(answers, ["decrypt"], "pw") == cli.EXIT_OK
        assert "Successfully decrypted .env.enc to .env." in capsys.readouterr().out
        assert env.read_text() == original
        assert not (workdir / ".env.enc").exists()

    def test_encrypt_confirmation_mismatch(self, env, answers, capsys):
        """Test mismatched passphrases abort encryption."""
        assert run(answers, ["encrypt"], "pw", "pw2") == cli.EXIT_ERROR
        assert "do not match" in capsys.readouterr().err
        assert env.exists()

    def test_encrypt_empty_passphrase(self, env, answers, capsys):
        """Test an empty passphrase aborts encryption."""
        assert run(answers, ["encrypt"], "") == cli.EXIT_ERROR
        assert "Passphrase cannot be empty." in capsys.readouterr().err

    def test_encrypt_missing_file(self, answers, capsys):
        """Test encrypting without .env fails before prompting."""
        assert run(answers, ["encrypt"]) == cli.EXIT_ERROR
        assert "does not exist" in capsys.readouterr().err

    def test_encrypt_without_key(self, workdir, answers, capsys):
        """Test encrypting a .env without a secret key fails."""
        (workdir / ".env").write_text("A=1\n")
        assert run(answers, ["encrypt"], "pw", "pw") == cli.EXIT_ERROR
        assert "set-key" in capsys.readouterr().err

    def test_decrypt_wrong_passphrase(self, workdir, env, answers, capsys):
        """Test a wrong passphrase fails and keeps the encrypted file."""
        run(answers, ["encrypt"], "pw", "pw")
        capsys.readouterr()
        assert run(answers, ["decrypt"], "wrong") == cli.EXIT_ERROR
        assert "Decryption failed" in capsys.readouterr().err
        assert (workdir / ".env.enc").exists()
        assert not env.exists()

    def test_decrypt_missing_file(self, answers, capsys):
        """Test decrypting without .env.enc fails."""
        assert run(answers, ["decrypt"]) == cli.EXIT_ERROR
        assert "does not exist" in capsys.readouterr().err

    def test_custom_paths(self, workdir, answers):
        """Test --env-file and --encrypted-file select other files."""
        (workdir / "app.env").write_text("ENV_SECURE_KEY=k\nX=1\n")
        argv = ["--env-file", "app.env", "--encrypted-file", "app.env.enc"]
        assert run(answers, argv + ["encrypt"], "pw", "pw") == cli.EXIT_OK
        assert (workdir / "app.env.enc").exists()
        assert run(answers, argv + ["decrypt"], "pw") == cli.EXIT_OK
        assert (workdir / "app.env").read_text() == "ENV_SECURE_KEY=k\nX=1\n"

    def test_unwritable_output(self, workdir, env, answers, capsys):
        """Test an OS error while writing exits with 1 and keeps the input."""
        (workdir / "outdir").mkdir()
        argv = ["--encrypted-file", "outdir", "encrypt"]
        assert run(answers, argv, "pw", "pw") == cli.EXIT_ERROR
        assert "Error:" in capsys.readouterr().err
        assert env.exists()
        assert sorted(p.name for p in workdir.iterdir()) == [".env", "outdir"]

    def test_cancelled_prompt(self, env, answers, capsys):
        """Test a cancelled prompt exits with 130."""
        assert run(answers, ["encrypt"]) == cli.EXIT_CANCELLED
        assert "Cancelled." in capsys.readouterr().err
        assert env.exists()


class TestRotateKey:
    """Tests for `rotate-key`."""

    @pytest.fixture
    def env(self, workdir):
        path = workdir / ".env"
        path.write_text("A=1\nENV_SECURE_KEY=old\n")
        return path

    def test_rotate(self, env, answers, capsys):
        """Test rotation with the correct current key."""
        assert run(answers, ["rotate-key"], "old", "new") == cli.EXIT_OK
        assert "Secret key updated successfully." in capsys.readouterr().out
        assert env.read_text() == "A=1\nENV_SECURE_KEY=new\n"

    def test_rotate_wrong_current(self, env, answers, capsys):
        """Test rotation with a wrong current key is refused."""
        assert run(answers, ["rotate-key"], "bad", "new") == cli.EXIT_ERROR
        assert "Current secret key is incorrect." in capsys.readouterr().err
        assert env.read_text() == "A=1\nENV_SECURE_KEY=old\n"

    def test_rotate_without_key(self, answers, capsys):
        """Test rotation before set-key is refused."""
        assert run(answers, ["rotate-key"]) == cli.EXIT_ERROR
        assert "Use `set-key`" in capsys.readouterr().err

    def test_rotate_while_encrypted(self, workdir, env, answers, capsys):
        """Test plain rotate-key on an encrypted file points to --encrypted."""
        run(answers, ["encrypt"], "pw", "pw")
        capsys.readouterr()
        assert run(answers, ["rotate-key"]) == cli.EXIT_ERROR
        assert "rotate-key --encrypted" in capsys.readouterr().err

    def test_new_passphrase_requires_encrypted(self, env, answers, capsys):
        """Test --new-passphrase alone is a usage error."""
        assert run(answers, ["rotate-key", "--new-passphrase"]) == cli.EXIT_ERROR
        assert "requires --encrypted" in capsys.readouterr().err
        assert env.read_text() == "A=1\nENV_SECURE_KEY=old\n"

    def test_rotate_encrypted(self, workdir, env, answers):
        """Test --encrypted rotates the key inside the encrypted file."""
        run(answers, ["encrypt"], "pw", "pw")
        assert run(answers, ["rotate-key", "--encrypted"], "pw", "new") == cli.EXIT_OK
        assert run(answers, ["decrypt"], "pw") == cli.EXIT_OK
        assert env.read_text() == "A=1\nENV_SECURE_KEY=new\n"

    def test_rotate_encrypted_new_passphrase(self, workdir, env, answers):
        """Test --encrypted --new-passphrase changes the passphrase too."""
        run(answers, ["encrypt"], "pw", "pw")
        argv = ["rotate-key", "--encrypted", "--new-passphrase"]
        assert run(answers, argv, "pw", "new", "pw2", "pw2") == cli.EXIT_OK
        assert run(answers, ["decrypt"], "pw") == cli.EXIT_ERROR
        assert run(answers, ["decrypt"], "pw2") == cli.EXIT_OK
        assert env.read_text() == "A=1\nENV_SECURE_KEY=new\n"


class TestMiscCommands:
    """Tests for `generate-key`, `status` and argument handling."""

    def test_generate_key(self, answers, capsys):
        """Test generate-key prints a fresh key."""
        assert run(answers, ["generate-key"]) == cli.EXIT_OK
        assert len(capsys.readouterr().out.strip()) >= 43

    def test_status(self, workdir, answers, capsys):
        """Test status follows the lifecycle."""
        run(answers, ["status"])
        assert "no-key" in capsys.readouterr().out
        run(answers, ["set-key"], "k")
        capsys.readouterr()
        run(answers, ["status"])
        assert "key-set" in capsys.readouterr().out
        run(answers, ["encrypt"], "pw", "pw")
        capsys.readouterr()
        run(answers, ["status"])
        assert "encrypted" in capsys.readouterr().out

    def test_set_key_while_encrypted(self, workdir, answers, capsys):
        """Test set-key is refused while the file is encrypted."""
        run(answers, ["set-key"], "k")
        run(answers, ["encrypt"], "pw", "pw")
        capsys.readouterr()
        assert run(answers, ["set-key"], "other") == cli.EXIT_ERROR
        assert "Decrypt it first" in capsys.readouterr().err

    def test_command_required(self):
        """Test running without a command is a usage error."""
        with pytest.raises(SystemExit):
            cli.main([])

    def test_invalid_label(self, monkeypatch, answers, capsys):
        """Test an invalid configured key label is reported."""
        monkeypatch.setenv("ENV_SECURE_KEY_LABEL", "bad label")
        assert run(answers, ["status"]) == cli.EXIT_ERROR
        assert "Invalid key label" in capsys.readouterr().err
