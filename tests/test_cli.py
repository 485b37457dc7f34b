"""Tests for validator_keys.cli — Click entry point."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from validator_keys.cli import default_key_file, main
from validator_keys.core import ValidatorKeys
from validator_keys.manifest import verify_manifest
from validator_keys.models import MAX_SEQUENCE, KeyType

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _invoke(*args: str, env: dict[str, str] | None = None):
    runner = CliRunner()
    return runner.invoke(main, list(args), env=env)


def _manifest_from_output(output: str) -> str:
    block = output.split("[validation_manifest]\n", 1)[1]
    return "".join(line for line in block.splitlines() if line)


# ===========================================================================
# Global flags
# ===========================================================================


class TestCliFlags:
    def test_version_flag(self) -> None:
        with patch("importlib.metadata.version", return_value="0.1.0"):
            result = _invoke("--version")
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_help_flag_lists_commands(self) -> None:
        result = _invoke("--help")
        assert result.exit_code == 0
        for cmd in ("create_master_keys", "create_signing_keys", "revoke_master_keys"):
            assert cmd in result.output
        assert "--keyfile" in result.output

    def test_no_command_prints_help(self) -> None:
        result = _invoke()
        assert result.exit_code == 0
        assert "create_master_keys" in result.output

    def test_unknown_option_is_usage_error(self) -> None:
        result = _invoke("--bogus")
        assert result.exit_code != 0

    def test_unittest_flag_runs_self_test(self) -> None:
        result = _invoke("--unittest")
        assert result.exit_code == 0, result.output
        assert "3 of 3 cases passed" in result.stdout

    def test_unittest_flag_reports_failure(self) -> None:
        with patch("validator_keys.cli.run_self_test", return_value=False):
            result = _invoke("--unittest")
        assert result.exit_code == 1


# ===========================================================================
# Key file selection
# ===========================================================================


class TestKeyFileOption:
    def test_default_key_file_uses_home(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME", "/home/validator")
        assert default_key_file() == "/home/validator/.ripple/validator-keys.json"

    def test_default_key_file_used_without_option(self, tmp_path: Path) -> None:
        result = _invoke("create_master_keys", env={"HOME": str(tmp_path)})
        assert result.exit_code == 0, result.output
        assert (tmp_path / ".ripple" / "validator-keys.json").exists()


# ===========================================================================
# Commands
# ===========================================================================


class TestCommands:
    def test_create_master_keys(self, key_file: Path) -> None:
        result = _invoke("--keyfile", str(key_file), "create_master_keys")
        assert result.exit_code == 0, result.output
        assert result.stdout == f"Master validator keys stored in {key_file}\n"
        keys = ValidatorKeys.load(key_file)
        assert keys.sequence == 0
        assert keys.key_type is KeyType.ed25519

    def test_create_master_keys_refuses_overwrite(self, saved_key_file: Path) -> None:
        before = saved_key_file.read_bytes()
        result = _invoke("--keyfile", str(saved_key_file), "create_master_keys")
        assert result.exit_code == 1
        assert result.stderr == (
            f"Refusing to overwrite existing key file: {saved_key_file}\n"
        )
        assert saved_key_file.read_bytes() == before

    def test_create_signing_keys(self, saved_key_file: Path) -> None:
        for expected in (1, 2):
            result = _invoke("--keyfile", str(saved_key_file), "create_signing_keys")
            assert result.exit_code == 0, result.output
            assert result.stdout.startswith("Update rippled.cfg file with these values:")
            assert f"# sequence number: {expected}\n" in result.stdout
            assert verify_manifest(_manifest_from_output(result.stdout)).valid
            assert ValidatorKeys.load(saved_key_file).sequence == expected

    def test_revoke_then_sign_refused(self, saved_key_file: Path) -> None:
        result = _invoke("--keyfile", str(saved_key_file), "revoke_master_keys")
        assert result.exit_code == 0, result.output
        assert result.stdout.startswith("WARNING: This will revoke your master keys!\n\n")
        assert ValidatorKeys.load(saved_key_file).sequence == MAX_SEQUENCE

        before = saved_key_file.read_bytes()
        result = _invoke("--keyfile", str(saved_key_file), "create_signing_keys")
        assert result.exit_code == 1
        assert result.stderr == (
            "Sequence is already at maximum value. Master keys have been revoked.\n"
        )
        assert result.stdout == ""
        assert saved_key_file.read_bytes() == before

    def test_bad_key_file(self, key_file: Path) -> None:
        key_file.parent.mkdir(parents=True)
        key_file.write_text("{{}", encoding="utf-8")
        result = _invoke("--keyfile", str(key_file), "create_signing_keys")
        assert result.exit_code == 1
        assert result.stderr == f"Unable to parse json key file: {key_file}\n"

    def test_unknown_command(self, key_file: Path) -> None:
        result = _invoke("--keyfile", str(key_file), "make_coffee")
        assert result.exit_code == 1
        assert result.stderr == "Unknown command\n"

    def test_wrong_number_of_parameters(self, key_file: Path) -> None:
        result = _invoke("--keyfile", str(key_file), "create_master_keys", "again")
        assert result.exit_code == 1
        assert result.stderr == "Syntax error: Wrong number of parameters\n"
        assert not key_file.exists()

    def test_symlinked_key_file_is_advanced(self, saved_key_file: Path) -> None:
        link = saved_key_file.parent / "link.json"
        link.symlink_to(saved_key_file)
        result = _invoke("--keyfile", str(link), "create_signing_keys")
        assert result.exit_code == 0, result.output
        assert link.is_symlink()
        assert ValidatorKeys.load(saved_key_file).sequence == 1

    def test_oversized_sequence_reported_on_stderr(self, key_file: Path) -> None:
        key_file.parent.mkdir(parents=True)
        key_file.write_text('{"sequence": ' + "9" * 5000 + "}", encoding="utf-8")
        result = _invoke("--keyfile", str(key_file), "create_signing_keys")
        assert result.exit_code == 1
        assert result.stderr == f"Unable to parse json key file: {key_file}\n"
