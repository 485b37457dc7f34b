"""Built-in self test run by ``validator-keys --unittest``."""

from __future__ import annotations

import contextlib
import io
import logging
import tempfile
from collections.abc import Callable
from pathlib import Path

import click

from validator_keys import codec, crypto
from validator_keys.commands import create_key_file, revoke_master_keys, sign_manifest
from validator_keys.core import ValidatorKeys
from validator_keys.errors import ValidatorKeysError
from validator_keys.manifest import verify_manifest
from validator_keys.models import MAX_SEQUENCE, KeyType

logger = logging.getLogger(__name__)

KEY_TYPES = (KeyType.ed25519, KeyType.secp256k1)


class SelfTestFailure(AssertionError):
    """A self-test expectation did not hold."""


def _expect(condition: bool, message: str) -> None:
    if not condition:
        raise SelfTestFailure(message)


def _check_make_keys(workdir: Path) -> None:
    for key_type in KEY_TYPES:
        keys = ValidatorKeys.fresh(key_type)
        _expect(keys.key_type is key_type, "fresh keys have the wrong key type")
        _expect(keys.sequence == 0, "fresh keys do not start at sequence 0")
        _expect(
            crypto.derive_public_key(key_type, keys.master_secret) == keys.public_key,
            "public key does not match master secret",
        )
        key_file = workdir / key_type.value / "validator_keys.json"
        keys.save(key_file)
        _expect(ValidatorKeys.load(key_file) == keys, "key file round trip differs")


def _check_ephemeral_keys(workdir: Path) -> None:
    for key_type in KEY_TYPES:
        keys = ValidatorKeys.fresh(key_type)
        for eph_key_type in KEY_TYPES:
            eph = keys.create_ephemeral_keys(eph_key_type)
            secret = crypto.generate_secret_key(eph_key_type, eph.seed)
            _expect(
                crypto.derive_public_key(eph_key_type, secret)
                == eph.validation_public_key,
                "seed does not reproduce the signing key",
            )
            result = verify_manifest(eph.manifest)
            _expect(result.valid, f"manifest does not verify: {result.error}")
            _expect(
                result.manifest is not None
                and result.manifest.master_public_key == keys.public_key,
                "manifest names the wrong master key",
            )


def _check_command_cycle(workdir: Path) -> None:
    key_file = workdir / "cycle" / "validator_keys.json"
    with contextlib.redirect_stdout(io.StringIO()):
        create_key_file(key_file)
        for expected in (1, 2):
            eph = sign_manifest(key_file)
            _expect(
                ValidatorKeys.load(key_file).sequence == expected,
                "sequence was not advanced on disk",
            )
            _expect(verify_manifest(eph.manifest).valid, "signed manifest is invalid")
            _expect(codec.decode_seed(codec.encode_seed(eph.seed)) == eph.seed, "seed")
        revoke_master_keys(key_file)
        before = key_file.read_bytes()
        try:
            sign_manifest(key_file)
        except ValidatorKeysError:
            pass
        else:
            raise SelfTestFailure("signing after revocation was not refused")
    _expect(key_file.read_bytes() == before, "refused signing changed the key file")
    _expect(
        ValidatorKeys.load(key_file).sequence == MAX_SEQUENCE,
        "revoked sequence was not stored",
    )


CASES: dict[str, Callable[[Path], None]] = {
    "Make Validator Keys": _check_make_keys,
    "Create Ephemeral Keys": _check_ephemeral_keys,
    "Command Cycle": _check_command_cycle,
}


def run_self_test() -> bool:
    """Run every self-test case in a scratch directory; True if all pass."""
    failed = 0
    with tempfile.TemporaryDirectory(prefix="validator-keys-") as tmpdir:
        for name, case in CASES.items():
            workdir = Path(tmpdir) / name.replace(" ", "_").lower()
            workdir.mkdir()
            try:
                case(workdir)
            except SelfTestFailure as exc:
                failed += 1
                click.echo(f"  [FAIL] {name}: {exc}")
            else:
                click.echo(f"  [OK] {name}")
    click.echo(f"{len(CASES) - failed} of {len(CASES)} cases passed")
    logger.debug("Self test finished with %d failures", failed)
    return failed == 0


__all__ = ["run_self_test"]
