"""Shared test fixtures for validator-keys."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from validator_keys.core import ValidatorKeys
from validator_keys.models import KeyType

# ---------------------------------------------------------------------------
# Key fixtures — one per key type
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def masterpassphrase_seed() -> bytes:
    """Seed of the well-known "masterpassphrase" test account."""
    return bytes.fromhex("DEDCE9CE67B451D852FD4E846FCDE31C")


@pytest.fixture(params=[KeyType.ed25519, KeyType.secp256k1], ids=lambda k: k.value)
def key_type(request: pytest.FixtureRequest) -> KeyType:
    """Each supported key type in turn."""
    return request.param


@pytest.fixture(scope="session")
def ed25519_keys() -> ValidatorKeys:
    """Master keys on Ed25519 (the default master key type)."""
    return ValidatorKeys.fresh(KeyType.ed25519)


@pytest.fixture(scope="session")
def secp256k1_keys() -> ValidatorKeys:
    """Master keys on secp256k1."""
    return ValidatorKeys.fresh(KeyType.secp256k1)


# ---------------------------------------------------------------------------
# Key-file fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def key_file(tmp_path: Path) -> Path:
    """Path of a key file that does not exist yet, inside a scratch subdirectory."""
    return tmp_path / "test_key_file" / "validator_keys.json"


@pytest.fixture()
def saved_key_file(key_file: Path, ed25519_keys: ValidatorKeys) -> Path:
    """A key file holding a copy of *ed25519_keys* at sequence 0."""
    ValidatorKeys(KeyType.ed25519, ed25519_keys.master_secret).save(key_file)
    return key_file


@pytest.fixture()
def write_json(key_file: Path):
    """Write a raw JSON document to *key_file*; return the path as a string."""

    def _write(document: Any) -> str:
        key_file.parent.mkdir(parents=True, exist_ok=True)
        key_file.write_text(json.dumps(document, indent=3), encoding="utf-8")
        return str(key_file)

    return _write
