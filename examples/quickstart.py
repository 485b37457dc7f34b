"""validator-keys quickstart — working demonstrations of the key lifecycle.

Run this file directly to verify your installation:

    python examples/quickstart.py

Each demo works in the system temp directory and cleans up after itself.
"""

from __future__ import annotations

import tempfile
from pathlib import Path

from validator_keys import (
    MAX_SEQUENCE,
    KeyType,
    ValidatorKeys,
    ValidatorKeysError,
    verify_manifest,
)
from validator_keys.commands import create_key_file, revoke_master_keys, sign_manifest


# ---------------------------------------------------------------------------
# Demo 1 — master keys and a manifest, without touching the CLI
# ---------------------------------------------------------------------------

def demo_manifest() -> None:
    """Create master keys in memory and delegate to a secp256k1 signing key."""

    print("\n=== Demo 1: Master Keys & Manifest ===")

    keys = ValidatorKeys.fresh(KeyType.ed25519)
    print(f"  Master public key: {keys.public_key_base58}")

    keys.advance()
    eph = keys.create_ephemeral_keys(KeyType.secp256k1)
    result = verify_manifest(eph.manifest)
    print(f"  Manifest for sequence {keys.sequence}: "
          f"{'VALID' if result.valid else 'INVALID'}")


# ---------------------------------------------------------------------------
# Demo 2 — the key-file commands: create, sign, revoke
# ---------------------------------------------------------------------------

def demo_key_file_lifecycle() -> None:
    """Walk a key file through create, two signings, revocation and refusal."""

    print("\n=== Demo 2: Key File Lifecycle ===")

    with tempfile.TemporaryDirectory() as tmpdir:
        key_file = Path(tmpdir) / "ripple" / "validator-keys.json"

        create_key_file(key_file)
        sign_manifest(key_file)
        sign_manifest(key_file)
        print(f"  Sequence on disk: {ValidatorKeys.load(key_file).sequence}")

        revoke_master_keys(key_file)
        assert ValidatorKeys.load(key_file).sequence == MAX_SEQUENCE

        try:
            sign_manifest(key_file)
        except ValidatorKeysError as exc:
            print(f"  Signing after revocation refused: {exc}")


if __name__ == "__main__":
    demo_manifest()
    demo_key_file_lifecycle()
