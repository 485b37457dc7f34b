"""Tests for Pydantic models in validator_keys.models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from validator_keys.models import (
    MAX_SEQUENCE,
    EphemeralKeys,
    KeyFile,
    KeyType,
    Manifest,
    ManifestVerification,
)

# ---------------------------------------------------------------------------
# KeyType
# ---------------------------------------------------------------------------


class TestKeyType:
    def test_values(self) -> None:
        assert KeyType.ed25519.value == "ed25519"
        assert KeyType.secp256k1.value == "secp256k1"

    def test_is_string_enum(self) -> None:
        assert isinstance(KeyType.ed25519, str)

    def test_from_string_known(self) -> None:
        assert KeyType.from_string("ed25519") is KeyType.ed25519
        assert KeyType.from_string("secp256k1") is KeyType.secp256k1

    @pytest.mark.parametrize(
        "raw", ["dummy keytype", "", "ED25519", "invalid", None, 5, ["ed25519"]]
    )
    def test_from_string_unknown_is_invalid(self, raw: object) -> None:
        assert KeyType.from_string(raw) is KeyType.invalid

    def test_key_sizes(self) -> None:
        for key_type in (KeyType.ed25519, KeyType.secp256k1):
            assert key_type.secret_size == 32
            assert key_type.public_size == 33

    def test_invalid_has_no_sizes(self) -> None:
        with pytest.raises(ValueError):
            _ = KeyType.invalid.secret_size


# ---------------------------------------------------------------------------
# KeyFile
# ---------------------------------------------------------------------------


class TestKeyFile:
    def _make(self, **overrides: object) -> KeyFile:
        fields: dict[str, object] = {
            "key_type": "ed25519",
            "master_secret": "paxxx",
            "validation_public_key": "nHxxx",
            "sequence": 0,
        }
        fields.update(overrides)
        return KeyFile(**fields)  # type: ignore[arg-type]

    def test_field_order_in_json(self) -> None:
        dumped = self._make().model_dump_json()
        positions = [
            dumped.index(name)
            for name in ("key_type", "master_secret", "validation_public_key", "sequence")
        ]
        assert positions == sorted(positions)

    def test_key_type_serialized_as_name(self) -> None:
        assert '"key_type":"ed25519"' in self._make().model_dump_json()

    def test_max_sequence_accepted(self) -> None:
        assert self._make(sequence=MAX_SEQUENCE).sequence == MAX_SEQUENCE

    def test_sequence_above_max_rejected(self) -> None:
        with pytest.raises(ValidationError):
            self._make(sequence=MAX_SEQUENCE + 1)

    def test_negative_sequence_rejected(self) -> None:
        with pytest.raises(ValidationError):
            self._make(sequence=-1)


# ---------------------------------------------------------------------------
# EphemeralKeys / Manifest
# ---------------------------------------------------------------------------


class TestEphemeralKeys:
    def test_valid(self) -> None:
        eph = EphemeralKeys(seed=b"\x01" * 16, manifest="AA==", validation_public_key=b"\x02" * 33)
        assert eph.seed == b"\x01" * 16

    def test_wrong_seed_length_rejected(self) -> None:
        with pytest.raises(ValidationError):
            EphemeralKeys(seed=b"\x01" * 15, manifest="", validation_public_key=b"\x02" * 33)

    def test_wrong_public_key_length_rejected(self) -> None:
        with pytest.raises(ValidationError):
            EphemeralKeys(seed=b"\x01" * 16, manifest="", validation_public_key=b"\x02" * 32)


class TestManifest:
    def test_signatures_default_to_none(self) -> None:
        m = Manifest(sequence=1, master_public_key=b"a", signing_public_key=b"b")
        assert m.signature is None
        assert m.master_signature is None

    def test_revoked_flag(self) -> None:
        assert Manifest(
            sequence=MAX_SEQUENCE, master_public_key=b"a", signing_public_key=b"b"
        ).revoked
        assert not Manifest(
            sequence=7, master_public_key=b"a", signing_public_key=b"b"
        ).revoked

    def test_verification_defaults(self) -> None:
        result = ManifestVerification(valid=False, error="boom")
        assert result.manifest is None
        assert result.error == "boom"
