"""Pydantic models for validator-keys."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

MAX_SEQUENCE = 2**32 - 1


class KeyType(str, Enum):
    """Curve used by a master or ephemeral key pair."""

    ed25519 = "ed25519"
    secp256k1 = "secp256k1"
    invalid = "invalid"

    @classmethod
    def from_string(cls, value: object) -> KeyType:
        """Parse a key type name, yielding ``KeyType.invalid`` for anything unknown."""
        if isinstance(value, str) and value in (cls.ed25519.value, cls.secp256k1.value):
            return cls(value)
        return cls.invalid

    @property
    def secret_size(self) -> int:
        self._require_valid()
        return 32

    @property
    def public_size(self) -> int:
        self._require_valid()
        return 33

    def _require_valid(self) -> None:
        if self is KeyType.invalid:
            raise ValueError("invalid key type has no key sizes")


class KeyFile(BaseModel):
    """On-disk JSON representation of a validator's master keys."""

    key_type: KeyType
    master_secret: str
    validation_public_key: str
    sequence: int = Field(ge=0, le=MAX_SEQUENCE)


class EphemeralKeys(BaseModel):
    """Signing keys and manifest handed to a validator node."""

    seed: bytes = Field(min_length=16, max_length=16)
    manifest: str  # Base-64 encoded serialized manifest
    validation_public_key: bytes = Field(min_length=33, max_length=33)


class Manifest(BaseModel):
    """Decoded fields of a serialized manifest."""

    sequence: int = Field(ge=0, le=MAX_SEQUENCE)
    master_public_key: bytes
    signing_public_key: bytes
    signature: bytes | None = None
    master_signature: bytes | None = None

    @property
    def revoked(self) -> bool:
        return self.sequence == MAX_SEQUENCE


class ManifestVerification(BaseModel):
    """Outcome of verifying both signatures on a manifest."""

    valid: bool
    manifest: Manifest | None = None
    error: str | None = None


__all__ = [
    "MAX_SEQUENCE",
    "EphemeralKeys",
    "KeyFile",
    "KeyType",
    "Manifest",
    "ManifestVerification",
]
