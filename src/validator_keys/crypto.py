"""Key derivation, signing and verification for the supported curves.

Ed25519 goes through ``cryptography``; secp256k1 goes through ``ecdsa``
because it needs RFC 6979 nonces over a caller-supplied digest.
"""

from __future__ import annotations

import hashlib
import secrets

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from ecdsa import SECP256k1, BadSignatureError, SigningKey, VerifyingKey
from ecdsa.der import UnexpectedDER
from ecdsa.errors import MalformedPointError
from ecdsa.keys import BadDigestError
from ecdsa.util import sigdecode_der, sigencode_der_canonize

from validator_keys.models import KeyType

SEED_SIZE = 16
ED25519_PREFIX = 0xED

_SECP256K1_ORDER: int = SECP256k1.order

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def sha512_half(data: bytes) -> bytes:
    """First 32 bytes of the SHA-512 digest of *data*."""
    return hashlib.sha512(data).digest()[:32]


def _is_valid_scalar(candidate: bytes) -> bool:
    return 0 < int.from_bytes(candidate, "big") < _SECP256K1_ORDER


def _first_valid_scalar(prefix: bytes) -> bytes:
    """Hash ``prefix || counter`` for counter = 0, 1, ... until a valid scalar appears."""
    counter = 0
    while True:
        candidate = sha512_half(prefix + counter.to_bytes(4, "big"))
        if _is_valid_scalar(candidate):
            return candidate
        counter += 1


def _require_seed(seed: bytes) -> None:
    if len(seed) != SEED_SIZE:
        raise ValueError(f"Seed must be {SEED_SIZE} bytes, got {len(seed)}")


def _secp256k1_public(secret: bytes) -> bytes:
    if not _is_valid_scalar(secret):
        raise ValueError("secp256k1 secret key is out of range")
    signing_key = SigningKey.from_string(secret, curve=SECP256k1)
    return signing_key.get_verifying_key().to_string("compressed")


def _ed25519_public(secret: bytes) -> bytes:
    public = Ed25519PrivateKey.from_private_bytes(secret).public_key()
    raw = public.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )
    return bytes([ED25519_PREFIX]) + raw


def _require_secret(key_type: KeyType, secret: bytes) -> None:
    if key_type is KeyType.invalid:
        raise ValueError("Cannot use an invalid key type")
    if len(secret) != key_type.secret_size:
        raise ValueError(
            f"{key_type.value} secret key must be {key_type.secret_size} bytes, "
            f"got {len(secret)}"
        )


# ---------------------------------------------------------------------------
# Key generation
# ---------------------------------------------------------------------------


def random_seed() -> bytes:
    """Sample a fresh seed from the operating system CSPRNG."""
    return secrets.token_bytes(SEED_SIZE)


def generate_secret_key(key_type: KeyType, seed: bytes) -> bytes:
    """Derive the node secret key for *seed*.

    Ed25519 uses the half-SHA-512 of the seed directly. secp256k1 uses the
    deterministic root key of the seed's key family.
    """
    _require_seed(seed)
    if key_type is KeyType.ed25519:
        return sha512_half(seed)
    if key_type is KeyType.secp256k1:
        return _first_valid_scalar(seed)
    raise ValueError("Cannot generate a secret key for an invalid key type")


def generate_key_pair(key_type: KeyType, seed: bytes) -> tuple[bytes, bytes]:
    """Derive ``(public_key, secret_key)`` for *seed*.

    For secp256k1 this is the first key of the seed's family generator, which
    differs from :func:`generate_secret_key`: the root key is tweaked by a
    scalar derived from the root public key.
    """
    if key_type is KeyType.ed25519:
        secret = generate_secret_key(key_type, seed)
        return _ed25519_public(secret), secret
    if key_type is KeyType.secp256k1:
        root = generate_secret_key(key_type, seed)
        root_public = _secp256k1_public(root)
        tweak = _first_valid_scalar(root_public + (0).to_bytes(4, "big"))
        value = (int.from_bytes(root, "big") + int.from_bytes(tweak, "big")) % (
            _SECP256K1_ORDER
        )
        secret = value.to_bytes(32, "big")
        return _secp256k1_public(secret), secret
    raise ValueError("Cannot generate a key pair for an invalid key type")


def derive_public_key(key_type: KeyType, secret: bytes) -> bytes:
    """Compute the 33-byte public key belonging to *secret*."""
    _require_secret(key_type, secret)
    if key_type is KeyType.ed25519:
        return _ed25519_public(secret)
    return _secp256k1_public(secret)


def public_key_type(public_key: bytes) -> KeyType | None:
    """Infer the curve of a 33-byte public key from its leading byte."""
    if len(public_key) != 33:
        return None
    if public_key[0] == ED25519_PREFIX:
        return KeyType.ed25519
    if public_key[0] in (0x02, 0x03):
        return KeyType.secp256k1
    return None


def is_valid_secret(key_type: KeyType, secret: bytes) -> bool:
    """Return True if *secret* can be used as a *key_type* secret key."""
    if key_type is KeyType.invalid or len(secret) != key_type.secret_size:
        return False
    if key_type is KeyType.secp256k1:
        return _is_valid_scalar(secret)
    return True


# ---------------------------------------------------------------------------
# Signing
# ---------------------------------------------------------------------------


def sign(key_type: KeyType, secret: bytes, message: bytes) -> bytes:
    """Sign *message* with *secret*.

    Ed25519 signs the message itself. secp256k1 signs the half-SHA-512 of
    the message with a deterministic nonce and returns a canonical (low-S)
    DER signature.
    """
    _require_secret(key_type, secret)
    if key_type is KeyType.ed25519:
        return Ed25519PrivateKey.from_private_bytes(secret).sign(message)
    signing_key = SigningKey.from_string(secret, curve=SECP256k1)
    return signing_key.sign_digest_deterministic(
        sha512_half(message),
        hashfunc=hashlib.sha256,
        sigencode=sigencode_der_canonize,
    )


def _is_canonical_der(signature: bytes) -> bool:
    try:
        r, s = sigdecode_der(signature, _SECP256K1_ORDER)
    except UnexpectedDER:
        return False
    return 0 < r < _SECP256K1_ORDER and 0 < s <= _SECP256K1_ORDER // 2


def verify(public_key: bytes, message: bytes, signature: bytes) -> bool:
    """Check *signature* over *message*; the curve is taken from *public_key*."""
    key_type = public_key_type(public_key)
    if key_type is KeyType.ed25519:
        try:
            Ed25519PublicKey.from_public_bytes(public_key[1:]).verify(signature, message)
        except (InvalidSignature, ValueError):
            return False
        return True
    if key_type is KeyType.secp256k1:
        if not _is_canonical_der(signature):
            return False
        try:
            verifying_key = VerifyingKey.from_string(public_key, curve=SECP256k1)
            return verifying_key.verify_digest(
                signature, sha512_half(message), sigdecode=sigdecode_der
            )
        except (BadSignatureError, BadDigestError, MalformedPointError):
            return False
    return False


__all__ = [
    "SEED_SIZE",
    "derive_public_key",
    "generate_key_pair",
    "generate_secret_key",
    "is_valid_secret",
    "public_key_type",
    "random_seed",
    "sha512_half",
    "sign",
    "verify",
]
