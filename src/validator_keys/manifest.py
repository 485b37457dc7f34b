"""Build, decode and verify validator manifests."""

from __future__ import annotations

import binascii
import logging

from validator_keys import codec, crypto
from validator_keys.models import KeyType, Manifest, ManifestVerification
from validator_keys.serializer import (
    HASH_PREFIX_MANIFEST,
    MASTER_SIGNATURE,
    PUBLIC_KEY,
    SEQUENCE,
    SIGNATURE,
    SIGNING_PUB_KEY,
    SerializedObject,
    sign_object,
    verify_object,
)

logger = logging.getLogger(__name__)


def build_manifest(
    sequence: int,
    master_key_type: KeyType,
    master_secret: bytes,
    signing_key_type: KeyType,
    signing_secret: bytes,
) -> str:
    """Return the base-64 manifest binding the signing key to the master key.

    The body carries the sequence, master public key and signing public key.
    The signing key signs the body first; the master key then signs the body
    together with that signature.
    """
    master_public = crypto.derive_public_key(master_key_type, master_secret)
    signing_public = crypto.derive_public_key(signing_key_type, signing_secret)

    st = SerializedObject()
    st.append(SEQUENCE, sequence)
    st.append(PUBLIC_KEY, master_public)
    st.append(SIGNING_PUB_KEY, signing_public)

    sign_object(st, HASH_PREFIX_MANIFEST, signing_key_type, signing_secret)
    sign_object(
        st, HASH_PREFIX_MANIFEST, master_key_type, master_secret, MASTER_SIGNATURE
    )

    logger.info("Built manifest with sequence %d", sequence)
    return codec.encode_base64(st.finalize())


def decode_manifest(text: str) -> SerializedObject:
    """Parse a base-64 manifest into its serialized object.

    Raises:
        ValueError: if *text* is not base-64 or not a well-formed object.
    """
    try:
        raw = codec.decode_base64("".join(text.split()))
    except binascii.Error as exc:
        raise ValueError(f"Manifest is not valid base64: {exc}") from exc
    return SerializedObject.parse(raw)


def parse_manifest(text: str) -> Manifest:
    """Decode the fields of a base-64 manifest.

    Raises:
        ValueError: if the manifest is malformed or lacks a body field.
    """
    st = decode_manifest(text)
    for field in (SEQUENCE, PUBLIC_KEY, SIGNING_PUB_KEY):
        if field not in st:
            raise ValueError(f"Manifest is missing {field.name}")
    return Manifest(
        sequence=st[SEQUENCE],
        master_public_key=st[PUBLIC_KEY],
        signing_public_key=st[SIGNING_PUB_KEY],
        signature=st.get(SIGNATURE),
        master_signature=st.get(MASTER_SIGNATURE),
    )


def verify_manifest(text: str) -> ManifestVerification:
    """Check both signatures of a base-64 manifest."""
    try:
        st = decode_manifest(text)
        manifest = parse_manifest(text)
    except ValueError as exc:
        return ManifestVerification(valid=False, error=f"Malformed manifest: {exc}")

    if not verify_object(st, HASH_PREFIX_MANIFEST, manifest.signing_public_key):
        return ManifestVerification(
            valid=False, manifest=manifest, error="Signing key signature is invalid"
        )
    if not verify_object(
        st, HASH_PREFIX_MANIFEST, manifest.master_public_key, MASTER_SIGNATURE
    ):
        return ManifestVerification(
            valid=False, manifest=manifest, error="Master key signature is invalid"
        )
    return ManifestVerification(valid=True, manifest=manifest)


__all__ = ["build_manifest", "decode_manifest", "parse_manifest", "verify_manifest"]
