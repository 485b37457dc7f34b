"""Text encodings used by key files and manifests."""

from __future__ import annotations

import base64
import logging
from enum import IntEnum

import base58

logger = logging.getLogger(__name__)

SEED_TOKEN_SIZE = 16


class TokenType(IntEnum):
    """Leading byte identifying what a base58check token carries."""

    ACCOUNT_ID = 0
    NODE_PUBLIC = 28
    NODE_PRIVATE = 32
    FAMILY_SEED = 33
    ACCOUNT_SECRET = 34
    ACCOUNT_PUBLIC = 35


def encode_base58_token(token: TokenType, payload: bytes) -> str:
    """Encode *payload* as a base58check string tagged with *token*."""
    raw = bytes([token]) + payload
    return base58.b58encode_check(raw, alphabet=base58.RIPPLE_ALPHABET).decode("ascii")


def decode_base58_token(
    token: TokenType, text: str, size: int | None = None
) -> bytes | None:
    """Decode a base58check string, returning the payload without its token byte.

    Returns ``None`` when the text is not valid base58, the checksum does not
    match, the token byte differs from *token*, or the payload is not *size*
    bytes long.
    """
    if not isinstance(text, str) or not text:
        return None
    try:
        raw = base58.b58decode_check(text, alphabet=base58.RIPPLE_ALPHABET)
    except ValueError:
        return None
    if not raw or raw[0] != token:
        logger.debug("Base58 token prefix mismatch: expected %d", int(token))
        return None
    payload = raw[1:]
    if size is not None and len(payload) != size:
        return None
    return payload


def encode_seed(seed: bytes) -> str:
    return encode_base58_token(TokenType.FAMILY_SEED, seed)


def decode_seed(text: str) -> bytes | None:
    return decode_base58_token(TokenType.FAMILY_SEED, text, size=SEED_TOKEN_SIZE)


def encode_base64(data: bytes) -> str:
    """Standard alphabet, ``=`` padded."""
    return base64.b64encode(data).decode("ascii")


def decode_base64(text: str) -> bytes:
    """Decode standard base-64; raises :class:`ValueError` on malformed input."""
    return base64.b64decode(text, validate=True)


def wrap(text: str, width: int = 72) -> list[str]:
    """Split *text* into lines of at most *width* characters."""
    if width <= 0:
        raise ValueError("width must be positive")
    return [text[i : i + width] for i in range(0, len(text), width)]


__all__ = [
    "SEED_TOKEN_SIZE",
    "TokenType",
    "decode_base58_token",
    "decode_base64",
    "decode_seed",
    "encode_base58_token",
    "encode_base64",
    "encode_seed",
    "wrap",
]
