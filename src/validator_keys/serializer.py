"""Canonical binary object serialization and hash-prefixed object signatures.

An object is a set of typed fields. Serialization always emits fields in
canonical order, sorted by ``(type_code, field_code)``, each preceded by a
compact field header. Blob fields carry a variable-length prefix.

A signature stored in a field covers the hash prefix followed by every
field that sorts before that field. The default signature slot therefore
covers only the body, while the master signature slot also covers the
default signature.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from validator_keys import crypto
from validator_keys.models import KeyType

logger = logging.getLogger(__name__)

HASH_PREFIX_MANIFEST = b"MAN\x00"

TYPE_UINT32 = 2
TYPE_BLOB = 7

MAX_BLOB_LENGTH = 918744


@dataclass(frozen=True)
class Field:
    """A typed, numbered slot in a serialized object."""

    name: str
    type_code: int
    field_code: int

    @property
    def sort_key(self) -> tuple[int, int]:
        return self.type_code, self.field_code

    def header(self) -> bytes:
        t, f = self.type_code, self.field_code
        if t < 16 and f < 16:
            return bytes([(t << 4) | f])
        if t < 16:
            return bytes([t << 4, f])
        if f < 16:
            return bytes([f, t])
        return bytes([0, t, f])


SEQUENCE = Field("Sequence", TYPE_UINT32, 4)
PUBLIC_KEY = Field("PublicKey", TYPE_BLOB, 1)
SIGNING_PUB_KEY = Field("SigningPubKey", TYPE_BLOB, 3)
SIGNATURE = Field("Signature", TYPE_BLOB, 6)
MASTER_SIGNATURE = Field("MasterSignature", TYPE_BLOB, 18)

KNOWN_FIELDS: dict[tuple[int, int], Field] = {
    f.sort_key: f
    for f in (SEQUENCE, PUBLIC_KEY, SIGNING_PUB_KEY, SIGNATURE, MASTER_SIGNATURE)
}


# ---------------------------------------------------------------------------
# Length prefixes
# ---------------------------------------------------------------------------


def encode_length(length: int) -> bytes:
    """Variable-length prefix for a blob of *length* bytes."""
    if length < 0 or length > MAX_BLOB_LENGTH:
        raise ValueError(f"Blob length out of range: {length}")
    if length <= 192:
        return bytes([length])
    if length <= 12480:
        length -= 193
        return bytes([193 + (length >> 8), length & 0xFF])
    length -= 12481
    return bytes([241 + (length >> 16), (length >> 8) & 0xFF, length & 0xFF])


def _decode_length(data: bytes, offset: int) -> tuple[int, int]:
    b1 = _byte_at(data, offset)
    if b1 <= 192:
        return b1, offset + 1
    if b1 <= 240:
        b2 = _byte_at(data, offset + 1)
        return 193 + (b1 - 193) * 256 + b2, offset + 2
    if b1 <= 254:
        b2 = _byte_at(data, offset + 1)
        b3 = _byte_at(data, offset + 2)
        return 12481 + (b1 - 241) * 65536 + b2 * 256 + b3, offset + 3
    raise ValueError("Invalid variable length indicator")


def _byte_at(data: bytes, offset: int) -> int:
    if offset >= len(data):
        raise ValueError("Unexpected end of serialized object")
    return data[offset]


# ---------------------------------------------------------------------------
# SerializedObject
# ---------------------------------------------------------------------------


class SerializedObject:
    """An ordered collection of field values with a canonical byte form."""

    def __init__(self) -> None:
        self._values: dict[Field, int | bytes] = {}

    def append(self, field: Field, value: int | bytes) -> None:
        """Set *field* to *value*, validating the value against the field type."""
        if field.type_code == TYPE_UINT32:
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"{field.name} requires an integer value")
            if not 0 <= value <= 0xFFFFFFFF:
                raise ValueError(f"{field.name} is out of uint32 range: {value}")
        elif field.type_code == TYPE_BLOB:
            if not isinstance(value, (bytes, bytearray)):
                raise TypeError(f"{field.name} requires a bytes value")
            value = bytes(value)
        else:
            raise ValueError(f"Unsupported field type: {field.type_code}")
        self._values[field] = value

    def __setitem__(self, field: Field, value: int | bytes) -> None:
        self.append(field, value)

    def __getitem__(self, field: Field) -> int | bytes:
        return self._values[field]

    def __contains__(self, field: object) -> bool:
        return field in self._values

    def get(self, field: Field) -> int | bytes | None:
        return self._values.get(field)

    def fields(self) -> list[Field]:
        return sorted(self._values, key=lambda f: f.sort_key)

    def serialize(self, until: Field | None = None) -> bytes:
        """Canonical bytes of every field, or only those sorting before *until*."""
        out = bytearray()
        for field in self.fields():
            if until is not None and field.sort_key >= until.sort_key:
                break
            value = self._values[field]
            out += field.header()
            if field.type_code == TYPE_UINT32:
                out += int(value).to_bytes(4, "big")  # type: ignore[arg-type]
            else:
                blob = bytes(value)  # type: ignore[arg-type]
                out += encode_length(len(blob))
                out += blob
        return bytes(out)

    def finalize(self) -> bytes:
        return self.serialize()

    @classmethod
    def parse(cls, data: bytes) -> SerializedObject:
        """Rebuild an object from :meth:`finalize` output.

        Raises:
            ValueError: on truncated input, unknown fields, duplicate fields,
                or fields out of canonical order.
        """
        obj = cls()
        offset = 0
        previous: tuple[int, int] | None = None
        while offset < len(data):
            field, offset = _read_header(data, offset)
            if previous is not None and field.sort_key <= previous:
                raise ValueError(f"Field {field.name} is out of canonical order")
            previous = field.sort_key
            if field.type_code == TYPE_UINT32:
                if offset + 4 > len(data):
                    raise ValueError("Unexpected end of serialized object")
                obj.append(field, int.from_bytes(data[offset : offset + 4], "big"))
                offset += 4
            else:
                length, offset = _decode_length(data, offset)
                if offset + length > len(data):
                    raise ValueError("Unexpected end of serialized object")
                obj.append(field, data[offset : offset + length])
                offset += length
        return obj

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SerializedObject):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        names = ", ".join(f.name for f in self.fields())
        return f"SerializedObject({names})"


def _read_header(data: bytes, offset: int) -> tuple[Field, int]:
    first = _byte_at(data, offset)
    offset += 1
    type_code = first >> 4
    field_code = first & 0x0F
    if type_code == 0:
        type_code = _byte_at(data, offset)
        offset += 1
    if field_code == 0:
        field_code = _byte_at(data, offset)
        offset += 1
    field = KNOWN_FIELDS.get((type_code, field_code))
    if field is None:
        raise ValueError(f"Unknown field: type {type_code}, field {field_code}")
    return field, offset


# ---------------------------------------------------------------------------
# Object signatures
# ---------------------------------------------------------------------------


def signing_data(obj: SerializedObject, hash_prefix: bytes, field: Field) -> bytes:
    """Bytes covered by a signature stored in *field*."""
    return hash_prefix + obj.serialize(until=field)


def sign_object(
    obj: SerializedObject,
    hash_prefix: bytes,
    key_type: KeyType,
    secret: bytes,
    field: Field = SIGNATURE,
) -> None:
    """Sign *obj* and store the signature in *field*."""
    signature = crypto.sign(key_type, secret, signing_data(obj, hash_prefix, field))
    obj.append(field, signature)
    logger.debug("Signed object into %s with %s key", field.name, key_type.value)


def verify_object(
    obj: SerializedObject,
    hash_prefix: bytes,
    public_key: bytes,
    field: Field = SIGNATURE,
) -> bool:
    """Check the signature held in *field* against *public_key*."""
    signature = obj.get(field)
    if not isinstance(signature, bytes):
        return False
    return crypto.verify(public_key, signing_data(obj, hash_prefix, field), signature)


__all__ = [
    "HASH_PREFIX_MANIFEST",
    "MASTER_SIGNATURE",
    "PUBLIC_KEY",
    "SEQUENCE",
    "SIGNATURE",
    "SIGNING_PUB_KEY",
    "Field",
    "SerializedObject",
    "encode_length",
    "sign_object",
    "signing_data",
    "verify_object",
]
