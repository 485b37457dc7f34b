"""Validator master keys: generation, key-file persistence and manifests."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from validator_keys import codec, crypto
from validator_keys.codec import TokenType
from validator_keys.errors import ErrorKind, ValidatorKeysError
from validator_keys.manifest import build_manifest
from validator_keys.models import MAX_SEQUENCE, EphemeralKeys, KeyFile, KeyType

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("key_type", "master_secret", "sequence")

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _styled(value: Any) -> str:
    """Render a JSON value the way it is quoted back in error messages."""
    return json.dumps(value, indent=3, ensure_ascii=False) + "\n"


def _parse_sequence(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    if isinstance(value, int) and 0 <= value <= MAX_SEQUENCE:
        return value
    return None


def _key_file_error(key_file: str, detail: str, kind: ErrorKind) -> ValidatorKeysError:
    return ValidatorKeysError(f"Key file '{key_file}' {detail}", kind)


# ---------------------------------------------------------------------------
# ValidatorKeys
# ---------------------------------------------------------------------------


class ValidatorKeys:
    """A validator's master key pair and its current manifest sequence.

    The public key is always recomputed from the secret, so a key file can
    never pair a secret with someone else's public key.
    """

    def __init__(
        self, key_type: KeyType, master_secret: bytes, sequence: int = 0
    ) -> None:
        if key_type is KeyType.invalid:
            raise ValueError("ValidatorKeys requires a valid key type")
        if isinstance(sequence, bool) or not 0 <= sequence <= MAX_SEQUENCE:
            raise ValueError(f"Sequence out of range: {sequence}")
        self.key_type = key_type
        self._master_secret = bytes(master_secret)
        self.public_key = crypto.derive_public_key(key_type, self._master_secret)
        self.sequence = sequence

    @property
    def master_secret(self) -> bytes:
        return self._master_secret

    @property
    def revoked(self) -> bool:
        return self.sequence == MAX_SEQUENCE

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValidatorKeys):
            return NotImplemented
        return (
            self.sequence == other.sequence
            and self.key_type == other.key_type
            and self.public_key == other.public_key
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"ValidatorKeys(key_type={self.key_type.value!r}, "
            f"public_key={self.public_key_base58!r}, sequence={self.sequence})"
        )

    @property
    def public_key_base58(self) -> str:
        return codec.encode_base58_token(TokenType.NODE_PUBLIC, self.public_key)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def fresh(cls, key_type: KeyType) -> ValidatorKeys:
        """Generate a new master key pair from a random seed, at sequence 0."""
        seed = crypto.random_seed()
        _, secret = crypto.generate_key_pair(key_type, seed)
        keys = cls(key_type, secret)
        logger.info("Generated %s master key %s", key_type.value, keys.public_key_base58)
        return keys

    @classmethod
    def load(cls, key_file: str | os.PathLike[str]) -> ValidatorKeys:
        """Read and validate a JSON key file.

        Raises:
            ValidatorKeysError: if the file cannot be read, is not JSON, lacks
                a required field, or holds an invalid key type, master secret
                or sequence. Checks run in that order.
        """
        name = os.fspath(key_file)
        try:
            with open(name, encoding="utf-8") as fh:
                text = fh.read()
        except OSError as exc:
            raise ValidatorKeysError(
                f"Failed to open key file: {name}", ErrorKind.input_structural
            ) from exc
        except UnicodeDecodeError as exc:
            raise ValidatorKeysError(
                f"Unable to parse json key file: {name}", ErrorKind.input_structural
            ) from exc

        try:
            data = json.loads(text)
        except (ValueError, RecursionError) as exc:
            raise ValidatorKeysError(
                f"Unable to parse json key file: {name}", ErrorKind.input_structural
            ) from exc
        if not isinstance(data, dict):
            raise ValidatorKeysError(
                f"Unable to parse json key file: {name}", ErrorKind.input_structural
            )

        for field in REQUIRED_FIELDS:
            if field not in data:
                raise _key_file_error(
                    name, f'is missing "{field}" field', ErrorKind.input_structural
                )

        key_type = KeyType.from_string(data["key_type"])
        if key_type is KeyType.invalid:
            raise _key_file_error(
                name,
                f"contains invalid key type: {_styled(data['key_type'])}",
                ErrorKind.input_semantic,
            )

        raw_secret = data["master_secret"]
        secret = codec.decode_base58_token(
            TokenType.NODE_PRIVATE, raw_secret, size=key_type.secret_size
        )
        if secret is None or not crypto.is_valid_secret(key_type, secret):
            raise _key_file_error(
                name,
                f"contains invalid master secret: {_styled(raw_secret)}",
                ErrorKind.input_semantic,
            )

        sequence = _parse_sequence(data["sequence"])
        if sequence is None:
            raise _key_file_error(
                name,
                f"contains invalid sequence: {_styled(data['sequence'])}",
                ErrorKind.input_structural,
            )

        keys = cls(key_type, secret, sequence)
        logger.debug(
            "Loaded %s master key %s at sequence %d from %s",
            key_type.value,
            keys.public_key_base58,
            sequence,
            name,
        )
        return keys

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_key_file(self) -> KeyFile:
        return KeyFile(
            key_type=self.key_type,
            master_secret=codec.encode_base58_token(
                TokenType.NODE_PRIVATE, self._master_secret
            ),
            validation_public_key=self.public_key_base58,
            sequence=self.sequence,
        )

    def save(self, key_file: str | os.PathLike[str]) -> None:
        """Write the keys to *key_file*, replacing any existing contents.

        Missing parent directories are created. The new contents are written
        to a temporary file beside the target and moved into place, so a
        failed save leaves the previous file untouched. The file is readable
        by its owner only. A symlinked key file is updated at its target.

        Raises:
            ValidatorKeysError: if the parent directory cannot be created or
                the key file cannot be written.
        """
        name = os.fspath(key_file)
        parent = os.path.dirname(name)

        if parent:
            parent_path = Path(parent)
            try:
                if not parent_path.exists():
                    parent_path.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise ValidatorKeysError(
                    f"Cannot create directory: {parent}", ErrorKind.filesystem
                ) from exc
            if not parent_path.is_dir():
                raise ValidatorKeysError(
                    f"Cannot create directory: {parent}", ErrorKind.filesystem
                )

        if os.path.isdir(name):
            raise ValidatorKeysError(
                f"Cannot open key file: {name}", ErrorKind.filesystem
            )

        # Write through a symlinked key file rather than replacing the link.
        target = os.path.realpath(name)
        content = self.to_key_file().model_dump_json(indent=3) + "\n"
        tmp_name: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=os.path.dirname(target),
                prefix=".validator-keys-",
                suffix=".tmp",
                delete=False,
            ) as fh:
                tmp_name = fh.name
                fh.write(content)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, target)
        except OSError as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise ValidatorKeysError(
                f"Cannot open key file: {name}", ErrorKind.filesystem
            ) from exc

        logger.info("Wrote key file %s at sequence %d", name, self.sequence)

    # ------------------------------------------------------------------
    # Manifests
    # ------------------------------------------------------------------

    def advance(self, sequence: int | None = None) -> int:
        """Move to the next manifest sequence and return it.

        Without *sequence* the counter is incremented, which is refused once
        the keys are revoked. An explicit *sequence* must exceed the current
        one.

        Raises:
            ValidatorKeysError: if the requested transition is not allowed.
        """
        if sequence is not None:
            if sequence <= self.sequence:
                raise ValidatorKeysError(
                    f"Sequence should exceed current sequence ({self.sequence}).",
                    ErrorKind.input_semantic,
                )
            if sequence > MAX_SEQUENCE:
                raise ValidatorKeysError(
                    f"Sequence should not exceed {MAX_SEQUENCE}.",
                    ErrorKind.input_semantic,
                )
            new_sequence = sequence
        else:
            if self.revoked:
                raise ValidatorKeysError(
                    "Sequence is already at maximum value. "
                    "Master keys have been revoked.",
                    ErrorKind.state_terminal,
                )
            new_sequence = self.sequence + 1

        logger.debug("Advancing sequence %d -> %d", self.sequence, new_sequence)
        self.sequence = new_sequence
        return new_sequence

    def create_ephemeral_keys(self, eph_key_type: KeyType) -> EphemeralKeys:
        """Generate signing keys and a manifest for the current sequence."""
        seed = crypto.random_seed()
        signing_secret = crypto.generate_secret_key(eph_key_type, seed)
        signing_public = crypto.derive_public_key(eph_key_type, signing_secret)
        manifest = build_manifest(
            self.sequence,
            self.key_type,
            self._master_secret,
            eph_key_type,
            signing_secret,
        )
        return EphemeralKeys(
            seed=seed, manifest=manifest, validation_public_key=signing_public
        )


__all__ = ["REQUIRED_FIELDS", "ValidatorKeys"]
