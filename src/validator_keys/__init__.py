"""validator-keys: offline management of validator master keys and manifests."""

from validator_keys.core import ValidatorKeys
from validator_keys.errors import ErrorKind, ValidatorKeysError
from validator_keys.manifest import build_manifest, parse_manifest, verify_manifest
from validator_keys.models import (
    MAX_SEQUENCE,
    EphemeralKeys,
    KeyFile,
    KeyType,
    Manifest,
    ManifestVerification,
)

__version__ = "0.1.0"

__all__ = [
    "MAX_SEQUENCE",
    "EphemeralKeys",
    "ErrorKind",
    "KeyFile",
    "KeyType",
    "Manifest",
    "ManifestVerification",
    "ValidatorKeys",
    "ValidatorKeysError",
    "build_manifest",
    "parse_manifest",
    "verify_manifest",
]
