"""The three key-file commands and the dispatcher that selects between them."""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence

import click

from validator_keys import codec
from validator_keys.codec import TokenType
from validator_keys.core import ValidatorKeys
from validator_keys.errors import ErrorKind, ValidatorKeysError
from validator_keys.models import MAX_SEQUENCE, EphemeralKeys, KeyType

logger = logging.getLogger(__name__)

MASTER_KEY_TYPE = KeyType.ed25519
SIGNING_KEY_TYPE = KeyType.secp256k1
MANIFEST_LINE_WIDTH = 72

COMMANDS = ("create_master_keys", "create_signing_keys", "revoke_master_keys")


def format_signing_keys(ephemeral: EphemeralKeys, sequence: int) -> str:
    """Render the config snippet an operator pastes into rippled.cfg."""
    lines = [
        "Update rippled.cfg file with these values:",
        "",
        "[validation_seed]",
        codec.encode_seed(ephemeral.seed),
        "# validation_public_key: "
        + codec.encode_base58_token(
            TokenType.NODE_PUBLIC, ephemeral.validation_public_key
        ),
        f"# sequence number: {sequence}",
        "",
        "[validation_manifest]",
        *codec.wrap(ephemeral.manifest, MANIFEST_LINE_WIDTH),
        "",
    ]
    return "\n".join(lines)


def create_key_file(key_file: str | os.PathLike[str]) -> ValidatorKeys:
    """Generate master keys and store them in a new key file.

    Raises:
        ValidatorKeysError: if *key_file* already exists or cannot be written.
    """
    name = os.fspath(key_file)
    if os.path.exists(name):
        raise ValidatorKeysError(
            f"Refusing to overwrite existing key file: {name}", ErrorKind.filesystem
        )

    keys = ValidatorKeys.fresh(MASTER_KEY_TYPE)
    keys.save(name)

    click.echo(f"Master validator keys stored in {name}")
    return keys


def sign_manifest(
    key_file: str | os.PathLike[str], sequence: int | None = None
) -> EphemeralKeys:
    """Issue signing keys under the next sequence, or under *sequence*.

    The advanced sequence is written back to *key_file* before anything is
    printed, so every printed manifest is recorded on disk.
    """
    keys = ValidatorKeys.load(key_file)
    new_sequence = keys.advance(sequence)

    if new_sequence == MAX_SEQUENCE:
        logger.info("Revoking master key %s", keys.public_key_base58)
        click.echo("WARNING: This will revoke your master keys!\n")

    ephemeral = keys.create_ephemeral_keys(SIGNING_KEY_TYPE)
    keys.save(key_file)

    click.echo(format_signing_keys(ephemeral, keys.sequence))
    return ephemeral


def revoke_master_keys(key_file: str | os.PathLike[str]) -> EphemeralKeys:
    """Issue the final manifest, at the maximum sequence."""
    return sign_manifest(key_file, MAX_SEQUENCE)


def run_command(args: Sequence[str], key_file: str | os.PathLike[str]) -> int:
    """Run the single command named in *args* against *key_file*.

    Raises:
        ValidatorKeysError: if *args* is empty, holds more than one word, or
            names an unknown command; or if the command itself fails.
    """
    if not args:
        raise ValidatorKeysError("no command specified", ErrorKind.cli)
    if len(args) != 1:
        raise ValidatorKeysError(
            "Syntax error: Wrong number of parameters", ErrorKind.cli
        )

    command = args[0]
    logger.debug("Running %s on %s", command, os.fspath(key_file))
    if command == "create_master_keys":
        create_key_file(key_file)
    elif command == "create_signing_keys":
        sign_manifest(key_file)
    elif command == "revoke_master_keys":
        revoke_master_keys(key_file)
    else:
        raise ValidatorKeysError("Unknown command", ErrorKind.cli)
    return 0


__all__ = [
    "COMMANDS",
    "create_key_file",
    "format_signing_keys",
    "revoke_master_keys",
    "run_command",
    "sign_manifest",
]
