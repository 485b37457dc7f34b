"""CLI entry point for validator-keys."""

from __future__ import annotations

import logging
import os
import sys

import click

from validator_keys.commands import run_command
from validator_keys.errors import ValidatorKeysError
from validator_keys.selftest import run_self_test

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def default_key_file() -> str:
    """``$HOME/.ripple/validator-keys.json``."""
    return os.environ.get("HOME", "") + "/.ripple/validator-keys.json"


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


@click.command(
    "validator-keys",
    context_settings={"help_option_names": ["-h", "--help"]},
    epilog=(
        "\b\nCommands:\n"
        "     create_master_keys\n"
        "     create_signing_keys\n"
        "     revoke_master_keys"
    ),
)
@click.version_option(package_name="validator-keys")
@click.option(
    "--keyfile",
    "key_file",
    default=None,
    metavar="PATH",
    help="Specify the master key file [default: $HOME/.ripple/validator-keys.json].",
)
@click.option("-u", "--unittest", is_flag=True, help="Perform unit tests.")
@click.option("-v", "--verbose", is_flag=True, help="Log progress to stderr.")
@click.argument("params", nargs=-1, metavar="COMMAND")
@click.pass_context
def main(
    ctx: click.Context,
    key_file: str | None,
    unittest: bool,
    verbose: bool,
    params: tuple[str, ...],
) -> None:
    """Manage validator master keys and the manifests that delegate to signing keys."""
    _configure_logging(verbose)

    if unittest:
        ctx.exit(0 if run_self_test() else 1)

    if not params:
        click.echo(ctx.get_help())
        return

    try:
        run_command(params, key_file or default_key_file())
    except ValidatorKeysError as exc:
        click.echo(str(exc), err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
