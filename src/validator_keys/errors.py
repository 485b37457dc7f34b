"""Exception raised for every user-facing failure of validator-keys."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Broad category of a :class:`ValidatorKeysError`."""

    input_structural = "input_structural"
    input_semantic = "input_semantic"
    state_terminal = "state_terminal"
    filesystem = "filesystem"
    cli = "cli"


class ValidatorKeysError(RuntimeError):
    """A failure whose message is shown verbatim to the operator.

    ``str(error)`` is exactly the message; ``error.kind`` says which stage
    rejected the input.
    """

    def __init__(self, message: str, kind: ErrorKind) -> None:
        super().__init__(message)
        self.kind = kind


__all__ = ["ErrorKind", "ValidatorKeysError"]
