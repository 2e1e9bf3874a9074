"""Exceptions raised by the capability registry, linker and router."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence


class CapabilityError(Exception):
    """Base class for capability errors surfaced to the caller."""


class RegistryEmptyError(CapabilityError):
    """Raised when the source root is missing or no documents were found."""

    pass


class UnknownReferenceError(CapabilityError):
    """Raised when a reference token matches no document."""

    def __init__(self, token: str, message: str | None = None):
        super().__init__(message or f"Unknown capability reference: {token}")
        self.token = token


class AmbiguousReferenceError(UnknownReferenceError):
    """Raised when a reference token matches more than one document."""

    def __init__(self, token: str, candidates: Sequence[str]):
        self.candidates = list(candidates)
        super().__init__(
            token,
            f"Ambiguous capability reference {token!r}, candidates: "
            + ", ".join(self.candidates),
        )


class FilesystemOperationError(CapabilityError):
    """Structured error for a single failed link/unlink step.

    These are collected into reports instead of being raised, so one bad
    entry never aborts a batch.
    """

    def __init__(self, path: Path, operation: str, message: str):
        super().__init__(f"{operation} failed for {path}: {message}")
        self.path = path
        self.operation = operation
        self.message = message
