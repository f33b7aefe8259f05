"""Error taxonomy for the tinc provider."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence


class ProviderError(Exception):
    """Base class for every error raised by the provider."""


class InvalidConfiguration(ProviderError, ValueError):
    """A provider setting failed validation; fatal at construction."""

    def __init__(self, field: str, value: object, reason: Optional[str] = None) -> None:
        self.field = field
        self.value = value
        detail = f": {reason}" if reason else ""
        super().__init__(f"invalid {field} value {value!r}{detail}")


class InvalidKey(ProviderError, ValueError):
    """A workload is missing its namespace or name."""


class NotFound(ProviderError, LookupError):
    """The referenced workload is not known to the provider."""

    def __init__(self, key: object) -> None:
        self.key = key
        super().__init__(f"workload \"{key}\" is not known to the provider")


class RuntimeFailure(ProviderError, RuntimeError):
    """The container runtime CLI failed or did not answer in time."""

    def __init__(
        self,
        command: Sequence[str],
        output: str = "",
        returncode: Optional[int] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.command = list(command)
        self.output = output
        self.returncode = returncode
        self.cause = cause
        if cause is not None:
            error = str(cause)
        else:
            error = f"exit status {returncode}"
        super().__init__(
            f"failed to run {' '.join(self.command[:2])}:\nout: {output}\nerr: {error}"
        )


class FilesystemFailure(ProviderError):
    """A generated mesh artifact could not be written."""

    def __init__(self, path: Path, cause: OSError) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"failed to write {path}: {cause}")
