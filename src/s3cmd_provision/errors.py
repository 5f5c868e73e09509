"""Exception hierarchy for the s3cmd provisioning plugin.

Every failure the plugin can raise derives from ``ProvisionError`` so a
host can catch the whole family or match on a single kind.  Recoverable
s3cmd exit codes are not errors: they surface as a plain ``False``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence


class ProvisionError(Exception):
    """Base exception for all provisioning errors."""


class ConfigurationMissing(ProvisionError):
    """No configuration was supplied by the host."""

    def __init__(self, message: str = 'No s3cmd plugin configuration was supplied') -> None:
        super().__init__(message)


class InvalidReference(ProvisionError, ValueError):
    """A remote reference does not use a supported scheme or names no bucket."""

    def __init__(self, reference: str, reason: str) -> None:
        self.reference = reference
        super().__init__(f'Invalid reference {reference!r}: {reason}')


class SourceUnreadable(ProvisionError):
    """The upload source could not be inspected."""

    def __init__(self, path: Path, cause: Optional[BaseException] = None) -> None:
        self.path = path
        detail = f': {cause}' if cause else ''
        super().__init__(f'Cannot read source {path}{detail}')


class SpawnFailed(ProvisionError):
    """The external client could not be started."""

    def __init__(self, args: Sequence[str], cause: Optional[BaseException] = None) -> None:
        self.args_list = list(args)
        detail = f': {cause}' if cause else ''
        super().__init__(f'Could not execute command {" ".join(args)}{detail}')


class StreamReadFailed(ProvisionError):
    """Reading the merged output of the external client failed."""

    def __init__(self, args: Sequence[str], exit_code: int, cause: Optional[BaseException] = None) -> None:
        self.args_list = list(args)
        self.exit_code = exit_code
        detail = f': {cause}' if cause else ''
        super().__init__(f'Could not read output of {" ".join(args)} (exit code {exit_code}){detail}')


class Interrupted(ProvisionError):
    """Waiting for the external client was interrupted by the caller."""

    def __init__(self, args: Sequence[str]) -> None:
        self.args_list = list(args)
        super().__init__(f'Interrupted while waiting for {" ".join(args)}')


class FatalExitCode(ProvisionError):
    """The external client exited with a code outside the known set."""

    def __init__(self, exit_code: int) -> None:
        self.exit_code = exit_code
        super().__init__(f'Process exited with exit code {exit_code}')
