"""Exit code classification for the external client.

See https://github.com/s3tools/s3cmd/blob/master/S3/ExitCodes.py for the
meaning of each code.  Which non-zero codes count as an ordinary negative
result depends on the s3cmd version, so the set is passed in rather than
fixed here.
"""

from __future__ import annotations

from enum import Enum, auto
from typing import AbstractSet

from ..config_loader import DEFAULT_RECOVERABLE_EXIT_CODES
from ..errors import FatalExitCode


class ExitClassification(Enum):
    SUCCESS = auto()
    RECOVERABLE_FAILURE = auto()
    FATAL_ERROR = auto()


def classify(exit_code: int, recoverable: AbstractSet[int] = DEFAULT_RECOVERABLE_EXIT_CODES) -> ExitClassification:
    if exit_code == 0:
        return ExitClassification.SUCCESS
    if exit_code in recoverable:
        return ExitClassification.RECOVERABLE_FAILURE
    return ExitClassification.FATAL_ERROR


def check_exit_code(exit_code: int, recoverable: AbstractSet[int] = DEFAULT_RECOVERABLE_EXIT_CODES) -> bool:
    """Turn an exit code into a provisioning result.

    Returns:
        ``True`` for success, ``False`` for a recoverable failure.

    Raises:
        FatalExitCode: for any other exit code.
    """
    result = classify(exit_code, recoverable)
    if result is ExitClassification.SUCCESS:
        return True
    if result is ExitClassification.RECOVERABLE_FAILURE:
        return False
    raise FatalExitCode(exit_code)
