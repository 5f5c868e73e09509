"""Configuration loading for the s3cmd provisioning plugin.

The host hands the plugin a flat mapping of option names to strings.  On
the command line the same mapping is read from the ``s3cmd`` section of a
YAML file.  ``ClientConfig.from_mapping`` resolves the mapping against the
defaults below, which are computed once at import time.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Union

import yaml

logger = logging.getLogger(__name__)

SECTION = 's3cmd'

CLIENT_LOCATION = 'client'
CONFIG_FILE_LOCATION = 'config-file-location'
VERBOSITY = 'verbosity'
RECOVERABLE_EXIT_CODES = 'recoverable-exit-codes'

DEFAULT_CLIENT = '/usr/bin/s3cmd'
DEFAULT_CONFIGURATION = str(Path.home() / '.s3cfg')

# s3cmd S3/ExitCodes.py: EX_DATAERR, EX_OSERR, EX_IOERR, EX_TEMPFAIL
DEFAULT_RECOVERABLE_EXIT_CODES: FrozenSet[int] = frozenset({65, 71, 74, 75})


class Verbosity(Enum):
    MINIMAL = 1
    NORMAL = 2

    @classmethod
    def parse(cls, value: Union[str, 'Verbosity']) -> 'Verbosity':
        if isinstance(value, cls):
            return value
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            raise ValueError(f'Unknown verbosity: {value!r}') from None


def parse_exit_codes(value: Union[str, Iterable[Any]]) -> FrozenSet[int]:
    """Parse a comma separated string (or an iterable) of exit codes."""
    if isinstance(value, str):
        items: Iterable[Any] = [part for part in value.split(',') if part.strip()]
    elif isinstance(value, int):
        items = [value]
    else:
        items = value
    try:
        return frozenset(int(str(item).strip()) for item in items)
    except ValueError:
        raise ValueError(f'Invalid exit code list: {value!r}') from None


@dataclass(frozen=True)
class ClientConfig:
    """Resolved settings for invoking the external client."""

    client: str = DEFAULT_CLIENT
    config_file: str = DEFAULT_CONFIGURATION
    verbosity: Verbosity = Verbosity.NORMAL
    recoverable_exit_codes: FrozenSet[int] = field(default=DEFAULT_RECOVERABLE_EXIT_CODES)

    @property
    def echo(self) -> bool:
        return self.verbosity is Verbosity.NORMAL

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> 'ClientConfig':
        """Build a ``ClientConfig`` from a host option mapping.

        Options that are absent fall back to their defaults with a warning.
        Paths have ``~`` expanded.
        """
        client = mapping.get(CLIENT_LOCATION)
        if not client:
            logger.warning('No %r option configured, using %s', CLIENT_LOCATION, DEFAULT_CLIENT)
            client = DEFAULT_CLIENT
        config_file = mapping.get(CONFIG_FILE_LOCATION)
        if not config_file:
            logger.warning('No %r option configured, using %s', CONFIG_FILE_LOCATION, DEFAULT_CONFIGURATION)
            config_file = DEFAULT_CONFIGURATION
        verbosity = mapping.get(VERBOSITY)
        codes = mapping.get(RECOVERABLE_EXIT_CODES)
        return cls(
            client=os.path.expanduser(str(client)),
            config_file=os.path.expanduser(str(config_file)),
            verbosity=Verbosity.parse(verbosity) if verbosity else Verbosity.NORMAL,
            recoverable_exit_codes=parse_exit_codes(codes) if codes is not None else DEFAULT_RECOVERABLE_EXIT_CODES,
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            CLIENT_LOCATION: self.client,
            CONFIG_FILE_LOCATION: self.config_file,
            VERBOSITY: self.verbosity.name.capitalize(),
            RECOVERABLE_EXIT_CODES: sorted(self.recoverable_exit_codes),
        }


def load_config(path: Path, section: Optional[str] = SECTION) -> Dict[str, Any]:
    """Load plugin options from a YAML file.

    Args:
        path: YAML file to read.
        section: Top-level key holding the plugin options, or ``None`` to
            use the whole document.

    Returns:
        The option mapping (empty if the file or section is empty).
    """
    with path.open('r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f'{path}: configuration root must be a mapping')
    if section is None:
        return data
    options = data.get(section) or {}
    if not isinstance(options, dict):
        raise ValueError(f'{path}: section {section!r} must be a mapping')
    return options
