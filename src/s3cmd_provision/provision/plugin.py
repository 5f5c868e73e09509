"""s3cmd provisioning plugin.

``S3CmdProvision`` implements the provisioning contract for the ``s3cmd``
scheme: downloads run a single ``get``; uploads check the bucket, create
it if the check fails, then run the ``put``.  The check-then-create
sequence is not atomic, so two first uploads into the same new bucket can
race; the second ``mb`` simply fails and the ``put`` decides the outcome.

``S3CmdPlugin`` carries the lifecycle hooks a plugin host calls.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Mapping, Optional, Protocol, Set, Union, runtime_checkable

from ..config_loader import ClientConfig
from ..errors import ConfigurationMissing
from ..logging.logger import OperationRecord
from ..metadata.scanner import get_source_metadata
from ..transfer.commands import SCHEME, Invocation, build_download_command, build_upload_command
from ..transfer.exit_codes import check_exit_code, classify
from ..transfer.runner import run

logger = logging.getLogger(__name__)

Runner = Callable[[Invocation], int]
RecordHook = Callable[[OperationRecord], None]
PathLike = Union[str, Path]


@runtime_checkable
class ProvisionInterface(Protocol):
    """What a plugin host expects from a provisioning extension."""

    def schemes_handled(self) -> Set[str]: ...

    def set_configuration(self, mapping: Mapping[str, str]) -> None: ...

    def download_from(self, source: str, destination: PathLike) -> bool: ...

    def upload_to(self, destination: str, source_file: PathLike, metadata: Optional[str] = None) -> bool: ...


class S3CmdProvision:
    """Provision files through the external ``s3cmd`` client."""

    def __init__(
        self,
        configuration: Optional[Mapping[str, str]] = None,
        runner: Runner = run,
        on_record: Optional[RecordHook] = None,
    ) -> None:
        self._config: Optional[ClientConfig] = None
        self._runner = runner
        self._on_record = on_record
        if configuration is not None:
            self.set_configuration(configuration)

    def set_configuration(self, mapping: Mapping[str, str]) -> None:
        """Resolve the host's option mapping once, against the defaults."""
        self._config = ClientConfig.from_mapping(mapping)

    @property
    def config(self) -> ClientConfig:
        if self._config is None:
            logger.error('You are missing an s3cmd plugin configuration')
            raise ConfigurationMissing()
        return self._config

    def schemes_handled(self) -> Set[str]:
        return {SCHEME}

    def download_from(self, source: str, destination: PathLike) -> bool:
        """Download ``source`` (``s3cmd://bucket/key``) to the local ``destination``.

        Args:
            source: Remote reference.
            destination: Local file path, including the file name.  It must
                not exist yet.  Missing parent directories are created before
                the ``get`` runs and are left in place if it fails.

        Returns:
            ``True`` on success, ``False`` on a recoverable s3cmd failure.

        Raises:
            ConfigurationMissing: if no configuration was set.
            FileExistsError: if ``destination`` already exists.
            FatalExitCode: if s3cmd exits with an unknown code.
        """
        config = self.config
        destination = Path(destination)
        with self._recording('download', source, str(destination)) as record:
            if destination.exists():
                raise FileExistsError(f'{destination} already exists')
            invocation = build_download_command(source, destination, config)
            destination.parent.mkdir(parents=True, exist_ok=True)
            return self._check(self._runner(invocation), config, record)

    def upload_to(self, destination: str, source_file: PathLike, metadata: Optional[str] = None) -> bool:
        """Upload a local file or directory to ``destination``.

        The bucket named by ``destination`` is created when it does not
        exist.  ``metadata`` is accepted but not forwarded to s3cmd.

        Returns:
            ``True`` on success, ``False`` on a recoverable s3cmd failure.

        Raises:
            ConfigurationMissing: if no configuration was set.
            SourceUnreadable: if ``source_file`` cannot be inspected.
            FatalExitCode: if s3cmd exits with an unknown code.
        """
        config = self.config
        source_file = Path(source_file)
        with self._recording('upload', str(source_file), destination) as record:
            source = get_source_metadata(source_file)
            if metadata:
                logger.debug('Metadata is not forwarded to s3cmd: %s', metadata)
            plan = build_upload_command(source_file, destination, source.size_bytes, config, recursive=source.is_dir)

            if self._runner(plan.bucket_check) == 0:
                logger.info('Bucket %s exists', plan.bucket)
            else:
                logger.info('Bucket %s not found, creating it', plan.bucket)
                if self._runner(plan.bucket_create) != 0:
                    logger.warning('Could not create bucket %s', plan.bucket)
            return self._check(self._runner(plan.transfer), config, record)

    def _check(self, exit_code: int, config: ClientConfig, record: OperationRecord) -> bool:
        record.exit_code = exit_code
        record.classification = classify(exit_code, config.recoverable_exit_codes).name.lower()
        return check_exit_code(exit_code, config.recoverable_exit_codes)

    @contextmanager
    def _recording(self, direction: str, source: str, destination: str) -> Iterator[OperationRecord]:
        record = OperationRecord(
            run_id=uuid.uuid4().hex,
            timestamp=time.time(),
            direction=direction,
            source=source,
            destination=destination,
        )
        started = time.monotonic()
        try:
            yield record
        except Exception as exc:
            record.error_msg = str(exc)
            raise
        finally:
            record.duration_ms = int((time.monotonic() - started) * 1000)
            if self._on_record is not None:
                self._on_record(record)


class S3CmdPlugin:
    """Lifecycle hooks for the plugin host."""

    def __init__(self, development: bool = False) -> None:
        self.development = development

    def start(self) -> None:
        if self.development:
            logger.info('S3CMDPLUGIN DEVELOPMENT MODE')

    def stop(self) -> None:
        logger.info('S3CmdPlugin.stop()')
