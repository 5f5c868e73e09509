"""Command construction for the external ``s3cmd`` client.

Every command is built as a real argument list, so paths containing
spaces (or anything else) are passed through untouched and nothing is
ever re-split.  References use the ``s3cmd://`` scheme, which is rewritten
to the ``s3://`` scheme the client understands.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple

from ..config_loader import ClientConfig
from ..errors import InvalidReference

SCHEME = 's3cmd'
CUSTOM_PREFIX = 's3cmd://'
CLIENT_PREFIX = 's3://'

MAX_PARTS = 10000
# Multipart chunk sizes in MB; s3cmd caps a part at 5 GB.
CHUNK_SIZE_TIERS_MB: Tuple[int, ...] = (15, 32, 64, 128, 256, 512, 1024, 2048, 5120)
_MB = 1024 * 1024


@dataclass(frozen=True)
class Invocation:
    """One external command.

    ``echo`` controls whether output is shown; ``transfer`` marks a
    ``get``/``put`` whose progress line needs terminating afterwards.
    """

    args: Tuple[str, ...]
    echo: bool = False
    transfer: bool = False

    def __str__(self) -> str:
        return ' '.join(self.args)


@dataclass(frozen=True)
class UploadPlan:
    """Commands for an upload, in execution order.

    ``bucket_create`` only runs when ``bucket_check`` fails.
    """

    bucket: str
    bucket_check: Invocation
    bucket_create: Invocation
    transfer: Invocation


def rewrite_scheme(reference: str) -> str:
    """Replace the ``s3cmd://`` prefix with ``s3://``."""
    if reference.startswith(CUSTOM_PREFIX):
        return CLIENT_PREFIX + reference[len(CUSTOM_PREFIX):]
    if reference.startswith(CLIENT_PREFIX):
        return reference
    raise InvalidReference(reference, f'expected a {CUSTOM_PREFIX} reference')


def bucket_uri(reference: str) -> str:
    """Return ``s3://<bucket>`` for a reference, the bucket being its first path segment."""
    rewritten = rewrite_scheme(reference)
    bucket = rewritten[len(CLIENT_PREFIX):].split('/', 1)[0]
    if not bucket:
        raise InvalidReference(reference, 'no bucket name')
    return CLIENT_PREFIX + bucket


def chunk_size_for(size_bytes: int) -> str:
    """Pick the multipart chunk size argument for an object of ``size_bytes``.

    The smallest tier keeping the part count within ``MAX_PARTS`` wins;
    objects too large for any tier get the largest one.
    """
    if size_bytes < 0:
        raise ValueError(f'size must not be negative: {size_bytes}')
    chosen = CHUNK_SIZE_TIERS_MB[-1]
    for tier in CHUNK_SIZE_TIERS_MB:
        if -(-size_bytes // (tier * _MB)) <= MAX_PARTS:
            chosen = tier
            break
    return f'--multipart-chunk-size-mb={chosen}'


def _base(config: ClientConfig) -> Sequence[str]:
    return [config.client, '-c', config.config_file]


def build_download_command(source: str, destination: Path, config: ClientConfig, echo: Optional[bool] = None) -> Invocation:
    """Build the ``get`` command for a download.

    The caller must make sure ``destination`` does not exist yet; ``--force``
    only guards against a file appearing in between.
    """
    args = [*_base(config), 'get', rewrite_scheme(source), str(destination), '--force']
    return Invocation(tuple(args), echo=config.echo if echo is None else echo, transfer=True)


def build_bucket_check_command(bucket: str, config: ClientConfig) -> Invocation:
    return Invocation(tuple([*_base(config), 'info', bucket]))


def build_bucket_create_command(bucket: str, config: ClientConfig) -> Invocation:
    return Invocation(tuple([*_base(config), 'mb', bucket]))


def build_upload_command(
    source: Path,
    destination: str,
    size_bytes: int,
    config: ClientConfig,
    recursive: bool = False,
    echo: Optional[bool] = None,
) -> UploadPlan:
    """Build the commands needed to upload ``source`` to ``destination``.

    Args:
        source: Local file, or directory when ``recursive`` is set.
        destination: ``s3cmd://bucket/key`` reference.
        size_bytes: Size used to choose the multipart chunk size.
        config: Client settings.
        recursive: Upload a directory tree.
        echo: Override the configured output echo.

    Returns:
        An ``UploadPlan`` with the bucket check, bucket creation and ``put``.
    """
    remote = rewrite_scheme(destination)
    bucket = bucket_uri(remote)
    args = [*_base(config), 'put']
    if recursive:
        args.append('--recursive')
    args.extend([str(source), remote, chunk_size_for(size_bytes)])
    return UploadPlan(
        bucket=bucket,
        bucket_check=build_bucket_check_command(bucket, config),
        bucket_create=build_bucket_create_command(bucket, config),
        transfer=Invocation(tuple(args), echo=config.echo if echo is None else echo, transfer=True),
    )
