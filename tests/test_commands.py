"""Tests for transfer/commands.py — scheme rewriting and argument lists."""

from __future__ import annotations

from pathlib import Path

import pytest

from s3cmd_provision.config_loader import ClientConfig, Verbosity
from s3cmd_provision.errors import InvalidReference
from s3cmd_provision.transfer.commands import (
    CHUNK_SIZE_TIERS_MB,
    MAX_PARTS,
    bucket_uri,
    build_download_command,
    build_upload_command,
    chunk_size_for,
    rewrite_scheme,
)

MB = 1024 * 1024
CONFIG = ClientConfig(client='/opt/s3cmd', config_file='/etc/s3cfg')


def _chunk_mb(arg: str) -> int:
    return int(arg.split('=', 1)[1])


# ---------------------------------------------------------------------------
# Scheme and bucket
# ---------------------------------------------------------------------------


class TestReferences:
    def test_rewrites_custom_prefix(self) -> None:
        assert rewrite_scheme('s3cmd://bucket/dir/object') == 's3://bucket/dir/object'

    def test_only_prefix_is_rewritten(self) -> None:
        assert rewrite_scheme('s3cmd://s3cmd/s3cmd://x') == 's3://s3cmd/s3cmd://x'

    def test_plain_s3_passes_through(self) -> None:
        assert rewrite_scheme('s3://bucket/key') == 's3://bucket/key'

    @pytest.mark.parametrize('ref', ['gs://bucket/key', '/local/path', 'bucket/key'])
    def test_other_schemes_rejected(self, ref: str) -> None:
        with pytest.raises(InvalidReference):
            rewrite_scheme(ref)

    def test_bucket_is_first_segment(self) -> None:
        assert bucket_uri('s3cmd://test-bucket1/dir/file2.txt') == 's3://test-bucket1'
        assert bucket_uri('s3cmd://test-bucket2/') == 's3://test-bucket2'
        assert bucket_uri('s3cmd://test-bucket3') == 's3://test-bucket3'

    def test_missing_bucket_rejected(self) -> None:
        with pytest.raises(InvalidReference):
            bucket_uri('s3cmd:///key')


# ---------------------------------------------------------------------------
# Chunk size
# ---------------------------------------------------------------------------


class TestChunkSize:
    def test_small_files_use_smallest_tier(self) -> None:
        assert chunk_size_for(0) == '--multipart-chunk-size-mb=15'
        assert chunk_size_for(5 * MB) == '--multipart-chunk-size-mb=15'

    def test_tier_boundary(self) -> None:
        limit = 15 * MB * MAX_PARTS
        assert _chunk_mb(chunk_size_for(limit)) == 15
        assert _chunk_mb(chunk_size_for(limit + 1)) == 32

    def test_huge_files_capped_at_last_tier(self) -> None:
        assert _chunk_mb(chunk_size_for(10 ** 15)) == CHUNK_SIZE_TIERS_MB[-1]

    def test_monotonic(self) -> None:
        sizes = [0, 1, MB, 15 * MB * MAX_PARTS, 15 * MB * MAX_PARTS + 1]
        sizes += [tier * MB * MAX_PARTS + delta for tier in CHUNK_SIZE_TIERS_MB for delta in (-1, 0, 1)]
        sizes.append(10 ** 16)
        chunks = [_chunk_mb(chunk_size_for(size)) for size in sorted(sizes)]
        assert chunks == sorted(chunks)

    def test_parts_stay_within_limit(self) -> None:
        for size in (MB, 200 * 1024 ** 3, 3 * 1024 ** 4):
            chunk = _chunk_mb(chunk_size_for(size)) * MB
            assert -(-size // chunk) <= MAX_PARTS

    def test_negative_size_rejected(self) -> None:
        with pytest.raises(ValueError):
            chunk_size_for(-1)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class TestDownloadCommand:
    def test_argument_list(self) -> None:
        invocation = build_download_command('s3cmd://bucket/dir/object', Path('/tmp/out file.txt'), CONFIG)
        assert invocation.args == (
            '/opt/s3cmd', '-c', '/etc/s3cfg', 'get', 's3://bucket/dir/object', '/tmp/out file.txt', '--force',
        )
        assert invocation.transfer is True
        assert invocation.echo is True

    def test_custom_prefix_never_in_output(self) -> None:
        invocation = build_download_command('s3cmd://s3cmd-bucket/s3cmd.txt', Path('/tmp/x'), CONFIG)
        assert not any(arg.startswith('s3cmd://') for arg in invocation.args)

    def test_minimal_verbosity_disables_echo(self) -> None:
        config = ClientConfig(client='/opt/s3cmd', config_file='/etc/s3cfg', verbosity=Verbosity.MINIMAL)
        assert build_download_command('s3cmd://b/k', Path('/tmp/x'), config).echo is False


class TestUploadCommand:
    def test_plan_order_and_arguments(self) -> None:
        plan = build_upload_command(Path('/data/my file.txt'), 's3cmd://bucket1/file2.txt', 10, CONFIG)
        check, create, transfer = plan.bucket_check, plan.bucket_create, plan.transfer
        assert plan.bucket == 's3://bucket1'
        assert check.args == ('/opt/s3cmd', '-c', '/etc/s3cfg', 'info', 's3://bucket1')
        assert create.args == ('/opt/s3cmd', '-c', '/etc/s3cfg', 'mb', 's3://bucket1')
        assert transfer.args == (
            '/opt/s3cmd', '-c', '/etc/s3cfg', 'put', '/data/my file.txt', 's3://bucket1/file2.txt',
            '--multipart-chunk-size-mb=15',
        )
        assert not check.echo and not create.echo
        assert transfer.transfer

    def test_source_path_kept_verbatim(self) -> None:
        plan = build_upload_command(Path('/data/a%32b c.txt'), 's3cmd://b/', 1, CONFIG)
        assert '/data/a%32b c.txt' in plan.transfer.args

    def test_recursive_for_directories(self) -> None:
        plan = build_upload_command(Path('/data/dir'), 's3cmd://b/', 1, CONFIG, recursive=True)
        assert plan.transfer.args[3:5] == ('put', '--recursive')

    def test_bad_destination_rejected(self) -> None:
        with pytest.raises(InvalidReference):
            build_upload_command(Path('/data/f'), 'http://b/f', 1, CONFIG)
