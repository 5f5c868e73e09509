"""Shared fixtures: a fake ``s3cmd`` executable backed by a temp directory.

The fake reads its storage root from the file passed with ``-c``, keeps
buckets as directories under ``<root>/store`` and appends every call it
receives to ``<root>/calls.jsonl``.
"""

from __future__ import annotations

import json
import stat
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

import pytest

FAKE_S3CMD = '''#!{python}
import json
import os
import shutil
import sys

args = sys.argv[1:]
cfg = args[args.index('-c') + 1]
with open(cfg) as f:
    root = f.read().strip()
rest = args[args.index('-c') + 2:]
with open(os.path.join(root, 'calls.jsonl'), 'a') as log:
    log.write(json.dumps(rest) + '\\n')

command = rest[0]
flags = [p for p in rest[1:] if p.startswith('--')]
params = [p for p in rest[1:] if not p.startswith('--')]


def local(uri):
    return os.path.join(root, 'store', uri[len('s3://'):])


def bucket_dir(uri):
    return local('s3://' + uri[len('s3://'):].split('/', 1)[0])


if command == 'info':
    sys.exit(0 if os.path.isdir(local(params[0])) else 12)
if command == 'mb':
    os.makedirs(local(params[0]))
    sys.exit(0)
if command == 'put':
    src, dst = params
    if not os.path.isdir(bucket_dir(dst)):
        print('ERROR: bucket does not exist')
        sys.exit(12)
    target = local(dst)
    if '--recursive' in flags:
        name = os.path.basename(src.rstrip('/'))
        shutil.copytree(src, os.path.join(target, name))
    else:
        if dst.endswith('/'):
            target = os.path.join(target, os.path.basename(src))
        os.makedirs(os.path.dirname(target), exist_ok=True)
        shutil.copyfile(src, target)
    print("upload: '%s' -> '%s'" % (src, dst))
    for done in (1, 2, 3):
        print(' %d of 3 done' % done)
    sys.exit(0)
if command == 'get':
    src, dst = params
    if not os.path.isfile(local(src)):
        print('ERROR: not found')
        sys.exit(12)
    shutil.copyfile(local(src), dst)
    print("download: '%s' -> '%s'" % (src, dst))
    sys.exit(0)
sys.exit(64)
'''


@dataclass
class FakeS3:
    root: Path
    client: Path
    config_file: Path

    @property
    def store(self) -> Path:
        return self.root / 'store'

    @property
    def configuration(self) -> Dict[str, str]:
        return {'client': str(self.client), 'config-file-location': str(self.config_file)}

    def calls(self) -> List[List[str]]:
        log = self.root / 'calls.jsonl'
        if not log.exists():
            return []
        return [json.loads(line) for line in log.read_text().splitlines()]

    def commands(self) -> List[str]:
        return [call[0] for call in self.calls()]


@pytest.fixture()
def fake_s3(tmp_path: Path) -> FakeS3:
    root = tmp_path / 'fake-s3'
    (root / 'store').mkdir(parents=True)
    client = root / 's3cmd'
    client.write_text(FAKE_S3CMD.format(python=sys.executable))
    client.chmod(client.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    config_file = root / '.s3cfg'
    config_file.write_text(str(root))
    return FakeS3(root=root, client=client, config_file=config_file)


@pytest.fixture()
def source_file(tmp_path: Path) -> Path:
    src = tmp_path / 'input files' / 'file.txt'
    src.parent.mkdir()
    src.write_text('hello from the input directory\n')
    return src

