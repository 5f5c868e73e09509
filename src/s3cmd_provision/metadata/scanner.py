"""Source metadata for uploads.

Determines how large an upload source is so that a multipart chunk size
can be chosen.  s3cmd splits each object separately, so for a directory
the largest contained file is what matters.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from ..errors import SourceUnreadable


@dataclass(frozen=True)
class SourceMetadata:
    path: Path
    size_bytes: int
    is_dir: bool


def _largest_file(root: Path) -> int:
    def _raise(err: OSError) -> None:
        raise err

    largest = 0
    for dirpath, _, files in os.walk(root, onerror=_raise):
        for name in files:
            largest = max(largest, (Path(dirpath) / name).stat().st_size)
    return largest


def get_source_metadata(path: Path) -> SourceMetadata:
    """Inspect an upload source.

    Args:
        path: Local file or directory.

    Returns:
        ``SourceMetadata`` with the size relevant for chunking.

    Raises:
        SourceUnreadable: if the path does not exist or cannot be read.
    """
    try:
        if path.is_dir():
            return SourceMetadata(path=path, size_bytes=_largest_file(path), is_dir=True)
        return SourceMetadata(path=path, size_bytes=path.stat().st_size, is_dir=False)
    except OSError as exc:
        raise SourceUnreadable(path, exc) from exc

