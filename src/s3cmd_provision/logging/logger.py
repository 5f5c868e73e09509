"""Operation record loggers.

One ``OperationRecord`` is produced per provisioning call.  ``CSVLogger``
writes each record immediately, while ``JSONLogger`` stores records in a
list and writes them to disk when flushed.
"""

from __future__ import annotations

import csv
import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional


@dataclass
class OperationRecord:
    run_id: str
    timestamp: float
    direction: str
    source: str
    destination: str
    exit_code: Optional[int] = None
    classification: str = ''
    duration_ms: int = 0
    error_msg: str = ''


FIELDNAMES = [f.name for f in fields(OperationRecord)]


class CSVLogger:
    def __init__(self, path: Path):
        self.path = path
        self.file = path.open('w', newline='', encoding='utf-8')
        self.writer = csv.DictWriter(self.file, fieldnames=FIELDNAMES)
        self.writer.writeheader()

    def log_record(self, record: OperationRecord) -> None:
        row: Dict[str, Any] = asdict(record)
        if row['exit_code'] is None:
            row['exit_code'] = ''
        self.writer.writerow(row)
        self.file.flush()

    def close(self) -> None:
        self.file.close()


class JSONLogger:
    def __init__(self, path: Path):
        self.path = path
        self.records: List[Dict[str, Any]] = []

    def add_record(self, record: OperationRecord) -> None:
        self.records.append(asdict(record))

    def flush(self) -> None:
        with self.path.open('w', encoding='utf-8') as f:
            json.dump(self.records, f, indent=2)
