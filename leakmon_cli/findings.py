# leakmon_cli/findings.py
"""
Finding records and the CSV sink they are appended to.

The CSV file may be shared by several processes, so each append takes an
exclusive portalocker lock on a sibling ``.lock`` file in addition to the
in-process thread lock.
"""

import os
import csv
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union

import portalocker

from .exceptions import PersistenceError

logger = logging.getLogger('leakmon-cli.findings')

CSV_HEADER = ['Repository name', 'Signature name', 'Matching file', 'Matches']


@dataclass(frozen=True)
class Finding:
    target_url: str
    signature_name: str
    relative_path: str
    matched_text: str = ''

    def as_row(self) -> List[str]:
        return [self.target_url, self.signature_name, self.relative_path, self.matched_text]


class NullFindingWriter:
    """Used when no CSV path is configured."""

    def write(self, finding: Finding) -> None:
        pass


class CsvFindingWriter:
    def __init__(self, path: Union[str, os.PathLike], lock_timeout: int = 10):
        self.path = Path(path)
        self.lock_path = Path(f"{self.path}.lock")
        self.lock_timeout = lock_timeout
        self._lock = threading.Lock()

    def write(self, finding: Finding) -> None:
        """Append one finding, writing the header first if the file is new or empty."""
        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with portalocker.Lock(str(self.lock_path), mode='a+', flags=portalocker.LOCK_EX | portalocker.LOCK_NB,
                                      timeout=self.lock_timeout):
                    needs_header = not self.path.exists() or self.path.stat().st_size == 0
                    with open(self.path, 'a', newline='', encoding='utf-8') as f:
                        writer = csv.writer(f)
                        if needs_header:
                            writer.writerow(CSV_HEADER)
                        writer.writerow(finding.as_row())
            except (OSError, portalocker.exceptions.LockException) as e:
                logger.error(f"Failed to persist finding to {self.path}: {e}")
                raise PersistenceError(str(self.path), str(e), original_error=e)
