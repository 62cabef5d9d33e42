# leakmon_cli/files.py
"""Candidate file enumeration and the entropy heuristic."""

import os
import math
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterator, Union

from .config import ScanConfig

logger = logging.getLogger('leakmon-cli.files')

BINARY_SNIFF_BYTES = 8000


def get_entropy(text: str) -> float:
    """Shannon entropy of ``text`` in bits per character."""
    if not text:
        return 0.0
    length = len(text)
    entropy = 0.0
    for count in Counter(text).values():
        p = count / length
        entropy -= p * math.log2(p)
    return entropy


def _extension(filename: str) -> str:
    _, ext = os.path.splitext(filename)
    return ext.lower()


@dataclass(frozen=True)
class MatchFile:
    """A file read from a workspace, ready for signature matching."""
    path: str
    contents: bytes = field(repr=False)

    @property
    def filename(self) -> str:
        return os.path.basename(self.path)

    @property
    def extension(self) -> str:
        return _extension(self.filename)

    @property
    def text(self) -> str:
        return self.contents.decode('utf-8', errors='replace')

    def is_binary(self) -> bool:
        return b'\x00' in self.contents[:BINARY_SNIFF_BYTES]

    def can_check_entropy(self, config: ScanConfig) -> bool:
        if self.is_binary() or len(self.contents) > config.maximum_file_size:
            return False
        denied = config.blacklisted_entropy_extensions
        return self.extension not in denied and self.filename.lower() not in denied


def _has_blacklisted_extension(filename: str, blacklisted: list) -> bool:
    lowered = filename.lower()
    return any(lowered.endswith(ext) for ext in blacklisted)


def get_matching_files(root: Union[str, os.PathLike], config: ScanConfig) -> Iterator[MatchFile]:
    """
    Walk ``root`` and yield every file eligible for signature matching.

    Directories whose name is deny-listed are pruned, files with a deny-listed
    extension, symlinks, and files larger than ``maximum_file_size`` are
    skipped. Files are yielded in sorted order.
    """
    blacklisted_paths = set(config.blacklisted_paths)
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in blacklisted_paths)
        for name in sorted(filenames):
            path = os.path.join(dirpath, name)
            if os.path.islink(path) or _has_blacklisted_extension(name, config.blacklisted_extensions):
                continue
            try:
                if os.path.getsize(path) > config.maximum_file_size:
                    continue
                with open(path, 'rb') as f:
                    contents = f.read()
            except OSError as e:
                logger.debug(f"Skipping unreadable file {path}: {e}")
                continue
            yield MatchFile(path=path, contents=contents)
