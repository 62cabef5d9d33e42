# leakmon_cli/workspace.py
"""Deterministic per-target scratch directories and their cleanup."""

import os
import shutil
import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Union

logger = logging.getLogger('leakmon-cli.workspace')


def get_hash(value: str) -> str:
    """SHA-1 hex digest of ``value``; names the workspace for a URL."""
    return hashlib.sha1(value.encode('utf-8')).hexdigest()


def relative_path(file_path: Union[str, os.PathLike], root: Union[str, os.PathLike]) -> str:
    """Path of ``file_path`` relative to ``root``, POSIX style."""
    return Path(file_path).resolve().relative_to(Path(root).resolve()).as_posix()


@dataclass
class Workspace:
    path: Path
    origin_url: str
    retained: bool = False

    @classmethod
    def for_url(cls, temp_root: Union[str, os.PathLike], url: str) -> 'Workspace':
        return cls(path=Path(temp_root) / get_hash(url), origin_url=url)

    @property
    def name(self) -> str:
        return self.path.name

    def provision(self) -> Path:
        """Clear anything left at the path by an earlier run and ensure the parent exists."""
        if self.path.exists():
            logger.debug(f"Removing stale workspace {self.path}")
            shutil.rmtree(self.path, ignore_errors=True)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        return self.path

    def relative_path(self, file_path: Union[str, os.PathLike]) -> str:
        return relative_path(file_path, self.path)

    def release(self) -> None:
        """Delete the whole workspace."""
        self.retained = False
        shutil.rmtree(self.path, ignore_errors=True)
        logger.debug(f"Released workspace {self.path}")

    def retain_only(self, keep: Iterable[Union[str, os.PathLike]]) -> None:
        """Keep the listed files for inspection; delete every other file and prune empty directories."""
        keep_paths = {Path(os.path.abspath(p)) for p in keep}
        for dirpath, dirnames, filenames in os.walk(self.path, topdown=False):
            for name in filenames:
                file_path = Path(os.path.abspath(os.path.join(dirpath, name)))
                if file_path.is_symlink() or file_path not in keep_paths:
                    try:
                        file_path.unlink()
                    except OSError as e:
                        logger.debug(f"Could not remove {file_path}: {e}")
            for name in dirnames:
                dir_path = Path(dirpath) / name
                if dir_path.is_symlink():
                    dir_path.unlink()
                elif not any(dir_path.iterdir()):
                    dir_path.rmdir()
        self.retained = True
        logger.debug(f"Retained {len(keep_paths)} file(s) in {self.path}")
