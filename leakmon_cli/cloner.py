# leakmon_cli/cloner.py
import os
import shutil
import logging
import subprocess
from pathlib import Path
from typing import List, Union

from .exceptions import CloneError, SetupError

logger = logging.getLogger('leakmon-cli.cloner')


def ensure_git_available(git_executable: str = 'git') -> str:
    path = shutil.which(git_executable)
    if path is None:
        raise SetupError(f"`{git_executable}` executable not found in PATH. Please install Git.")
    return path


class GitCloner:
    """Materializes a remote repository or gist into a local directory with a shallow clone."""

    def __init__(self, timeout: int = 300, git_executable: str = 'git'):
        self.timeout = timeout
        self.git_executable = git_executable

    def build_command(self, url: str, dest: Union[str, Path]) -> List[str]:
        return [self.git_executable, 'clone', '--quiet', '--depth', '1', '--no-tags', url, str(dest)]

    def clone(self, url: str, dest: Union[str, Path]) -> Path:
        """
        Clone ``url`` into ``dest``.

        Raises:
            CloneError: on timeout, a missing git executable, or a non-zero exit.
        """
        command = self.build_command(url, dest)
        env = dict(os.environ, GIT_TERMINAL_PROMPT='0')
        logger.debug(f"Running: {' '.join(command)} (Timeout: {self.timeout}s)")
        try:
            proc = subprocess.run(
                command,
                capture_output=True,
                text=True,
                encoding='utf-8',
                errors='ignore',
                timeout=self.timeout,
                env=env,
            )
        except subprocess.TimeoutExpired as e:
            raise CloneError(url, f"git clone timed out after {self.timeout}s", original_error=e)
        except FileNotFoundError as e:
            raise CloneError(url, f"git executable '{self.git_executable}' not found", original_error=e)

        if proc.returncode != 0:
            stderr = (proc.stderr or '').strip()
            raise CloneError(url, stderr[:200] or 'git clone failed', exit_code=proc.returncode)
        return Path(dest)
