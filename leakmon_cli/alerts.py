# leakmon_cli/alerts.py
"""
Severity-gated console logger with best-effort alert fan-out.

Every pipeline message goes through one ``AlertLogger``. Console rendering is
serialized by a single lock; messages above WARN are also pushed to the
configured webhook / chat-bot channels, and a FATAL message terminates the
process once it has been rendered and sent.
"""

import os
import re
import sys
import logging
import threading
from typing import Callable, Dict, List, Optional, TextIO, TYPE_CHECKING

from colorama import Fore, Style

if TYPE_CHECKING:
    from .notifications import NotificationManager

DEBUG = logging.DEBUG
INFO = logging.INFO
WARN = logging.WARNING
IMPORTANT = 35
ERROR = logging.ERROR
FATAL = logging.CRITICAL

logging.addLevelName(IMPORTANT, 'IMPORTANT')

_ANSI_RE = re.compile(
    r'[\u001B\u009B][\[\]()#;?]*(?:(?:(?:[a-zA-Z\d]*(?:;[a-zA-Z\d]*)*)?\u0007)'
    r'|(?:(?:\d{1,4}(?:;\d{0,4})*)?[\dA-PRZcf-ntqry=><~]))'
)


def strip_ansi(text: str) -> str:
    """Remove colour/style escape sequences from ``text``."""
    return _ANSI_RE.sub('', text)


def terminate(code: int) -> None:
    """Exit the process from any thread: SystemExit on the main thread, os._exit elsewhere."""
    if threading.current_thread() is threading.main_thread():
        sys.exit(code)
    os._exit(code)


# --- Level Styling ---
class Styler:
    """Maps a log level to display styling. The base class renders plain text."""

    def style(self, level: int, text: str) -> str:
        return text

    def highlight(self, text: str) -> str:
        """Style a signature or label name inside a message."""
        return text

    def emphasis(self, text: str) -> str:
        """Style matched text inside a message."""
        return text


class PlainStyler(Styler):
    pass


class ColoramaStyler(Styler):
    LEVEL_STYLES: Dict[int, str] = {
        FATAL: Fore.RED + Style.BRIGHT,
        ERROR: Fore.RED,
        WARN: Fore.YELLOW,
        DEBUG: Style.DIM,
    }

    def style(self, level: int, text: str) -> str:
        prefix = self.LEVEL_STYLES.get(level)
        if not prefix:
            return text
        return f"{prefix}{text}{Style.RESET_ALL}"

    def highlight(self, text: str) -> str:
        return f"{Fore.GREEN}{text}{Style.RESET_ALL}"

    def emphasis(self, text: str) -> str:
        return f"{Fore.YELLOW}{text}{Style.RESET_ALL}"


def select_styler(stream: TextIO, color: Optional[bool] = None) -> Styler:
    """Pick colorama styling for terminals (or when forced), plain text otherwise."""
    if color is None:
        isatty = getattr(stream, 'isatty', None)
        color = bool(isatty and isatty())
    return ColoramaStyler() if color else PlainStyler()


class LevelFormatter(logging.Formatter):
    """Renders only the message, styled according to its level."""

    def __init__(self, styler: Styler):
        super().__init__(fmt='%(message)s')
        self.styler = styler

    def format(self, record: logging.LogRecord) -> str:
        text = record.getMessage()
        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            text = f"{text}\n{record.exc_text}"
        return self.styler.style(record.levelno, text)


# --- Logger ---
class AlertLogger:
    """Thread-safe six-level logger with webhook / chat-bot fan-out."""

    def __init__(
        self,
        notifier: Optional['NotificationManager'] = None,
        stream: Optional[TextIO] = None,
        styler: Optional[Styler] = None,
        debug: bool = False,
        silent: bool = False,
        exit_func: Callable[[int], None] = terminate,
        name: str = 'leakmon-cli.alerts',
    ) -> None:
        self.notifier = notifier
        self.stream = stream if stream is not None else sys.stdout
        self.styler = styler or select_styler(self.stream)
        self._exit = exit_func
        self._lock = threading.Lock()
        self._debug = debug
        self._silent = silent

        # Owned logger; not registered in the logging manager.
        self._logger = logging.Logger(name, level=DEBUG)
        self._logger.propagate = False
        self.handler = logging.StreamHandler(self.stream)
        self.handler.setFormatter(LevelFormatter(self.styler))
        self._logger.addHandler(self.handler)
        self._attached: List[logging.Logger] = []

    # --- Flags ---
    def set_debug(self, enabled: bool) -> None:
        with self._lock:
            self._debug = enabled
        self._sync_attached()

    def set_silent(self, enabled: bool) -> None:
        with self._lock:
            self._silent = enabled
        self._sync_attached()

    @property
    def debug_enabled(self) -> bool:
        with self._lock:
            return self._debug

    @property
    def silent_enabled(self) -> bool:
        with self._lock:
            return self._silent

    def attach(self, logger: logging.Logger) -> None:
        """Route a diagnostic stdlib logger through this console handler."""
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        logger.addHandler(self.handler)
        logger.propagate = False
        if logger not in self._attached:
            self._attached.append(logger)
        self._sync_attached()

    def _diagnostic_level(self) -> int:
        if self.silent_enabled:
            return IMPORTANT
        return DEBUG if self.debug_enabled else WARN

    def _sync_attached(self) -> None:
        """Keep attached loggers in step with the debug and silent flags."""
        level = self._diagnostic_level()
        for logger in self._attached:
            logger.setLevel(level)

    # --- Core ---
    def _suppressed(self, level: int) -> bool:
        if level == DEBUG and not self._debug:
            return True
        return self._silent and level < IMPORTANT

    def log(self, level: int, fmt: str, *args) -> None:
        with self._lock:
            if self._suppressed(level):
                return
            message = fmt % args if args else fmt
            self._logger.log(level, '%s', message)

        # Fan-out runs outside the console lock.
        if level > WARN and self.notifier is not None:
            self.notifier.broadcast(strip_ansi(message))

        if level == FATAL:
            self.handler.flush()
            self._exit(1)

    def fatal(self, fmt: str, *args) -> None:
        self.log(FATAL, fmt, *args)

    def error(self, fmt: str, *args) -> None:
        self.log(ERROR, fmt, *args)

    def warn(self, fmt: str, *args) -> None:
        self.log(WARN, fmt, *args)

    def important(self, fmt: str, *args) -> None:
        self.log(IMPORTANT, fmt, *args)

    def info(self, fmt: str, *args) -> None:
        self.log(INFO, fmt, *args)

    def debug(self, fmt: str, *args) -> None:
        self.log(DEBUG, fmt, *args)
