# leakmon_cli/workers.py
import queue
import logging
import threading
from typing import Callable, List, Optional

from .alerts import AlertLogger
from .pipeline import ScanTarget

logger = logging.getLogger('leakmon-cli.workers')


class TargetQueue:
    """Bounded FIFO of pending scan targets. ``put`` blocks when full, ``get`` when empty."""

    def __init__(self, maxsize: int = 1000):
        self._queue: 'queue.Queue[ScanTarget]' = queue.Queue(maxsize=maxsize)

    def put(self, target: ScanTarget, timeout: Optional[float] = None) -> None:
        self._queue.put(target, timeout=timeout)

    def get(self, timeout: Optional[float] = None) -> ScanTarget:
        return self._queue.get(timeout=timeout)

    def task_done(self) -> None:
        self._queue.task_done()

    def join(self) -> None:
        self._queue.join()

    def qsize(self) -> int:
        return self._queue.qsize()

    @property
    def maxsize(self) -> int:
        return self._queue.maxsize


class WorkerPool:
    """
    Fixed number of daemon threads draining one ``TargetQueue`` forever.

    There is no cancellation: workers block on an empty queue and end with
    the process.
    """

    def __init__(self, name: str, targets: TargetQueue, handler: Callable[[ScanTarget], object],
                 size: int, log: AlertLogger):
        if size < 1:
            raise ValueError("WorkerPool size must be at least 1")
        self.name = name
        self.targets = targets
        self.handler = handler
        self.size = size
        self.log = log
        self.threads: List[threading.Thread] = []

    def start(self) -> None:
        for i in range(self.size):
            thread = threading.Thread(target=self._run, name=f"{self.name}-{i}", daemon=True)
            thread.start()
            self.threads.append(thread)
        logger.debug(f"Started {self.size} {self.name} workers")

    def _run(self) -> None:
        while True:
            target = self.targets.get()
            try:
                self.handler(target)
            except Exception as e:
                self.log.error("[%s] Worker %s failed: %s: %s", target.url,
                               threading.current_thread().name, type(e).__name__, e)
            finally:
                self.targets.task_done()
