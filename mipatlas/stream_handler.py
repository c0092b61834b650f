"""Ordered execution stream for device commands.

Commands are enqueued from the host and executed one at a time, in FIFO
order, on a background worker thread. The host only blocks in
``synchronize()``.
"""

from collections import deque
from typing import Callable, Optional

from PyQt6.QtCore import QMutex, QMutexLocker, QThread, QWaitCondition

from mipatlas.errors import StreamError


class ExecutionStream(QThread):
    """Background thread draining a queue of device commands."""

    def __init__(self, name: str = "stream0"):
        super().__init__()
        self.name = name

        self.running = True

        # Labelled commands waiting to execute
        self.command_queue: "deque[tuple[str, Callable[[], None]]]" = deque()
        self.queue_lock = QMutex()
        self.work_ready = QWaitCondition()
        self.queue_idle = QWaitCondition()
        self.pending = 0

        # First failure since the last synchronize(); later commands are skipped
        self.error: Optional[Exception] = None
        self.failed_command: Optional[str] = None

        self.executed_count = 0

    # -------------------------------------------------------------

    def run(self):
        while True:
            with QMutexLocker(self.queue_lock):
                while self.running and not self.command_queue:
                    self.work_ready.wait(self.queue_lock)
                if not self.command_queue:
                    return
                label, command = self.command_queue.popleft()
                skip = self.error is not None

            if not skip:
                self._execute(label, command)

            with QMutexLocker(self.queue_lock):
                self.pending -= 1
                if self.pending == 0:
                    self.queue_idle.wakeAll()

    def _execute(self, label: str, command: Callable[[], None]):
        try:
            command()
        except Exception as e:
            # AIDEV-NOTE: Failures are stored and re-raised on the host at
            # the next synchronize(), like an asynchronous device error.
            with QMutexLocker(self.queue_lock):
                self.error = e
                self.failed_command = label
            return

        with QMutexLocker(self.queue_lock):
            self.executed_count += 1

    # -------------------------------------------------------------
    # API methods
    # -------------------------------------------------------------

    def enqueue(self, label: str, command: Callable[[], None]):
        """Thread-safe enqueue. Returns without waiting for execution."""
        with QMutexLocker(self.queue_lock):
            if not self.running:
                raise StreamError(f"{self.name} is stopped, cannot run '{label}'")
            self.command_queue.append((label, command))
            self.pending += 1
            self.work_ready.wakeOne()

    def wait_idle(self):
        """Block until the queue is empty, leaving any failure pending."""
        with QMutexLocker(self.queue_lock):
            while self.pending:
                self.queue_idle.wait(self.queue_lock)

    def synchronize(self):
        """Block until every enqueued command has finished.

        Raises:
            StreamError: If any command failed since the last synchronize()
        """
        with QMutexLocker(self.queue_lock):
            while self.pending:
                self.queue_idle.wait(self.queue_lock)
            error, label = self.error, self.failed_command
            self.error = None
            self.failed_command = None

        if error is not None:
            raise StreamError(f"command '{label}' failed: {error}") from error

    def stop(self):
        """Let the worker drain the queue, then join it."""
        with QMutexLocker(self.queue_lock):
            self.running = False
            self.work_ready.wakeAll()
        self.wait()
