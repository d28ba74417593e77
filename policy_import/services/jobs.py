"""
Import job registry.

Host side of the import worker boundary: starts one worker process per
upload, listens to its messages on a background thread, and keeps the
latest state of every job for polling.
"""

import logging
import multiprocessing
import queue
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
import os

from policy_import.models import utc_now
from policy_import.services.importer import ImportState

logger = logging.getLogger("policy_import")

# Seconds between liveness checks while waiting for worker messages
POLL_INTERVAL = 1.0

# Finished jobs kept for polling; the oldest are dropped beyond this
MAX_FINISHED_JOBS = int(os.getenv("IMPORT_JOB_RETENTION", "100"))

@dataclass
class ImportJob:
    """State of one import as seen by the host."""
    import_id: str
    file: str
    state: ImportState = ImportState.RUNNING
    processed: int = 0
    total: Optional[int] = None
    errors: int = 0
    errors_list: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None
    started_at: datetime = field(default_factory=utc_now)
    finished_at: Optional[datetime] = None

Launcher = Callable[["ImportJobRegistry", str, str], None]

class ImportJobRegistry:
    """Thread-safe registry of import jobs."""

    def __init__(self, launcher: Optional[Launcher] = None, max_finished: int = MAX_FINISHED_JOBS):
        self._jobs: Dict[str, ImportJob] = {}
        self._lock = threading.Lock()
        self._launcher = launcher or launch_worker_process
        self._max_finished = max_finished

    def start(self, payload: str, filename: str) -> ImportJob:
        """Register a job and hand the payload to the launcher."""
        job = ImportJob(import_id=str(uuid.uuid4()), file=filename)
        with self._lock:
            self._jobs[job.import_id] = job
        logger.info(f"Import queued | import_id={job.import_id} | file={filename}")
        self._launcher(self, job.import_id, payload)
        return job

    def get(self, import_id: str) -> Optional[ImportJob]:
        with self._lock:
            return self._jobs.get(import_id)

    def handle_message(self, import_id: str, message: Dict[str, Any]) -> bool:
        """
        Apply a worker message to its job.

        Returns:
            True if the message was terminal (done or error)
        """
        kind = message.get("type")
        with self._lock:
            job = self._jobs.get(import_id)
            if job is None:
                logger.warning(f"Message for unknown import | import_id={import_id} | type={kind}")
                return kind in ("done", "error")

            if kind == "progress":
                job.processed = message["processed"]
                job.total = message["total"]
                logger.info(f"Progress: {job.processed}/{job.total} records processed | import_id={import_id}")
                return False

            if kind == "done":
                job.state = ImportState.COMPLETED
                job.processed = message["processed"]
                job.total = message["total"]
                job.errors = message["errors"]
                job.errors_list = list(message.get("errorsList", []))
                job.finished_at = utc_now()
                logger.info(
                    f"Processing complete: {job.processed} records processed, "
                    f"{job.errors} errors | import_id={import_id}"
                )
                self._evict_finished()
                return True

            if kind == "error":
                self._fail(job, message.get("error") or "Unknown error occurred")
                return True

        logger.warning(f"Unexpected worker message | import_id={import_id} | message={message}")
        return False

    def mark_failed(self, import_id: str, error: str):
        """Fail a job that ended without a terminal message."""
        with self._lock:
            job = self._jobs.get(import_id)
            if job is not None and job.state == ImportState.RUNNING:
                self._fail(job, error)

    def _fail(self, job: ImportJob, error: str):
        job.state = ImportState.FAILED
        job.error = error
        job.finished_at = utc_now()
        logger.error(f"Worker error: {error} | import_id={job.import_id}")
        self._evict_finished()

    def _evict_finished(self):
        # Caller holds the lock. Running jobs are never evicted.
        finished = [job for job in self._jobs.values() if job.finished_at is not None]
        if len(finished) <= self._max_finished:
            return
        finished.sort(key=lambda job: job.finished_at)
        for job in finished[:len(finished) - self._max_finished]:
            del self._jobs[job.import_id]
            logger.debug(f"Evicted finished import | import_id={job.import_id}")

def listen(registry: ImportJobRegistry, import_id: str, channel, process) -> None:
    """Consume worker messages in order until a terminal message or process exit."""
    while True:
        try:
            message = channel.get(timeout=POLL_INTERVAL)
        except queue.Empty:
            if process.is_alive():
                continue
            # The queue may still hold messages put right before exit
            try:
                message = channel.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                process.join()
                registry.mark_failed(import_id, f"Worker stopped with exit code {process.exitcode}")
                return

        if registry.handle_message(import_id, message):
            break

    process.join()
    if process.exitcode not in (0, None):
        logger.error(f"Worker stopped with exit code {process.exitcode} | import_id={import_id}")

def launch_worker_process(registry: ImportJobRegistry, import_id: str, payload: str) -> None:
    """Start the worker in a fresh process and a listener thread for its messages."""
    from policy_import.workers.import_worker import worker_main

    context = multiprocessing.get_context("spawn")
    channel = context.Queue()
    process = context.Process(
        target=worker_main,
        args=(payload, channel),
        name=f"import-{import_id}",
        daemon=True,
    )
    process.start()

    listener = threading.Thread(
        target=listen,
        args=(registry, import_id, channel, process),
        name=f"import-listener-{import_id}",
        daemon=True,
    )
    listener.start()

# Global registry instance
import_registry = ImportJobRegistry()
