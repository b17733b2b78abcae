"""Worker manager for coordinating background jobs."""

import asyncio
from typing import Dict

from ..core.observability import get_logger
from .base import BaseWorker
from .checkout_reminder_worker import CheckoutReminderWorker
from .session_cleanup_worker import SessionCleanupWorker

logger = get_logger(__name__)


class WorkerManager:
    """Starts, stops and reports on the application's background workers."""

    def __init__(self):
        self.workers: Dict[str, BaseWorker] = {}
        self._setup_workers()

    def _setup_workers(self) -> None:
        # Hourly
        self.workers["session_cleanup"] = SessionCleanupWorker(interval_seconds=3600)
        # Every 6 hours
        self.workers["checkout_reminder"] = CheckoutReminderWorker(interval_seconds=6 * 3600)

    async def start_all(self) -> None:
        for name, worker in self.workers.items():
            try:
                await worker.start()
            except Exception as e:
                logger.error("worker_start_failed", worker=name, error=str(e), exc_info=True)

        logger.info("workers_started", count=len(self.workers))

    async def stop_all(self) -> None:
        """Stop all workers, logging any that fail to stop cleanly."""
        results = await asyncio.gather(
            *(worker.stop() for worker in self.workers.values()),
            return_exceptions=True,
        )
        for name, result in zip(self.workers.keys(), results):
            if isinstance(result, Exception):
                logger.error("worker_stop_failed", worker=name, error=str(result))

        logger.info("workers_stopped", count=len(self.workers))

    def get_worker(self, name: str) -> BaseWorker:
        return self.workers[name]

    def get_worker_status(self) -> Dict[str, bool]:
        return {name: worker.running for name, worker in self.workers.items()}


# Global worker manager instance
worker_manager = WorkerManager()
