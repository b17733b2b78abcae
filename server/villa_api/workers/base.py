"""Base worker class for periodic background jobs."""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import async_session_factory
from ..core.observability import get_logger

logger = get_logger(__name__)


class BaseWorker(ABC):
    """
    Abstract base class for background workers.

    Runs ``process`` every ``interval_seconds`` until stopped. An iteration
    that raises is logged and retried on the next interval.
    """

    def __init__(
        self,
        name: str,
        interval_seconds: int = 60,
        session_factory: Callable[[], AsyncSession] = async_session_factory,
    ):
        """
        Initialize the worker.

        Args:
            name: Worker name for logging
            interval_seconds: How often to run the job
            session_factory: Factory for the database sessions each iteration uses
        """
        self.name = name
        self.interval_seconds = interval_seconds
        self.session_factory = session_factory
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._running

    @abstractmethod
    async def process(self) -> int:
        """Run one iteration and return how many records it handled."""

    async def start(self) -> None:
        if self._running:
            logger.warning("worker_already_running", worker=self.name)
            return

        self._running = True
        self._task = asyncio.create_task(self._run(), name=f"worker-{self.name}")
        logger.info("worker_started", worker=self.name, interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        """Stop the worker and wait for the current iteration to be cancelled."""
        if not self._running:
            return

        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info("worker_stopped", worker=self.name)

    async def _run(self) -> None:
        while self._running:
            started = time.monotonic()
            try:
                handled = await self.process()
                logger.info(
                    "worker_iteration_completed",
                    worker=self.name,
                    handled=handled,
                    duration_seconds=round(time.monotonic() - started, 3),
                )
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("worker_iteration_failed", worker=self.name, error=str(e), exc_info=True)

            elapsed = time.monotonic() - started
            try:
                await asyncio.sleep(max(0.0, self.interval_seconds - elapsed))
            except asyncio.CancelledError:
                break
