"""Background worker that removes expired login sessions."""

from ..core.observability import get_logger, metrics_collector
from ..services.auth_service import SessionService
from .base import BaseWorker

logger = get_logger(__name__)


class SessionCleanupWorker(BaseWorker):
    """Deletes expired sessions and refreshes the active-session gauge."""

    def __init__(self, interval_seconds: int = 3600, **kwargs):
        super().__init__(name="session_cleanup", interval_seconds=interval_seconds, **kwargs)

    async def process(self) -> int:
        async with self.session_factory() as db:
            sessions = SessionService(db)
            try:
                purged = await sessions.purge_expired()
                metrics_collector.set_active_sessions(await sessions.count_active())
            except Exception:
                await db.rollback()
                raise

        if purged:
            logger.info("expired_sessions_purged", worker=self.name, purged=purged)
        return purged
