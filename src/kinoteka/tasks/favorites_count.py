"""Background job that keeps the signed-in user's favorites count fresh."""

import asyncio
import logging
from collections.abc import Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from kinoteka.config import settings
from kinoteka.errors import StoreError
from kinoteka.schemas.session import Session
from kinoteka.services.favorites import FavoriteMarks
from kinoteka.store.base import RemoteStore

logger = logging.getLogger(__name__)

JOB_ID = "favorites_count"


class FavoritesCountPoller:
    """
    Polls the favorites table on an interval while started.

    Read-only: a failed poll keeps the last known count.
    """

    def __init__(
        self,
        store: RemoteStore,
        session: Callable[[], Session],
        interval: int | None = None,
        on_change: Callable[[int], None] | None = None,
    ) -> None:
        self.marks = FavoriteMarks(store)
        self.session = session
        self.interval = interval or settings.favorites_poll_interval
        self.on_change = on_change
        self.count = 0
        self._scheduler: AsyncIOScheduler | None = None
        self._initial: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    async def refresh(self) -> int:
        """Fetch the count once for whoever is signed in now."""
        user_id = self.session().user_id
        if not user_id:
            self._set(0)
            return 0

        try:
            count = await self.marks.count(user_id)
        except StoreError as e:
            logger.warning(f"Favorites count unavailable, keeping {self.count}: {e.message}")
            return self.count

        self._set(count)
        return count

    def _set(self, count: int) -> None:
        if count != self.count:
            self.count = count
            if self.on_change:
                self.on_change(count)

    def start(self) -> None:
        """Schedule the job and run one refresh right away. Needs a running loop."""
        if self._scheduler is not None:
            return

        scheduler = AsyncIOScheduler()
        scheduler.add_job(
            self.refresh,
            trigger=IntervalTrigger(seconds=self.interval),
            id=JOB_ID,
            name="Refresh favorites count",
            replace_existing=True,
            max_instances=1,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info(f"Favorites count polling started (every {self.interval}s)")

        self._initial = asyncio.create_task(self.refresh())

    def stop(self) -> None:
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        if self._initial and not self._initial.done():
            self._initial.cancel()
        self._initial = None
        logger.info("Favorites count polling stopped")
