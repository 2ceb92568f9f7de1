"""
Inventory alert scheduler.

Runs the stock/expiry checks periodically without user prompting and pushes
the resulting alerts (plus fresh counts) to connected clients.

Cadence:
- full check (all four)   every FULL_CHECK_INTERVAL      (1 h)
- low / out of stock      every STOCK_CHECK_INTERVAL     (2 h)
- expired                 every EXPIRED_CHECK_INTERVAL   (6 h)
- expiring soon           every EXPIRING_CHECK_INTERVAL  (12 h)
"""
import asyncio
import logging
import time
from typing import Dict, Optional, Tuple

from app.core.config import settings
from app.services import notification_service
from app.services.notification_service import ALL_CHECKS, EXPIRED, EXPIRING_SOON, LOW_STOCK, OUT_OF_STOCK

logger = logging.getLogger(__name__)

TICK_SECONDS = 30
STARTUP_DELAY_SECONDS = 10


def build_jobs() -> Dict[str, Tuple[int, Tuple[str, ...]]]:
    return {
        "full": (settings.FULL_CHECK_INTERVAL, ALL_CHECKS),
        "stock": (settings.STOCK_CHECK_INTERVAL, (LOW_STOCK, OUT_OF_STOCK)),
        "expired": (settings.EXPIRED_CHECK_INTERVAL, (EXPIRED,)),
        "expiring_soon": (settings.EXPIRING_CHECK_INTERVAL, (EXPIRING_SOON,)),
    }


def due_jobs(jobs: Dict[str, Tuple[int, tuple]], last_run: Dict[str, float], now: float) -> list[str]:
    """Jobs whose interval has elapsed since their last run (never-run jobs are due)."""
    return [
        name for name, (interval, _) in jobs.items()
        if name not in last_run or now - last_run[name] >= interval
    ]


async def run_job(name: str, checks: tuple) -> int:
    """Collect in a worker thread, publish on the event loop."""
    loop = asyncio.get_running_loop()
    alerts, stats = await loop.run_in_executor(None, notification_service.collect_in_new_session, checks)
    delivered = await notification_service.publish(alerts, stats)
    logger.info(f"[Scheduler] Job '{name}' produced {len(alerts)} alerts")
    return delivered


class InventoryScheduler:
    """Asyncio background loop running alongside FastAPI in the same process."""

    def __init__(self, tick: float = TICK_SECONDS, startup_delay: float = STARTUP_DELAY_SECONDS):
        self.tick = tick
        self.startup_delay = startup_delay
        self.jobs = build_jobs()
        self.last_run: Dict[str, float] = {}
        self._task: Optional[asyncio.Task] = None
        self._running = False

    async def _loop(self):
        logger.info(f"[Scheduler] Started with jobs: {', '.join(self.jobs)}")
        await asyncio.sleep(self.startup_delay)

        while self._running:
            now = time.monotonic()
            for name in due_jobs(self.jobs, self.last_run, now):
                self.last_run[name] = now
                try:
                    await run_job(name, self.jobs[name][1])
                except Exception as e:
                    logger.error(f"[Scheduler] Job '{name}' failed: {e}")
                # a full check covers the narrower jobs due at the same time
                if name == "full":
                    for other in self.jobs:
                        self.last_run[other] = now
                    break
            await asyncio.sleep(self.tick)

    def start(self):
        """Called from the FastAPI lifespan."""
        if self._task and not self._task.done():
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info("[Scheduler] Inventory alert scheduler initialized")

    async def stop(self):
        """Stop the loop gracefully. Called from FastAPI shutdown."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("[Scheduler] Stopped")


scheduler = InventoryScheduler()
