"""Last known alert counts and the "stats updated" signal listeners subscribe to."""
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

StatsListener = Callable[[dict], None]

EMPTY_STATS = {"expired": 0, "expiringSoon": 0, "lowStock": 0, "outOfStock": 0}


class StatsSignal:
    """Process-wide fan-out of stats updates. Listeners run synchronously, in subscription order."""

    def __init__(self):
        self._listeners: List[StatsListener] = []

    def subscribe(self, listener: StatsListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: StatsListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, stats: dict):
        for listener in list(self._listeners):
            try:
                listener(stats)
            except Exception as e:
                logger.error(f"[Stats] Listener {getattr(listener, '__name__', listener)} failed: {e}")


class StatsCache:
    """
    Holds the latest NotificationStats.

    `replace` swaps the whole mapping (no merge): after two refreshes the cache
    holds exactly the second response.
    """

    def __init__(self, signal: Optional[StatsSignal] = None):
        self.signal = signal or StatsSignal()
        self._stats: Dict[str, int] = dict(EMPTY_STATS)
        self.updated_at: Optional[datetime] = None

    @property
    def current(self) -> dict:
        return dict(self._stats)

    def replace(self, stats: dict):
        self._stats = dict(stats)
        self.updated_at = datetime.now(timezone.utc)
        logger.debug(f"[Stats] Cache replaced: {self._stats}")
        self.signal.emit(self.current)

    def notify(self):
        """Re-emit the cached counts without changing them."""
        self.signal.emit(self.current)
