import logging
import threading
from typing import Callable, List

logger = logging.getLogger(__name__)


class DataScopes:
    PROFILE = "profile"
    HOUSEHOLD = "household"
    LOCATIONS = "locations"
    CATEGORIES = "categories"


class DataChangeNotifier:
    """In-process fan-out of "this kind of data changed" signals."""

    def __init__(self):
        self._callbacks: List[Callable[[str], None]] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Callable[[str], None]) -> None:
        with self._lock:
            if callback not in self._callbacks:
                self._callbacks.append(callback)

    def unsubscribe(self, callback: Callable[[str], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def notify_changed(self, scope: str) -> None:
        with self._lock:
            callbacks = list(self._callbacks)
        for callback in callbacks:
            try:
                callback(scope)
            except Exception as e:
                logger.error(f"Data change subscriber failed for scope {scope}: {e}")


data_changes = DataChangeNotifier()
