import threading
from collections import deque

from ebay_importer.config import settings
from ebay_importer.models import ImportResult


class ImportHistory:
    """Newest-first record of recent imports, kept only in process memory."""

    def __init__(self, limit: int = 50):
        self.limit = limit
        self._items: deque[ImportResult] = deque(maxlen=limit)
        self._lock = threading.Lock()

    def record(self, result: ImportResult):
        with self._lock:
            # maxlen drops from the right, i.e. the oldest entry
            self._items.appendleft(result)

    def items(self) -> list[ImportResult]:
        with self._lock:
            return list(self._items)

    def clear(self):
        with self._lock:
            self._items.clear()

    def __len__(self):
        with self._lock:
            return len(self._items)


import_history = ImportHistory(settings.IMPORT_HISTORY_LIMIT)
