import threading


class ReceiptNotFoundError(LookupError):
    """ Raised when no score was stored under the requested receipt id """


class DuplicateReceiptError(ValueError):
    """ Raised when a receipt id is stored twice """


class ScoreStore:
    """
    In-memory (receipt id -> reward points) mapping shared by all request
    threads. Every read and write goes through a single lock. Entries are
    written once and live until the process exits.
    """

    def __init__(self):
        self._points = {}
        self._lock = threading.Lock()

    def put(self, receipt_id: str, points: int):
        with self._lock:
            if receipt_id in self._points:
                raise DuplicateReceiptError(f"Error: receipt id already stored ({receipt_id})")
            self._points[receipt_id] = points

    def get(self, receipt_id: str) -> int:
        with self._lock:
            try:
                return self._points[receipt_id]
            except KeyError:
                raise ReceiptNotFoundError(f"ERROR: receipt id not found ({receipt_id})") from None

    def __contains__(self, receipt_id: str) -> bool:
        with self._lock:
            return receipt_id in self._points

    def __len__(self) -> int:
        with self._lock:
            return len(self._points)
