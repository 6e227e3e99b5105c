import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 5000
DEFAULT_TTL = 15 * 60


class ReadWriteLock:
    """
    Shared/exclusive lock: any number of readers, or one writer.

    Writers wait for active readers to leave; new readers wait while a writer
    is waiting so a periodic sweep cannot be starved by request traffic.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self):
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write(self):
        with self._cond:
            self._writers_waiting += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


@dataclass
class RegistryEntry:
    client_key: str
    profile_key: str
    last_accessed: float


class RequestRegistry:
    """
    Remembers the last resource each client requested.

    Used to tell a new navigation from a page refresh so that analytics are
    written once per logical view. Entries are overwritten on every request
    and swept by flush() once the table grows beyond ``capacity``; bounded
    staleness is fine because the registry only suppresses duplicates.

    One instance is owned per server process (see CourseshareConfig) and
    passed to the views; there is no module level state.
    """

    def __init__(self, capacity=DEFAULT_CAPACITY, ttl=DEFAULT_TTL, clock=time.monotonic):
        self.capacity = capacity
        self.ttl = ttl
        self._clock = clock
        self._lock = ReadWriteLock()
        self._requests = {}

    def __len__(self):
        with self._lock.read():
            return len(self._requests)

    def continue_(self, client_key, profile_key):
        """
        Return True if this request is a fresh view, False on a refresh.

        The lookup and the update are separate critical sections, so two
        concurrent calls for the same client may both answer True.
        """
        with self._lock.read():
            entry = self._requests.get(client_key)
            found = entry is None or entry.profile_key != profile_key

        with self._lock.write():
            self._requests[client_key] = RegistryEntry(client_key, profile_key, self._clock())

        return found

    def get(self, client_key):
        with self._lock.read():
            return self._requests.get(client_key)

    def flush(self):
        """Drop entries older than ``ttl``, but only once above ``capacity``."""
        removed = 0
        with self._lock.write():
            if len(self._requests) > self.capacity:
                now = self._clock()
                expired = [
                    key for key, entry in self._requests.items()
                    if now - entry.last_accessed > self.ttl
                ]
                for key in expired:
                    del self._requests[key]
                removed = len(expired)
        if removed:
            logger.debug("request registry flushed %d entries", removed)
        return removed


def start_flush_ticker(registry, interval):
    """Run registry.flush() every ``interval`` seconds on a daemon thread."""
    stop = threading.Event()

    def tick():
        while not stop.wait(interval):
            try:
                registry.flush()
            except Exception:
                logger.exception("request registry flush failed")

    threading.Thread(target=tick, name="registry-flush", daemon=True).start()
    return stop


def client_key(request):
    """Network identity of the caller: first X-Forwarded-For hop or REMOTE_ADDR."""
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR", "")
