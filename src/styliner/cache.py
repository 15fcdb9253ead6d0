"""Thread-safe cache of compiled stylesheets."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Callable

from styliner.stylesheet.model import CompiledStylesheet

logger = logging.getLogger(__name__)


class StylesheetCache:
    """Maps a canonical stylesheet path to the future of its compilation.

    The future is stored before compiling starts, so concurrent requests for
    the same path share one compile.  A failed compile is evicted so a
    later request can retry; the callers that were waiting on it all see
    the same exception.

    One cache belongs to one :class:`~styliner.Styliner`; it is never shared
    between instances.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, Future[CompiledStylesheet]] = {}

    def get_or_compile(
        self, key: str, factory: Callable[[], CompiledStylesheet]
    ) -> Future[CompiledStylesheet]:
        """Return the cached future for *key*, compiling with *factory* on a miss.

        On a miss *factory* runs in the calling thread; the returned future
        is already resolved when this method returns.
        """
        with self._lock:
            future = self._entries.get(key)
            if future is not None:
                return future
            future = Future()
            future.set_running_or_notify_cancel()
            self._entries[key] = future

        logger.debug("Compiling stylesheet %s", key)
        try:
            future.set_result(factory())
        except Exception as exc:
            with self._lock:
                if self._entries.get(key) is future:
                    del self._entries[key]
            future.set_exception(exc)
        return future

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        """Discard every cached stylesheet.

        Compiles already in flight finish and are handed to their waiters,
        but are not stored.
        """
        with self._lock:
            self._entries.clear()
