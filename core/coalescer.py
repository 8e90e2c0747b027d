"""Per-key write coalescing for bursts of user edits."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, Hashable, List, Optional, Set, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar('K', bound=Hashable)
V = TypeVar('V')

DEBOUNCE_WINDOW = 0.5

WriteFn = Callable[[Any, Any], Awaitable[Any]]
ErrorHandler = Callable[[Any, Any, Exception], None]


@dataclass
class PendingWrite(Generic[K, V]):
    """The latest value waiting for its debounce window to elapse."""

    key: K
    value: V
    write_fn: WriteFn
    handle: asyncio.TimerHandle


class MutationCoalescer(Generic[K, V]):
    """
    Collapses rapid writes to the same key into a single call.

    Each ``schedule`` restarts the window for its key and replaces the
    value; only the last value of a burst is written.
    """

    def __init__(self, window: float = DEBOUNCE_WINDOW, on_error: Optional[ErrorHandler] = None):
        self.window = window
        self.on_error = on_error
        self._pending: Dict[K, PendingWrite[K, V]] = {}
        self._inflight: Set[asyncio.Task] = set()
        self._closed = False

    def schedule(self, key: K, value: V, write_fn: WriteFn) -> None:
        """
        Arrange for ``write_fn(key, value)`` to run after the debounce window.

        Args:
            key: Identifier of the entity being edited
            value: Latest value for that entity
            write_fn: Coroutine function performing the write
        """
        if self._closed:
            logger.warning(f"Ignoring write for {key!r}: coalescer is closed")
            return

        existing = self._pending.pop(key, None)
        if existing is not None:
            existing.handle.cancel()

        loop = asyncio.get_running_loop()
        handle = loop.call_later(self.window, self._fire, key)
        self._pending[key] = PendingWrite(key, value, write_fn, handle)

    def _fire(self, key: K) -> None:
        pending = self._pending.pop(key, None)
        if pending is None:
            return
        task = asyncio.create_task(self._write(pending))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _write(self, pending: PendingWrite[K, V]) -> None:
        try:
            await pending.write_fn(pending.key, pending.value)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Coalesced write for {pending.key!r} failed: {str(e)}")
            if self.on_error is not None:
                self.on_error(pending.key, pending.value, e)

    def pending_value(self, key: K) -> Optional[V]:
        pending = self._pending.get(key)
        return pending.value if pending else None

    def pending_keys(self) -> List[K]:
        return list(self._pending)

    def cancel(self, key: K) -> bool:
        """Drop the scheduled write for ``key``; returns True if one existed."""
        pending = self._pending.pop(key, None)
        if pending is None:
            return False
        pending.handle.cancel()
        return True

    async def close(self) -> None:
        """Cancel every scheduled write and wait for writes already running."""
        self._closed = True
        for pending in self._pending.values():
            pending.handle.cancel()
        self._pending.clear()
        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)
