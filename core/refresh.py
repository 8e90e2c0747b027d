"""Periodic and on-demand pull of the authoritative remote state."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Set

from core.log_store import LogStore
from models.log_entry import LogLevel

logger = logging.getLogger(__name__)

REFRESH_INTERVAL = 60.0

Reader = Callable[[], Awaitable[Any]]


class RefreshScheduler:
    """
    Pulls every read concurrently and publishes the combined result.

    Only one pull runs at a time; ``refresh`` calls that arrive while one
    is in flight return immediately without doing anything.
    """

    def __init__(self, readers: Mapping[str, Reader], publish: Callable[[Dict[str, Any]], None],
                 log_store: LogStore, interval: float = REFRESH_INTERVAL):
        """
        Args:
            readers: Named coroutine functions, one per read operation
            publish: Receives ``{name: result}`` after every successful pull
            log_store: Where pull failures are reported
            interval: Seconds between periodic refreshes
        """
        self.readers = dict(readers)
        self.publish = publish
        self.log_store = log_store
        self.interval = interval
        self.in_flight = False
        self._periodic_task: Optional[asyncio.Task] = None
        self._triggered: Set[asyncio.Task] = set()

    async def refresh(self) -> bool:
        """
        Pull and publish the remote state unless a pull is already running.

        Returns:
            True if a snapshot was published, False if skipped or failed
        """
        if self.in_flight:
            return False

        self.in_flight = True
        try:
            names = list(self.readers)
            results = await asyncio.gather(
                *(self.readers[name]() for name in names), return_exceptions=True
            )
            for name, result in zip(names, results):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                if isinstance(result, Exception):
                    raise RuntimeError(f"{name} read failed: {result}") from result
            self.publish(dict(zip(names, results)))
            return True
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Failed to load remote state: {str(e)}")
            self.log_store.append("Failed to load data from the server", LogLevel.ERROR)
            return False
        finally:
            self.in_flight = False

    def trigger(self) -> asyncio.Task:
        """Start a refresh in the background and return its task."""
        task = asyncio.create_task(self.refresh())
        self._triggered.add(task)
        task.add_done_callback(self._triggered.discard)
        return task

    def start(self) -> None:
        """Refresh now and then every ``interval`` seconds."""
        if self._periodic_task is None or self._periodic_task.done():
            self._periodic_task = asyncio.create_task(self._run_periodic())

    async def _run_periodic(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        while True:
            await self.refresh()
            # Ticks stay on start + k * interval; ticks missed by a slow pull are skipped.
            next_tick += self.interval
            now = loop.time()
            while next_tick <= now:
                next_tick += self.interval
            await asyncio.sleep(next_tick - now)

    async def stop(self) -> None:
        tasks = list(self._triggered)
        if self._periodic_task is not None:
            tasks.append(self._periodic_task)
            self._periodic_task = None
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
