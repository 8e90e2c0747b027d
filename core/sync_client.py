"""Session object wiring the sync components together."""

import logging
from typing import Any, Callable, Dict, List, Optional

from core.api_client import ApiClient
from core.coalescer import MutationCoalescer
from core.config import Settings
from core.connection_manager import ConnectionManager
from core.log_store import LogStore
from core.message_handler import MessageHandler
from core.refresh import RefreshScheduler
from models.log_entry import LogLevel
from models.snapshot import Snapshot

logger = logging.getLogger(__name__)


class SyncClient:
    """
    Keeps a local copy of the reservation service's state in sync.

    Owns the transport, timers and last published snapshot for a single
    session, so several independent clients can live in one process.
    """

    def __init__(self, settings: Optional[Settings] = None, api: Optional[ApiClient] = None,
                 connect: Optional[Callable] = None):
        self.settings = settings or Settings()
        self.api = api or ApiClient(self.settings.api_url, timeout=self.settings.request_timeout_s)
        self.log_store = LogStore(self.settings.max_logs)
        self.snapshot = Snapshot()

        self.refresher = RefreshScheduler(
            readers={
                'status': self.api.get_status,
                'dates': self.api.get_dates,
                'completed_reservations': self.api.get_completed_reservations,
                'config': self.api.get_config,
            },
            publish=self._publish,
            log_store=self.log_store,
            interval=self.settings.refresh_interval_s
        )
        self.coalescer: MutationCoalescer[str, List[str]] = MutationCoalescer(
            window=self.settings.debounce_s,
            on_error=self._on_write_error
        )
        self.messages = MessageHandler(self.log_store, request_refresh=self.refresher.trigger)

        connection_kwargs: Dict[str, Any] = {}
        if connect is not None:
            connection_kwargs['connect'] = connect
        self.connection = ConnectionManager(
            self.settings.ws_url,
            on_message=self.messages,
            on_open=self._on_open,
            on_error=self._on_error,
            base_delay=self.settings.reconnect_base_s,
            max_delay=self.settings.reconnect_max_s,
            **connection_kwargs
        )

    @property
    def status(self) -> str:
        return self.messages.status

    def start(self) -> None:
        logger.info(f"Starting sync client for {self.settings.base_url}")
        self.connection.start()
        self.refresher.start()

    async def stop(self) -> None:
        await self.connection.stop()
        await self.coalescer.close()
        await self.refresher.stop()
        await self.api.aclose()
        logger.info("Sync client stopped")

    def published_state(self) -> Dict[str, Any]:
        """Everything a view needs to render, as plain data."""
        return {
            'snapshot': self.snapshot.to_dict(),
            'status': self.status,
            'connection': self.connection.summary,
            'loading': self.refresher.in_flight,
            'pendingWrites': self.coalescer.pending_keys()
        }

    def _publish(self, parts: Dict[str, Any]) -> None:
        self.snapshot = Snapshot.from_parts(parts)

    def _on_open(self) -> None:
        self.log_store.append("WebSocket connection established", LogLevel.SUCCESS)

    def _on_error(self, error: Optional[BaseException]) -> None:
        self.log_store.append("WebSocket error occurred", LogLevel.ERROR)

    def _on_write_error(self, date: str, value: Any, error: Exception) -> None:
        self.log_store.append(f"Failed to update time slots for {date}", LogLevel.ERROR)

    async def _run_action(self, action: Callable, success_message: Optional[str],
                          failure_message: str, refresh: bool = True) -> bool:
        try:
            await action()
        except Exception as e:
            logger.error(f"{failure_message}: {str(e)}")
            self.log_store.append(failure_message, LogLevel.ERROR)
            return False
        if success_message:
            self.log_store.append(success_message, LogLevel.INFO)
        if refresh:
            await self.refresher.refresh()
        return True

    # User actions

    async def add_date(self, date: str) -> bool:
        return await self._run_action(
            lambda: self.api.add_date(date),
            f"Added date: {date}",
            "Failed to add date"
        )

    async def remove_date(self, date: str) -> bool:
        self.coalescer.cancel(date)
        return await self._run_action(
            lambda: self.api.remove_date(date),
            f"Removed date: {date}",
            "Failed to remove date"
        )

    async def toggle_date(self, date: str, enabled: bool) -> bool:
        return await self._run_action(
            lambda: self.api.update_date(date, enabled=enabled),
            None,
            f"Failed to toggle date {date}"
        )

    def update_time_slots(self, date: str, time_slots: List[str]) -> None:
        """Queue a time-slot write; rapid edits for one date collapse into one call."""
        self.coalescer.schedule(date, list(time_slots), self._write_time_slots)

    async def _write_time_slots(self, date: str, time_slots: List[str]) -> None:
        await self.api.update_date(date, time_slots=time_slots)
        await self.refresher.refresh()

    async def start_monitoring(self) -> bool:
        return await self._run_action(
            self.api.start_monitoring,
            "Monitoring started",
            "Failed to start monitoring"
        )

    async def stop_monitoring(self) -> bool:
        return await self._run_action(
            self.api.stop_monitoring,
            "Monitoring stopped",
            "Failed to stop monitoring"
        )

    async def set_monitoring_time_restriction(self, enabled: bool) -> bool:
        return await self._run_action(
            lambda: self.api.set_monitoring_time_restriction(enabled),
            f"Monitoring time restriction {'enabled' if enabled else 'disabled'}",
            "Failed to update monitoring time restriction"
        )

    async def manual_reserve(self, date: str, url: str) -> bool:
        return await self._run_action(
            lambda: self.api.manual_reserve(date, url),
            f"Manual reservation started: {date}",
            "Failed to start manual reservation",
            refresh=False
        )
