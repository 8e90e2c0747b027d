"""WebSocket connection manager with automatic reconnection."""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Optional, Set

import websockets
from websockets.exceptions import ConnectionClosed

from core.exceptions import TransportError
from models.connection import (
    ABNORMAL_CLOSURE,
    CancelReconnect,
    Closed,
    CloseTransport,
    Connect,
    ConnectionPhase,
    ConnectionState,
    Errored,
    NotifyClose,
    NotifyError,
    NotifyOpen,
    Opened,
    ReconnectDue,
    ScheduleReconnect,
    Start,
    Stop,
    transition,
)

logger = logging.getLogger(__name__)

ConnectFn = Callable[[str], Awaitable[Any]]


class ConnectionManager:
    """
    Owns the single real-time connection to the reservation service.

    Unexpected drops are retried with exponential backoff. A close with
    the normal-closure code, or any close after ``stop()``, is final.
    """

    def __init__(self, url: str,
                 on_message: Optional[Callable[[Any], None]] = None,
                 on_open: Optional[Callable[[], None]] = None,
                 on_close: Optional[Callable[[Optional[int], str], None]] = None,
                 on_error: Optional[Callable[[Optional[BaseException]], None]] = None,
                 connect: ConnectFn = websockets.connect,
                 base_delay: float = 1.0,
                 max_delay: float = 30.0):
        """
        Args:
            url: WebSocket endpoint, e.g. ``ws://localhost:8080/ws``
            on_message: Receives every successfully decoded JSON payload
            on_open: Called after each successful handshake
            on_close: Called with the close code and reason
            on_error: Called with the exception for abnormal failures
            connect: Coroutine function returning an open socket
            base_delay: First reconnect delay in seconds
            max_delay: Cap on the reconnect delay in seconds
        """
        self.url = url
        self.on_message = on_message
        self.on_open = on_open
        self.on_close = on_close
        self.on_error = on_error
        self._connect = connect
        self.base_delay = base_delay
        self.max_delay = max_delay

        self.state = ConnectionState()
        self._transport: Optional[Any] = None
        self._reader_task: Optional[asyncio.Task] = None
        self._reconnect_handle: Optional[asyncio.TimerHandle] = None
        self._background: Set[asyncio.Task] = set()

    @property
    def phase(self) -> ConnectionPhase:
        return self.state.phase

    @property
    def is_open(self) -> bool:
        return self.state.phase == ConnectionPhase.OPEN and self._transport is not None

    @property
    def summary(self) -> str:
        """User-facing connection status."""
        phase = self.state.phase
        if phase == ConnectionPhase.OPEN:
            return "connected"
        if phase == ConnectionPhase.CONNECTING:
            return "reconnecting" if self.state.attempt_count else "connecting"
        if self.state.reconnect_pending:
            return "reconnecting"
        return "disconnected"

    def start(self) -> None:
        """Begin connecting. Has no effect once ``stop()`` has been called."""
        self._dispatch(Start())

    async def stop(self) -> None:
        """Close the connection for good and cancel any pending reconnect."""
        self._dispatch(Stop())

        task = self._reader_task
        if task is not None and not task.done():
            if self._transport is None:
                # Still in the handshake: abandon it.
                task.cancel()
            # asyncio.wait leaves the caller's own cancellation intact.
            await asyncio.wait({task})
        if self.state.phase != ConnectionPhase.DISCONNECTED:
            self._dispatch(Closed(None, "client shutdown"))

        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        logger.info("WebSocket connection stopped")

    async def send(self, message: Any) -> bool:
        """
        Serialize and transmit ``message`` if the connection is open.

        Never raises; returns False when nothing was sent.
        """
        if not self.is_open:
            logger.warning("WebSocket is not connected; message not sent")
            return False
        try:
            await self._transport.send(json.dumps(message))
            return True
        except Exception as e:
            logger.error(f"Failed to send WebSocket message: {str(e)}")
            return False

    def _dispatch(self, event) -> None:
        self.state, effects = transition(self.state, event, self.base_delay, self.max_delay)
        for effect in effects:
            self._apply(effect)

    def _apply(self, effect) -> None:
        match effect:
            case Connect():
                self._reader_task = asyncio.create_task(self._run_transport())
            case ScheduleReconnect(delay=delay):
                logger.info(f"Reconnecting in {delay:.1f}s (attempt {self.state.attempt_count})")
                loop = asyncio.get_running_loop()
                self._reconnect_handle = loop.call_later(delay, self._reconnect_due)
            case CancelReconnect():
                if self._reconnect_handle is not None:
                    self._reconnect_handle.cancel()
                    self._reconnect_handle = None
            case CloseTransport():
                if self._transport is not None:
                    self._spawn(self._transport.close())
            case NotifyOpen():
                self._notify(self.on_open)
            case NotifyClose(code=code, reason=reason):
                self._notify(self.on_close, code, reason)
            case NotifyError(error=error):
                self._notify(self.on_error, error)

    def _reconnect_due(self) -> None:
        self._reconnect_handle = None
        self._dispatch(ReconnectDue())

    def _spawn(self, coro) -> None:
        task = asyncio.ensure_future(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    def _notify(self, callback, *args) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception("Connection callback failed")

    async def _run_transport(self) -> None:
        attempt = self.state.attempt_count + 1
        logger.info(f"Connecting to {self.url} (attempt {attempt})")
        try:
            ws = await self._connect(self.url)
        except Exception as e:
            logger.error(f"Failed to open WebSocket connection: {str(e)}")
            error = TransportError(f"Could not connect to {self.url}: {str(e)}")
            error.__cause__ = e
            self._dispatch(Errored(error))
            return

        self._transport = ws
        logger.info("WebSocket connection established")
        self._dispatch(Opened())

        try:
            async for raw in ws:
                self._handle_raw(raw)
        except ConnectionClosed:
            pass
        except Exception as e:
            logger.error(f"WebSocket error: {str(e)}")
            self._spawn(ws.close())
            self._transport = None
            self._dispatch(Errored(e))
            return

        self._transport = None
        code = getattr(ws, 'close_code', None) or ABNORMAL_CLOSURE
        reason = getattr(ws, 'close_reason', None) or ""
        logger.info(f"WebSocket connection closed (code={code}, reason={reason!r})")
        self._dispatch(Closed(code, reason))

    def _handle_raw(self, raw: Any) -> None:
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"Discarding malformed WebSocket message: {str(e)}")
            return
        self._notify(self.on_message, data)
