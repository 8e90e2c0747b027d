"""Routes real-time messages from the service to the log and refresh logic."""

import logging
from typing import Any, Callable

from core.exceptions import MessageParseError
from core.log_store import LogStore
from models.log_entry import LogLevel
from models.messages import LogMessage, ReservationResultMessage, StatusMessage, parse_inbound

logger = logging.getLogger(__name__)

DEFAULT_STATUS = "idle"


class MessageHandler:
    """Dispatches each inbound message by its ``type`` to exactly one action."""

    def __init__(self, log_store: LogStore, request_refresh: Callable[[], Any]):
        self.log_store = log_store
        self.request_refresh = request_refresh
        self.status = DEFAULT_STATUS

    def __call__(self, data: Any) -> None:
        try:
            message = parse_inbound(data)
        except MessageParseError as e:
            logger.warning(f"Dropping inbound message: {str(e)}")
            return

        if message is None:
            logger.debug(f"Ignoring message of unknown type {data.get('type')!r}")
            return

        if isinstance(message, LogMessage):
            self.log_store.append(message.message, LogLevel.INFO)
        elif isinstance(message, ReservationResultMessage):
            outcome = "success" if message.success else "failure"
            level = LogLevel.SUCCESS if message.success else LogLevel.ERROR
            self.log_store.append(f"Reservation result: {message.date} - {outcome}", level)
            self.request_refresh()
        elif isinstance(message, StatusMessage):
            self.status = message.status
