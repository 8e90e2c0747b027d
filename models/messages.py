"""Inbound real-time messages pushed by the reservation service."""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from core.exceptions import MessageParseError


@dataclass(frozen=True)
class LogMessage:
    """A line of background activity to show in the log."""
    message: str


@dataclass(frozen=True)
class ReservationResultMessage:
    """Outcome of a reservation attempt for one date."""
    date: str
    success: bool


@dataclass(frozen=True)
class StatusMessage:
    """New human-readable run status."""
    status: str


InboundMessage = Union[LogMessage, ReservationResultMessage, StatusMessage]


def _require(data: Dict[str, Any], field: str) -> Any:
    if field not in data:
        raise MessageParseError(f"{data.get('type')!r} message is missing {field!r}")
    return data[field]


def parse_inbound(data: Any) -> Optional[InboundMessage]:
    """
    Turn a decoded JSON payload into a typed message.

    Args:
        data: Decoded JSON value received on the real-time channel

    Returns:
        The typed message, or None when the type is not one we handle

    Raises:
        MessageParseError: If the payload is not an object or lacks fields
    """
    if not isinstance(data, dict):
        raise MessageParseError(f"Expected a JSON object, got {type(data).__name__}")

    message_type = data.get('type')
    if message_type == 'log':
        return LogMessage(message=str(_require(data, 'message')))
    elif message_type == 'reservationResult':
        return ReservationResultMessage(
            date=str(_require(data, 'date')),
            success=bool(_require(data, 'success'))
        )
    elif message_type == 'status':
        return StatusMessage(status=str(_require(data, 'status')))
    return None
