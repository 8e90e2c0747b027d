"""Models for the authoritative state pulled from the reservation service."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class DateStatus(Enum):
    """Outcome of the reservation attempt for a monitored date."""
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


@dataclass
class MonitoredDate:
    """A date the service is watching, with the time slots the user picked."""

    date: str
    enabled: bool = True
    status: DateStatus = DateStatus.PENDING
    selected_time_slots: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date,
            'enabled': self.enabled,
            'status': self.status.value,
            'selectedTimeSlots': list(self.selected_time_slots)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MonitoredDate':
        return cls(
            date=data['date'],
            enabled=bool(data.get('enabled', True)),
            status=DateStatus(data.get('status', DateStatus.PENDING.value)),
            selected_time_slots=list(data.get('selectedTimeSlots') or [])
        )


@dataclass
class CompletedReservation:
    """A reservation the service has already made."""

    date: str
    time_slots: List[str] = field(default_factory=list)
    assignee: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'date': self.date,
            'timeSlots': list(self.time_slots)
        }
        if self.assignee is not None:
            result['assignee'] = self.assignee
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CompletedReservation':
        return cls(
            date=data['date'],
            time_slots=list(data.get('timeSlots') or []),
            assignee=data.get('assignee')
        )


@dataclass
class MonitoringStatus:
    """Monitoring run state and time-window restriction."""

    running: bool = False
    monitoring_time_restriction: bool = True
    monitoring_start_hour: Optional[int] = None
    monitoring_end_hour: Optional[int] = None
    within_monitoring_hours: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'running': self.running,
            'monitoringTimeRestriction': self.monitoring_time_restriction,
            'monitoringStartHour': self.monitoring_start_hour,
            'monitoringEndHour': self.monitoring_end_hour,
            'withinMonitoringHours': self.within_monitoring_hours
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MonitoringStatus':
        return cls(
            running=bool(data.get('running', False)),
            monitoring_time_restriction=bool(data.get('monitoringTimeRestriction', True)),
            monitoring_start_hour=data.get('monitoringStartHour'),
            monitoring_end_hour=data.get('monitoringEndHour'),
            within_monitoring_hours=bool(data.get('withinMonitoringHours', True))
        )


@dataclass
class Snapshot:
    """
    Wholesale copy of the remote state at one point in time.

    Snapshots are never mutated after publication; every refresh builds a
    new one.
    """

    status: MonitoringStatus = field(default_factory=MonitoringStatus)
    dates: List[MonitoredDate] = field(default_factory=list)
    completed_reservations: List[CompletedReservation] = field(default_factory=list)
    config: Dict[str, Any] = field(default_factory=dict)
    fetched_at: Optional[datetime] = None

    def find_date(self, date: str) -> Optional[MonitoredDate]:
        for item in self.dates:
            if item.date == date:
                return item
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status.to_dict(),
            'dates': [item.to_dict() for item in self.dates],
            'completedReservations': [item.to_dict() for item in self.completed_reservations],
            'config': dict(self.config),
            'fetchedAt': self.fetched_at.isoformat() if self.fetched_at else None
        }

    @classmethod
    def from_parts(cls, parts: Dict[str, Any], fetched_at: Optional[datetime] = None) -> 'Snapshot':
        """Build a snapshot from the raw results of the individual reads."""
        return cls(
            status=MonitoringStatus.from_dict(parts.get('status') or {}),
            dates=[MonitoredDate.from_dict(item) for item in parts.get('dates') or []],
            completed_reservations=[
                CompletedReservation.from_dict(item)
                for item in parts.get('completed_reservations') or []
            ],
            config=dict(parts.get('config') or {}),
            fetched_at=fetched_at or datetime.now()
        )
