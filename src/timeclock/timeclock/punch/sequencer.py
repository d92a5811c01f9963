"""Workday state machine: IN -> BREAK_START -> BREAK_END -> OUT.

OUT closes the local day. Asking for the next type after OUT is an error
rather than an implicit new IN.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from ..core.enums import EventType, WorkStatus
from ..core.exceptions import ValidationError, WorkdayClosedError

_NEXT_TYPE: dict[EventType, EventType] = {
    EventType.IN: EventType.BREAK_START,
    EventType.BREAK_START: EventType.BREAK_END,
    EventType.BREAK_END: EventType.OUT,
}

STATUS_SUGGESTIONS: dict[EventType, str] = {
    EventType.IN: "CLOCK_IN",
    EventType.BREAK_START: "START_BREAK",
    EventType.BREAK_END: "END_BREAK",
    EventType.OUT: "CLOCK_OUT",
}


@dataclass(frozen=True)
class DayStatus:
    current_type: Optional[EventType]
    next_type: Optional[EventType]

    @property
    def closed(self) -> bool:
        return self.current_type == EventType.OUT

    def to_dict(self) -> dict:
        return {
            "currentType": self.current_type.value if self.current_type else None,
            "nextType": self.next_type.value if self.next_type else None,
        }


def _coerce(value: Union[EventType, str]) -> EventType:
    try:
        return EventType(value)
    except ValueError:
        raise ValidationError(f"Invalid last time clock event: {value!r}")


def next_event_type(last_event_type_today: Optional[Union[EventType, str]]) -> EventType:
    if last_event_type_today is None:
        return EventType.IN
    last = _coerce(last_event_type_today)
    if last == EventType.OUT:
        raise WorkdayClosedError()
    return _NEXT_TYPE[last]


def day_status(last_event_type_today: Optional[Union[EventType, str]]) -> DayStatus:
    """Non-raising view for dashboards and kiosk suggestions."""
    if last_event_type_today is None:
        return DayStatus(current_type=None, next_type=EventType.IN)
    try:
        last = EventType(last_event_type_today)
    except ValueError:
        return DayStatus(current_type=None, next_type=EventType.IN)
    if last == EventType.OUT:
        return DayStatus(current_type=last, next_type=None)
    return DayStatus(current_type=last, next_type=_NEXT_TYPE[last])


def work_status(event_type: EventType) -> WorkStatus:
    if event_type == EventType.BREAK_START:
        return WorkStatus.ON_BREAK
    if event_type == EventType.OUT:
        return WorkStatus.OFF
    return WorkStatus.WORKING
