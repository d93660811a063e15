"""Decide how an employee change affects a viewer's filtered view.

Employees may be ORM ``Employee`` rows or plain snapshot dicts (as carried
by ``EmployeeChange``); both are read through ``_value``.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import AsyncIterator, Callable, Literal

log = logging.getLogger(__name__)

ChangeType = Literal["added", "removed", "updated"]
EventType = Literal["INSERT", "UPDATE", "DELETE"]

SEARCH_FIELDS = ("first_name", "surname", "email", "mobile", "rank", "ssn")

CHANGE_FIELD_LABELS: list[tuple[str, str]] = [
    ("first_name", "First Name"),
    ("surname", "Surname"),
    ("email", "Email"),
    ("mobile", "Mobile"),
    ("rank", "Rank"),
    ("hire_date", "Hire Date"),
    ("termination_date", "Termination Date"),
    ("is_terminated", "Termination Status"),
    ("is_archived", "Archive Status"),
]

SNAPSHOT_FIELDS = (
    "id",
    "first_name",
    "surname",
    "ssn",
    "email",
    "mobile",
    "rank",
    "gender",
    "town_district",
    "hire_date",
    "termination_date",
    "termination_reason",
    "is_terminated",
    "is_archived",
    "comments",
)


def _value(employee, key: str):
    if isinstance(employee, dict):
        return employee.get(key)
    return getattr(employee, key, None)


def _employee_id(employee) -> str | None:
    value = _value(employee, "id")
    return None if value is None else str(value)


@dataclass
class FilterState:
    include_archived: bool = False
    include_terminated: bool = False
    global_filter: str = ""


@dataclass
class ViewState:
    visible_ids: set[str] = field(default_factory=set)
    filters: FilterState = field(default_factory=FilterState)
    sort_column: str | None = None
    sort_direction: Literal["asc", "desc"] | None = None

    def is_visible(self, employee_id) -> bool:
        return employee_id is not None and str(employee_id) in self.visible_ids


def matches_filters(employee, filters: FilterState) -> bool:
    if not filters.include_archived and _value(employee, "is_archived"):
        return False
    if not filters.include_terminated and _value(employee, "is_terminated"):
        return False

    term = (filters.global_filter or "").strip().lower()
    if term:
        haystack = [str(v).lower() for v in (_value(employee, f) for f in SEARCH_FIELDS) if v is not None]
        if not any(term in v for v in haystack):
            return False
    return True


def classify_change(old_employee, new_employee, view_state: ViewState) -> ChangeType | None:
    """Classify a change relative to what the viewer currently sees.

    ``old_employee`` is None for inserts.
    """
    was_visible = old_employee is not None and view_state.is_visible(_employee_id(old_employee))
    is_visible = matches_filters(new_employee, view_state.filters)

    if not was_visible and is_visible:
        return "added"
    if was_visible and not is_visible:
        return "removed"
    if was_visible and is_visible:
        return "updated"
    return None


def changed_field(old_employee, new_employee) -> str | None:
    """Label of the first tracked field that differs, if any."""
    for key, label in CHANGE_FIELD_LABELS:
        if _value(old_employee, key) != _value(new_employee, key):
            return label
    return None


def _full_name(employee) -> str:
    parts = [_value(employee, "first_name"), _value(employee, "surname")]
    return " ".join(p for p in parts if p) or "Unnamed"


@dataclass(frozen=True)
class Notification:
    type: ChangeType
    employee_id: str
    employee_name: str
    changed_field: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def format_notification(notification: Notification) -> str:
    name = notification.employee_name
    if notification.type == "added":
        return f"1 new employee matches your filters: {name}"
    if notification.type == "removed":
        return f"1 employee no longer matches your filters: {name}"
    if notification.changed_field:
        return f"Employee {name} was updated ({notification.changed_field} changed)"
    return f"Employee {name} was updated"


def format_batched_notification(notifications: list[Notification]) -> str:
    """One count-bearing message per change type, added first."""
    if not notifications:
        return ""
    if len(notifications) == 1:
        return format_notification(notifications[0])

    counts = Counter(n.type for n in notifications)
    messages = []
    if counts["added"]:
        n = counts["added"]
        messages.append(
            f"{n} new employee{'s' if n > 1 else ''} match{'' if n > 1 else 'es'} your filters"
        )
    if counts["removed"]:
        n = counts["removed"]
        messages.append(
            f"{n} employee{'s' if n > 1 else ''} no longer match{'' if n > 1 else 'es'} your filters"
        )
    if counts["updated"]:
        n = counts["updated"]
        messages.append(f"{n} employee{'s were' if n > 1 else ' was'} updated")
    return "; ".join(messages)


def snapshot(employee) -> dict:
    """Plain-dict copy of an employee, safe to hand to other tasks."""
    data = {key: _value(employee, key) for key in SNAPSHOT_FIELDS}
    if data["id"] is not None:
        data["id"] = str(data["id"])
    return data


@dataclass(frozen=True)
class EmployeeChange:
    event_type: EventType
    old: dict | None
    new: dict | None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def notification_for(change: EmployeeChange, view_state: ViewState) -> Notification | None:
    """Turn a feed event into a notification for one viewer, or None."""
    if change.event_type == "DELETE":
        if change.old is None or not view_state.is_visible(_employee_id(change.old)):
            return None
        return Notification("removed", _employee_id(change.old), _full_name(change.old))

    new = change.new
    if new is None:
        return None
    kind = classify_change(change.old, new, view_state)
    if kind is None:
        return None
    label = changed_field(change.old, new) if kind == "updated" and change.old else None
    return Notification(kind, _employee_id(new), _full_name(new), changed_field=label)


class ChangeFeed:
    """In-process fan-out of employee changes to subscriber queues."""

    def __init__(self, max_queue: int = 100):
        self._max_queue = max_queue
        self._subscribers: set[asyncio.Queue] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._max_queue)
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)

    @asynccontextmanager
    async def subscription(self):
        queue = self.subscribe()
        try:
            yield queue
        finally:
            self.unsubscribe(queue)

    def publish(self, change: EmployeeChange) -> None:
        for queue in list(self._subscribers):
            if queue.full():
                # slow subscriber: drop the oldest event
                queue.get_nowait()
                log.warning("change feed subscriber lagging, dropped oldest event")
            queue.put_nowait(change)


feed = ChangeFeed()


async def watch(
    view_state: ViewState,
    *,
    mask: Callable[[dict | None], dict | None] | None = None,
    source: ChangeFeed | None = None,
    max_events: int | None = None,
) -> AsyncIterator[Notification]:
    """Yield notifications for one viewer as changes arrive.

    ``mask`` narrows each snapshot to what the viewer may see before it is
    classified; an update that only touched masked fields is not reported.
    ``view_state.visible_ids`` follows the added and removed rows.
    """
    source = source or feed
    sent = 0
    async with source.subscription() as queue:
        while max_events is None or sent < max_events:
            change = await queue.get()
            if mask is not None:
                change = EmployeeChange(
                    change.event_type, mask(change.old), mask(change.new), change.timestamp
                )
            notification = notification_for(change, view_state)
            if notification is None:
                continue
            if notification.type == "updated" and change.old == change.new:
                continue
            if notification.type == "added":
                view_state.visible_ids.add(notification.employee_id)
            elif notification.type == "removed":
                view_state.visible_ids.discard(notification.employee_id)
            sent += 1
            yield notification
