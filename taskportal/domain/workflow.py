"""Status rules shared by tasks and their occurrences.

Everything here is pure: the services load rows, ask these functions what the
next state is, persist it, and only then run side effects.
"""
from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Iterable, Optional, Sequence

from .entities import OccurrenceEntity
from .enums import TaskStatus
from .errors import AuthorizationError, ValidationError

ADMIN_TARGETS = (TaskStatus.COMPLETED, TaskStatus.PENDING)


def parse_status(value: object) -> TaskStatus:
    try:
        return TaskStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError("Invalid status") from None


def rollup_status(statuses: Iterable[TaskStatus]) -> TaskStatus:
    statuses = list(statuses)
    if any(status == TaskStatus.PENDING_VERIFICATION for status in statuses):
        return TaskStatus.PENDING_VERIFICATION
    if statuses and all(status == TaskStatus.COMPLETED for status in statuses):
        return TaskStatus.COMPLETED
    return TaskStatus.PENDING


def employee_transition(current: TaskStatus, target: TaskStatus) -> TaskStatus:
    # Employees may submit work for review, never approve it.
    if current != TaskStatus.PENDING or target != TaskStatus.PENDING_VERIFICATION:
        raise AuthorizationError()
    return target


def admin_transition(current: TaskStatus, target: TaskStatus) -> TaskStatus:
    if target not in ADMIN_TARGETS:
        raise ValidationError("Status must be completed or pending")
    if current != TaskStatus.PENDING_VERIFICATION:
        raise ValidationError("Task is not awaiting verification")
    return target


def next_for_review(occurrences: Iterable[OccurrenceEntity]) -> Optional[OccurrenceEntity]:
    waiting = [o for o in occurrences if o.status == TaskStatus.PENDING_VERIFICATION]
    if not waiting:
        return None
    return min(waiting, key=lambda o: (o.seq, o.due_date))


def visible_occurrences(
    occurrences: Sequence[OccurrenceEntity], today: date
) -> list[OccurrenceEntity]:
    """Occurrences an employee should act on, grouped per parent task.

    For each task: every occurrence that is overdue and not completed, plus the
    earliest remaining one that is not overdue yet.
    """
    groups: dict[int, list[OccurrenceEntity]] = defaultdict(list)
    for occurrence in occurrences:
        groups[occurrence.task_id].append(occurrence)

    visible: list[OccurrenceEntity] = []
    for task_id in sorted(groups):
        ordered = sorted(groups[task_id], key=lambda o: o.seq)
        open_items = [o for o in ordered if o.status != TaskStatus.COMPLETED]
        overdue = [o for o in open_items if o.due_date < today]
        upcoming = next((o for o in open_items if o.due_date >= today), None)
        visible.extend(overdue)
        if upcoming is not None:
            visible.append(upcoming)
    return visible
