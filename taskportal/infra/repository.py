from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from sqlalchemy import func, or_, select

from taskportal.domain.entities import (
    ActivityEntity,
    AdminEntity,
    EmployeeEntity,
    OccurrenceEntity,
    TaskEntity,
)
from taskportal.domain.enums import (
    ActivityKind,
    Frequency,
    Priority,
    TaskKind,
    TaskStatus,
)
from taskportal.domain.filters import ActivityFilters, TaskFilters

from .db import SessionLocal
from .models import (
    ActivityModel,
    AdminModel,
    EmployeeModel,
    OccurrenceModel,
    TaskModel,
)

STATUS_COMPLETED = TaskStatus.COMPLETED.value


def _ids(employees: Iterable[EmployeeModel]) -> tuple[int, ...]:
    return tuple(sorted(employee.id for employee in employees))


def _task_to_entity(model: TaskModel) -> TaskEntity:
    return TaskEntity(
        id=model.id,
        organization_id=model.organization_id,
        name=model.name,
        description=model.description,
        kind=TaskKind(model.kind),
        priority=Priority(model.priority),
        status=TaskStatus(model.status),
        due_date=model.due_date,
        start_date=model.start_date,
        end_date=model.end_date,
        frequency=Frequency(model.frequency) if model.frequency else None,
        assignee_ids=_ids(model.assignees),
        assigned_by_ids=_ids(model.assigned_by),
        assigned_by_admin_id=model.assigned_by_admin_id,
        approval_note=model.approval_note,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _occurrence_to_entity(model: OccurrenceModel) -> OccurrenceEntity:
    return OccurrenceEntity(
        id=model.id,
        task_id=model.task_id,
        organization_id=model.organization_id,
        seq=model.seq,
        due_date=model.due_date,
        status=TaskStatus(model.status),
        name=model.name,
        description=model.description,
        assignee_ids=_ids(model.assignees),
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _employee_to_entity(model: EmployeeModel) -> EmployeeEntity:
    return EmployeeEntity(
        id=model.id,
        organization_id=model.organization_id,
        name=model.name,
        email=model.email,
        contact=model.contact,
        dept=model.dept,
        password_hash=model.password_hash,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _admin_to_entity(model: AdminModel) -> AdminEntity:
    return AdminEntity(
        id=model.id,
        name=model.name,
        email=model.email,
        password_hash=model.password_hash,
        created_at=model.created_at,
    )


def _activity_to_entity(model: ActivityModel) -> ActivityEntity:
    return ActivityEntity(
        id=model.id,
        organization_id=model.organization_id,
        task_id=model.task_id,
        kind=ActivityKind(model.kind),
        actor_admin_id=model.actor_admin_id,
        actor_employee_id=model.actor_employee_id,
        summary=model.summary,
        details=model.details,
        created_at=model.created_at,
    )


def _load_employees(session, employee_ids: Iterable[int]) -> list[EmployeeModel]:
    employee_ids = list(dict.fromkeys(employee_ids))
    if not employee_ids:
        return []
    return list(session.scalars(select(EmployeeModel).where(EmployeeModel.id.in_(employee_ids))))


def _apply_filters(stmt, filters: TaskFilters) -> object:
    if filters.organization_id is not None:
        stmt = stmt.where(TaskModel.organization_id == filters.organization_id)
    if filters.assignee_id is not None:
        stmt = stmt.where(TaskModel.assignees.any(EmployeeModel.id == filters.assignee_id))
    if filters.assigned_by_id is not None:
        stmt = stmt.where(TaskModel.assigned_by.any(EmployeeModel.id == filters.assigned_by_id))
    if filters.kind is not None:
        stmt = stmt.where(TaskModel.kind == filters.kind.value)
    if filters.status is not None:
        stmt = stmt.where(TaskModel.status == filters.status.value)

    if filters.search:
        pattern = f"%{filters.search}%"
        stmt = stmt.where(
            or_(
                TaskModel.name.ilike(pattern),
                TaskModel.description.ilike(pattern),
            )
        )

    return stmt


class TaskRepository:
    def __init__(self, session_factory=SessionLocal) -> None:
        self._session_factory = session_factory

    def list_tasks(self, filters: TaskFilters) -> list[TaskEntity]:
        with self._session_factory() as session:
            stmt = select(TaskModel)
            stmt = _apply_filters(stmt, filters)
            stmt = stmt.order_by(TaskModel.created_at.desc(), TaskModel.id.desc())
            return [_task_to_entity(task) for task in session.scalars(stmt)]

    def get_task(self, task_id: int) -> Optional[TaskEntity]:
        with self._session_factory() as session:
            task = session.get(TaskModel, task_id)
            return _task_to_entity(task) if task else None

    def create_task(self, data: dict, occurrence_rows: Iterable[dict] = ()) -> TaskEntity:
        """Insert the task together with its occurrences in a single commit."""
        with self._session_factory() as session:
            values = dict(data)
            assignee_ids = values.pop("assignee_ids", ())
            assigned_by_ids = values.pop("assigned_by_ids", ())
            task = TaskModel(**values)
            task.assignees = _load_employees(session, assignee_ids)
            task.assigned_by = _load_employees(session, assigned_by_ids)
            for row in occurrence_rows:
                row_values = dict(row)
                row_assignee_ids = row_values.pop("assignee_ids", ())
                occurrence = OccurrenceModel(**row_values)
                occurrence.assignees = _load_employees(session, row_assignee_ids)
                task.occurrences.append(occurrence)
            session.add(task)
            session.commit()
            session.refresh(task)
            return _task_to_entity(task)

    def update_task(self, task_id: int, data: dict) -> Optional[TaskEntity]:
        with self._session_factory() as session:
            task = session.get(TaskModel, task_id)
            if not task:
                return None

            values = dict(data)
            if "assignee_ids" in values:
                task.assignees = _load_employees(session, values.pop("assignee_ids"))
            for key, value in values.items():
                setattr(task, key, value)
            session.commit()
            session.refresh(task)
            return _task_to_entity(task)

    def add_assignee(
        self,
        task_id: int,
        employee_id: int,
        assigned_by_id: int | None = None,
        assigned_by_admin_id: int | None = None,
    ) -> Optional[TaskEntity]:
        """Add an employee to a task and to every occurrence it owns, in one commit."""
        with self._session_factory() as session:
            task = session.get(TaskModel, task_id)
            employee = session.get(EmployeeModel, employee_id)
            if not task or not employee:
                return None

            if employee not in task.assignees:
                task.assignees.append(employee)
            if assigned_by_id is not None:
                assigner = session.get(EmployeeModel, assigned_by_id)
                if assigner is not None and assigner not in task.assigned_by:
                    task.assigned_by.append(assigner)
            if assigned_by_admin_id is not None:
                task.assigned_by_admin_id = assigned_by_admin_id

            for occurrence in task.occurrences:
                if employee not in occurrence.assignees:
                    occurrence.assignees.append(employee)

            session.commit()
            session.refresh(task)
            return _task_to_entity(task)

    def delete_task(self, task_id: int) -> Optional[TaskEntity]:
        with self._session_factory() as session:
            task = session.get(TaskModel, task_id)
            if not task:
                return None
            deleted = _task_to_entity(task)
            session.delete(task)
            session.commit()
            return deleted

    def get_stats(self, organization_id: int, today: date | None = None) -> dict[str, int]:
        today = today or date.today()
        with self._session_factory() as session:
            rows = session.execute(
                select(TaskModel.status, func.count())
                .where(TaskModel.organization_id == organization_id)
                .group_by(TaskModel.status)
            ).all()
            by_status = {status: count for status, count in rows}
            overdue_tasks = session.scalar(
                select(func.count())
                .select_from(TaskModel)
                .where(
                    TaskModel.organization_id == organization_id,
                    TaskModel.kind == TaskKind.ONE_TIME.value,
                    TaskModel.due_date.is_not(None),
                    TaskModel.due_date < today,
                    TaskModel.status != STATUS_COMPLETED,
                )
            ) or 0
            overdue_occurrences = session.scalar(
                select(func.count())
                .select_from(OccurrenceModel)
                .where(
                    OccurrenceModel.organization_id == organization_id,
                    OccurrenceModel.due_date < today,
                    OccurrenceModel.status != STATUS_COMPLETED,
                )
            ) or 0
            return {
                "total": sum(by_status.values()),
                "pending": by_status.get(TaskStatus.PENDING.value, 0),
                "pending_verification": by_status.get(TaskStatus.PENDING_VERIFICATION.value, 0),
                "completed": by_status.get(STATUS_COMPLETED, 0),
                "overdue": overdue_tasks + overdue_occurrences,
            }


class OccurrenceRepository:
    def __init__(self, session_factory=SessionLocal) -> None:
        self._session_factory = session_factory

    def create_occurrences(self, task_id: int, rows: list[dict]) -> list[OccurrenceEntity]:
        if not rows:
            return []
        with self._session_factory() as session:
            created = []
            for row in rows:
                values = dict(row)
                assignee_ids = values.pop("assignee_ids", ())
                occurrence = OccurrenceModel(task_id=task_id, **values)
                occurrence.assignees = _load_employees(session, assignee_ids)
                created.append(occurrence)
            session.add_all(created)
            session.commit()
            return [_occurrence_to_entity(occurrence) for occurrence in created]

    def get_occurrence(self, occurrence_id: int) -> Optional[OccurrenceEntity]:
        with self._session_factory() as session:
            occurrence = session.get(OccurrenceModel, occurrence_id)
            return _occurrence_to_entity(occurrence) if occurrence else None

    def list_for_task(self, task_id: int) -> list[OccurrenceEntity]:
        with self._session_factory() as session:
            stmt = (
                select(OccurrenceModel)
                .where(OccurrenceModel.task_id == task_id)
                .order_by(OccurrenceModel.seq.asc())
            )
            return [_occurrence_to_entity(o) for o in session.scalars(stmt)]

    def list_for_employee(
        self,
        employee_id: int,
        status: TaskStatus | None = None,
        newest_first: bool = False,
    ) -> list[OccurrenceEntity]:
        with self._session_factory() as session:
            stmt = select(OccurrenceModel).where(
                OccurrenceModel.assignees.any(EmployeeModel.id == employee_id)
            )
            if status is not None:
                stmt = stmt.where(OccurrenceModel.status == status.value)
            if newest_first:
                stmt = stmt.order_by(OccurrenceModel.due_date.desc(), OccurrenceModel.seq.desc())
            else:
                stmt = stmt.order_by(OccurrenceModel.task_id.asc(), OccurrenceModel.seq.asc())
            return [_occurrence_to_entity(o) for o in session.scalars(stmt)]

    def update_status(self, occurrence_id: int, status: TaskStatus) -> Optional[OccurrenceEntity]:
        with self._session_factory() as session:
            occurrence = session.get(OccurrenceModel, occurrence_id)
            if not occurrence:
                return None
            occurrence.status = status.value
            session.commit()
            session.refresh(occurrence)
            return _occurrence_to_entity(occurrence)


class EmployeeRepository:
    def __init__(self, session_factory=SessionLocal) -> None:
        self._session_factory = session_factory

    def list_employees(self, organization_id: int, search: str | None = None) -> list[EmployeeEntity]:
        with self._session_factory() as session:
            stmt = select(EmployeeModel).where(EmployeeModel.organization_id == organization_id)
            if search:
                pattern = f"%{search}%"
                stmt = stmt.where(
                    or_(
                        EmployeeModel.name.ilike(pattern),
                        EmployeeModel.email.ilike(pattern),
                        EmployeeModel.contact.ilike(pattern),
                        EmployeeModel.dept.ilike(pattern),
                    )
                )
            stmt = stmt.order_by(EmployeeModel.name.asc(), EmployeeModel.id.asc())
            return [_employee_to_entity(e) for e in session.scalars(stmt)]

    def get_employee(self, employee_id: int) -> Optional[EmployeeEntity]:
        with self._session_factory() as session:
            employee = session.get(EmployeeModel, employee_id)
            return _employee_to_entity(employee) if employee else None

    def get_by_email(self, email: str) -> Optional[EmployeeEntity]:
        with self._session_factory() as session:
            employee = session.scalar(select(EmployeeModel).where(EmployeeModel.email == email))
            return _employee_to_entity(employee) if employee else None

    def create_employee(self, data: dict) -> EmployeeEntity:
        with self._session_factory() as session:
            employee = EmployeeModel(**data)
            session.add(employee)
            session.commit()
            session.refresh(employee)
            return _employee_to_entity(employee)

    def update_employee(self, employee_id: int, data: dict) -> Optional[EmployeeEntity]:
        with self._session_factory() as session:
            employee = session.get(EmployeeModel, employee_id)
            if not employee:
                return None
            for key, value in data.items():
                setattr(employee, key, value)
            session.commit()
            session.refresh(employee)
            return _employee_to_entity(employee)

    def delete_employee(self, employee_id: int) -> Optional[EmployeeEntity]:
        with self._session_factory() as session:
            employee = session.get(EmployeeModel, employee_id)
            if not employee:
                return None
            deleted = _employee_to_entity(employee)
            session.delete(employee)
            session.commit()
            return deleted


class AdminRepository:
    def __init__(self, session_factory=SessionLocal) -> None:
        self._session_factory = session_factory

    def get_admin(self, admin_id: int) -> Optional[AdminEntity]:
        with self._session_factory() as session:
            admin = session.get(AdminModel, admin_id)
            return _admin_to_entity(admin) if admin else None

    def get_by_email(self, email: str) -> Optional[AdminEntity]:
        with self._session_factory() as session:
            admin = session.scalar(select(AdminModel).where(AdminModel.email == email))
            return _admin_to_entity(admin) if admin else None

    def create_admin(self, data: dict) -> AdminEntity:
        with self._session_factory() as session:
            admin = AdminModel(**data)
            session.add(admin)
            session.commit()
            session.refresh(admin)
            return _admin_to_entity(admin)


class ActivityRepository:
    def __init__(self, session_factory=SessionLocal) -> None:
        self._session_factory = session_factory

    def add_activity(self, data: dict) -> ActivityEntity:
        with self._session_factory() as session:
            activity = ActivityModel(**data)
            session.add(activity)
            session.commit()
            session.refresh(activity)
            return _activity_to_entity(activity)

    def list_activities(self, filters: ActivityFilters) -> list[ActivityEntity]:
        with self._session_factory() as session:
            stmt = select(ActivityModel)
            if filters.organization_id is not None:
                stmt = stmt.where(ActivityModel.organization_id == filters.organization_id)
            if filters.kind is not None:
                stmt = stmt.where(ActivityModel.kind == filters.kind.value)
            if filters.employee_id is not None:
                stmt = stmt.where(ActivityModel.actor_employee_id == filters.employee_id)
            stmt = stmt.order_by(ActivityModel.created_at.desc(), ActivityModel.id.desc())
            return [_activity_to_entity(a) for a in session.scalars(stmt)]
