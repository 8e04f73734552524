from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .db import Base


def utcnow() -> datetime:
    return datetime.utcnow()


task_assignees = Table(
    "task_assignees",
    Base.metadata,
    Column("task_id", Integer, ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True),
    Column("employee_id", Integer, ForeignKey("employees.id", ondelete="CASCADE"), primary_key=True),
)

task_assigners = Table(
    "task_assigners",
    Base.metadata,
    Column("task_id", Integer, ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True),
    Column("employee_id", Integer, ForeignKey("employees.id", ondelete="CASCADE"), primary_key=True),
)

occurrence_assignees = Table(
    "occurrence_assignees",
    Base.metadata,
    Column(
        "occurrence_id",
        Integer,
        ForeignKey("occurrences.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("employee_id", Integer, ForeignKey("employees.id", ondelete="CASCADE"), primary_key=True),
)


class AdminModel(Base):
    __tablename__ = "admins"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    email = Column(String(320), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class EmployeeModel(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True)
    organization_id = Column(
        Integer, ForeignKey("admins.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(200), nullable=False)
    email = Column(String(320), nullable=False, unique=True)
    contact = Column(String(40), nullable=False, default="")
    dept = Column(String(120), nullable=False, default="")
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class TaskModel(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True)
    organization_id = Column(
        Integer, ForeignKey("admins.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    kind = Column(String(20), nullable=False)
    priority = Column(String(10), nullable=False, default="medium")
    status = Column(String(30), nullable=False, default="pending", index=True)
    due_date = Column(Date, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    frequency = Column(String(20), nullable=True)
    approval_note = Column(Text, nullable=True)
    assigned_by_admin_id = Column(Integer, ForeignKey("admins.id"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    assignees = relationship("EmployeeModel", secondary=task_assignees, lazy="selectin")
    assigned_by = relationship("EmployeeModel", secondary=task_assigners, lazy="selectin")
    occurrences = relationship(
        "OccurrenceModel",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="OccurrenceModel.seq",
    )


class OccurrenceModel(Base):
    __tablename__ = "occurrences"
    __table_args__ = (UniqueConstraint("task_id", "seq", name="uq_occurrences_task_seq"),)

    id = Column(Integer, primary_key=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    organization_id = Column(Integer, nullable=False, index=True)
    seq = Column(Integer, nullable=False)
    due_date = Column(Date, nullable=False)
    status = Column(String(30), nullable=False, default="pending", index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    task = relationship("TaskModel", back_populates="occurrences")
    assignees = relationship("EmployeeModel", secondary=occurrence_assignees, lazy="selectin")


class ActivityModel(Base):
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, nullable=False, index=True)
    # Plain reference: the audit trail outlives deleted tasks.
    task_id = Column(Integer, nullable=True, index=True)
    kind = Column(String(20), nullable=False, index=True)
    actor_admin_id = Column(Integer, nullable=True)
    actor_employee_id = Column(Integer, nullable=True, index=True)
    summary = Column(Text, nullable=False)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
