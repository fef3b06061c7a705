"""
Task Service.

Tasks are created by any authenticated user; status changes go through the
status gate (super_admin / hr / project_manager, or the task's creator).
"""

import logging

from sqlalchemy import select

from studio.core.exceptions import ValidationError
from studio.models import db
from studio.models.auth import User
from studio.models.task import TASK_PRIORITIES, TASK_STATUSES, Task
from studio.services.status_gate import can_transition, change_labels, list_history
from studio.utils.helpers import get_or_raise

logger = logging.getLogger(__name__)


def list_tasks(*, status: str | None = None, assigned_to: int | None = None) -> list[Task]:
    stmt = select(Task).order_by(Task.created_at.desc(), Task.id.desc())
    if status:
        stmt = stmt.where(Task.status == status)
    if assigned_to is not None:
        stmt = stmt.where(Task.assigned_to == assigned_to)
    return list(db.session.execute(stmt).scalars().all())


def get_task(task_id: int, actor_id: int | None = None) -> dict:
    task = get_or_raise(Task, task_id, label="Task")
    d = task.to_dict()
    d["can_change_status"] = can_transition("task", task, actor_id)
    return d


def create_task(data: dict, actor_id: int) -> Task:
    """Create a task owned by *actor_id*.

    Args:
        data: Parsed body; ``title`` required, ``due_date`` already a date.
    """
    status = data.get("status") or "todo"
    priority = data.get("priority") or "medium"
    errors = {}
    if status not in TASK_STATUSES:
        errors["status"] = f"Must be one of: {', '.join(sorted(TASK_STATUSES))}"
    if priority not in TASK_PRIORITIES:
        errors["priority"] = f"Must be one of: {', '.join(sorted(TASK_PRIORITIES))}"
    assignee = data.get("assigned_to")
    if assignee is not None and db.session.get(User, assignee) is None:
        errors["assigned_to"] = f"Unknown user id {assignee}"
    if errors:
        raise ValidationError("Invalid task", details=errors)

    task = Task(
        title=data["title"],
        description=data.get("description") or "",
        priority=priority,
        status=status,
        due_date=data.get("due_date"),
        created_by=actor_id,
        assigned_to=assignee,
    )
    db.session.add(task)
    db.session.commit()
    logger.info("Task created", extra={"task_id": task.id, "actor_id": actor_id})
    return task


def change_task_status(task_id: int, status: str, actor_id: int) -> dict:
    return change_labels("task", task_id, actor_id, status=status)


def task_history(task_id: int) -> list[dict]:
    return list_history("task", task_id)
