import logging
import re
import uuid
from datetime import date, datetime
from typing import Callable, List

from errors import ValidationError
from models import Priority, Status, Task
from repository import TaskRepository

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^\d{2}:\d{2}$")

_PRIORITIES = {p.value for p in Priority}
_STATUSES = {s.value for s in Status}


def _new_id() -> str:
    return str(uuid.uuid4())


def _parses(value: str, pattern: re.Pattern, fmt: str) -> bool:
    # strptime alone accepts single-digit fields like "2024-1-5"
    if not pattern.match(value):
        return False
    try:
        datetime.strptime(value, fmt)
    except ValueError:
        return False
    return True


def validate_task(task: Task) -> None:
    """Raise ValidationError for the first rule `task` violates."""
    if not task.title:
        raise ValidationError("task title is required")
    if task.priority and task.priority not in _PRIORITIES:
        raise ValidationError("invalid priority value")
    if task.status and task.status not in _STATUSES:
        raise ValidationError("invalid status value")
    if task.start_date and not _parses(task.start_date, _DATE_RE, DATE_FORMAT):
        raise ValidationError("invalid start date format")
    if task.due_date is not None and not _parses(task.due_date, _DATE_RE, DATE_FORMAT):
        raise ValidationError("invalid due date format")
    if task.due_time is not None and not _parses(task.due_time, _TIME_RE, TIME_FORMAT):
        raise ValidationError("invalid due time format")


class TaskService:
    def __init__(
        self,
        repo: TaskRepository,
        id_factory: Callable[[], str] = _new_id,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._repo = repo
        self._id_factory = id_factory
        self._today = today

    def list_tasks(self) -> List[Task]:
        return self._repo.list_top_level()

    def get_task(self, task_id: str) -> Task:
        return self._repo.get_by_id(task_id)

    def create_task(self, task: Task) -> Task:
        self._prepare_new(task)
        self._repo.insert(task)
        logger.info("Created task %s", task.id)
        return task

    def create_subtask(self, parent_id: str, task: Task) -> Task:
        self._prepare_new(task)
        self._repo.insert_child(parent_id, task)
        logger.info("Created subtask %s under %s", task.id, parent_id)
        return task

    def update_task(self, task: Task) -> Task:
        """Overwrite all mutable fields of `task.id` and return the stored tree."""
        validate_task(task)
        self._repo.update(task)
        logger.info("Updated task %s", task.id)
        return self._repo.get_by_id(task.id)

    def delete_task(self, task_id: str) -> None:
        self._repo.delete(task_id)
        logger.info("Deleted task %s", task_id)

    def list_subtasks(self, task_id: str) -> List[Task]:
        return self._repo.get_subtree(task_id)

    def _prepare_new(self, task: Task) -> None:
        validate_task(task)

        task.id = self._id_factory()
        if not task.priority:
            task.priority = Priority.MEDIUM.value
        if not task.status:
            task.status = Status.BACKLOG.value
        if not task.start_date:
            task.start_date = self._today().strftime(DATE_FORMAT)
        if task.sub_tasks is None:
            task.sub_tasks = []
