from typing import List

from models import Task
from schemas import TaskInSchema, TaskSchema


def task_to_schema(task: Task) -> TaskSchema:
    """Конвертирует модель Task в схему TaskSchema (вместе с поддеревом)"""
    return TaskSchema(
        id=task.id,
        title=task.title,
        description=task.description,
        priority=task.priority,
        status=task.status,
        start_date=task.start_date,
        due_date=task.due_date,
        due_time=task.due_time,
        sub_tasks=tasks_to_schemas(task.sub_tasks),
    )


def tasks_to_schemas(tasks: List[Task]) -> List[TaskSchema]:
    """Конвертирует список моделей Task в список схем TaskSchema"""
    return [task_to_schema(task) for task in tasks] if tasks else []


def schema_to_task(schema: TaskInSchema, task_id: str = "") -> Task:
    """Конвертирует тело запроса в модель Task; id задаётся сервисом или путём"""
    return Task(
        id=task_id,
        title=schema.title,
        description=schema.description or "",
        priority=schema.priority,
        status=schema.status,
        start_date=schema.start_date,
        due_date=schema.due_date,
        due_time=schema.due_time,
    )
