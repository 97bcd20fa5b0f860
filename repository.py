import logging
from typing import List

import psycopg2

from db_context import Database
from errors import NotFoundError, StoreError
from models import Task

logger = logging.getLogger(__name__)

_COLUMNS = "id, title, description, priority, status, start_date, due_date, due_time"


class TaskRepository:
    """SQL access for tasks and their subtrees.

    Subtrees are hydrated with one query per node, depth-first. There is no
    depth limit and no cycle detection: the schema only lets a task point at
    an existing row, so a cycle needs an out-of-band UPDATE of parent_id.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    # ---- reads ----
    def list_top_level(self) -> List[Task]:
        """Return root tasks (parent_id IS NULL) with subtrees populated."""
        try:
            with self._db.cursor() as cur:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM tasks WHERE parent_id IS NULL ORDER BY start_date, id"
                )
                rows = cur.fetchall()
            return [self._hydrate(row) for row in rows]
        except psycopg2.Error as exc:
            logger.error("Error querying tasks: %s", exc)
            raise StoreError(f"error querying tasks: {exc}") from exc

    def get_subtree(self, parent_id: str) -> List[Task]:
        """Return direct children of `parent_id`, each with its own subtree."""
        try:
            with self._db.cursor() as cur:
                cur.execute("SELECT 1 FROM tasks WHERE id = %s", (parent_id,))
                exists = cur.fetchone() is not None
            if not exists:
                raise NotFoundError("task not found")
            return self._children(parent_id)
        except psycopg2.Error as exc:
            logger.error("Error querying subtasks of %s: %s", parent_id, exc)
            raise StoreError(f"error querying subtasks: {exc}") from exc

    def get_by_id(self, task_id: str) -> Task:
        try:
            with self._db.cursor() as cur:
                cur.execute(f"SELECT {_COLUMNS} FROM tasks WHERE id = %s", (task_id,))
                row = cur.fetchone()
            if not row:
                raise NotFoundError("task not found")
            return self._hydrate(row)
        except psycopg2.Error as exc:
            logger.error("Error querying task %s: %s", task_id, exc)
            raise StoreError(f"error querying task: {exc}") from exc

    def _children(self, parent_id: str) -> List[Task]:
        with self._db.cursor() as cur:
            cur.execute(
                f"SELECT {_COLUMNS} FROM tasks WHERE parent_id = %s ORDER BY start_date, id",
                (parent_id,),
            )
            rows = cur.fetchall()
        return [self._hydrate(row) for row in rows]

    def _hydrate(self, row: dict) -> Task:
        task = self._build_task(row)
        task.sub_tasks = self._children(task.id)
        return task

    @staticmethod
    def _build_task(row: dict) -> Task:
        return Task(
            id=row["id"],
            title=row["title"],
            description=row.get("description") or "",
            priority=row["priority"],
            status=row["status"],
            start_date=row["start_date"],
            due_date=row.get("due_date"),
            due_time=row.get("due_time"),
        )

    # ---- writes ----
    def insert(self, task: Task) -> None:
        self._insert(task, None, "error creating task")

    def insert_child(self, parent_id: str, task: Task) -> None:
        # a missing parent is reported by the foreign key, not checked here
        self._insert(task, parent_id, "error creating subtask")

    def _insert(self, task: Task, parent_id, context: str) -> None:
        try:
            with self._db.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO tasks (id, title, description, priority, status,
                                       start_date, due_date, due_time, parent_id)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                    """,
                    (
                        task.id,
                        task.title,
                        task.description,
                        task.priority,
                        task.status,
                        task.start_date,
                        task.due_date,
                        task.due_time,
                        parent_id,
                    ),
                )
        except psycopg2.Error as exc:
            logger.error("%s %s: %s", context, task.id, exc)
            raise StoreError(f"{context}: {exc}") from exc

    def update(self, task: Task) -> None:
        """Overwrite every mutable column of `task.id`."""
        try:
            with self._db.cursor() as cur:
                cur.execute(
                    """
                    UPDATE tasks
                    SET title = %s,
                        description = %s,
                        priority = %s,
                        status = %s,
                        start_date = %s,
                        due_date = %s,
                        due_time = %s
                    WHERE id = %s
                    """,
                    (
                        task.title,
                        task.description,
                        task.priority,
                        task.status,
                        task.start_date,
                        task.due_date,
                        task.due_time,
                        task.id,
                    ),
                )
                affected = cur.rowcount
        except psycopg2.Error as exc:
            logger.error("Error updating task %s: %s", task.id, exc)
            raise StoreError(f"error updating task: {exc}") from exc
        if affected == 0:
            raise NotFoundError("task not found")

    def delete(self, task_id: str) -> None:
        """Delete a task; the store cascades to all descendants."""
        try:
            with self._db.cursor() as cur:
                cur.execute("DELETE FROM tasks WHERE id = %s", (task_id,))
                affected = cur.rowcount
        except psycopg2.Error as exc:
            logger.error("Error deleting task %s: %s", task_id, exc)
            raise StoreError(f"error deleting task: {exc}") from exc
        if affected == 0:
            raise NotFoundError("task not found")
