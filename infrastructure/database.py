import logging
import sqlite3
from datetime import datetime
from typing import List, Optional

from domain.entities import Task
from domain.errors import StoreError

logger = logging.getLogger(__name__)


class Database:
    def __init__(self, db_name: str = "todo.db"):
        self.db_name = db_name
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_name)

    def _init_db(self):
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS tasks (
                        id TEXT PRIMARY KEY,
                        title TEXT NOT NULL,
                        description TEXT NOT NULL,
                        user_id TEXT NOT NULL,
                        created_at TEXT NOT NULL
                    )
                """)
                cursor.execute(
                    "CREATE INDEX IF NOT EXISTS idx_tasks_user_created ON tasks (user_id, created_at)"
                )
                conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"cannot open {self.db_name}: {e}") from e
        logger.debug(f"Task table ready in {self.db_name}")

    @staticmethod
    def _row_to_task(row) -> Task:
        try:
            created_at = datetime.fromisoformat(row[4])
        except (TypeError, ValueError) as e:
            raise StoreError(f"task {row[0]} has a malformed created_at: {row[4]!r}") from e
        return Task(
            id=row[0],
            title=row[1],
            description=row[2],
            owner_id=row[3],
            created_at=created_at,
        )

    def ping(self) -> None:
        """Runs a trivial query so callers can tell whether the database answers."""
        try:
            with self._connect() as conn:
                conn.execute("SELECT 1 FROM tasks LIMIT 1").fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"ping failed: {e}") from e

    def insert(self, task: Task) -> Task:
        try:
            with self._connect() as conn:
                conn.execute(
                    "INSERT INTO tasks (id, title, description, user_id, created_at) VALUES (?, ?, ?, ?, ?)",
                    (task.id, task.title, task.description, task.owner_id, task.created_at.isoformat(timespec="microseconds")),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"insert failed: {e}") from e
        return task

    def find_by_id(self, task_id: str) -> Optional[Task]:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT id, title, description, user_id, created_at FROM tasks WHERE id = ?",
                    (task_id,),
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"lookup failed: {e}") from e
        return self._row_to_task(row) if row else None

    def find_by_owner(self, owner_id: str) -> List[Task]:
        # rowid breaks ties between tasks created within the same microsecond
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    "SELECT id, title, description, user_id, created_at FROM tasks "
                    "WHERE user_id = ? ORDER BY created_at DESC, rowid DESC",
                    (owner_id,),
                ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"query failed: {e}") from e
        return [self._row_to_task(row) for row in rows]

    def delete_by_id(self, task_id: str) -> None:
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
                conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"delete failed: {e}") from e
