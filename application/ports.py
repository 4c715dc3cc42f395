from typing import List, Optional, Protocol

from fastapi import Request

from domain.entities import Task, User


class TaskStore(Protocol):
    """Durable table of tasks keyed by id and queryable by owner."""

    def insert(self, task: Task) -> Task:
        ...

    def find_by_owner(self, owner_id: str) -> List[Task]:
        """Return the owner's tasks, newest first."""
        ...

    def find_by_id(self, task_id: str) -> Optional[Task]:
        ...

    def delete_by_id(self, task_id: str) -> None:
        ...


class AuthProvider(Protocol):
    """Resolves the principal behind a request's credentials."""

    async def get_current_user(self, request: Request) -> Optional[User]:
        ...
