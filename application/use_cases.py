import logging
from typing import List, Optional

from application.ports import TaskStore
from domain.entities import Task, User
from domain.errors import Forbidden, InternalFailure, InvalidInput, NotFound, StoreError, Unauthorized

logger = logging.getLogger(__name__)


class TaskUseCases:
    def __init__(self, store: TaskStore):
        self.store = store

    def list_tasks(self, owner_id: str) -> List[Task]:
        """Returns every task owned by ``owner_id``, newest first."""
        if not owner_id:
            raise InvalidInput("Missing userId")
        try:
            return self.store.find_by_owner(owner_id)
        except StoreError:
            logger.exception(f"Error fetching tasks for {owner_id}")
            raise InternalFailure("Failed to fetch tasks")

    def create_task(self, principal: Optional[User], title: Optional[str], description: Optional[str]) -> Task:
        if principal is None:
            raise Unauthorized()
        title = (title or "").strip()
        description = (description or "").strip()
        if not title or not description:
            raise InvalidInput()
        task = Task(title=title, description=description, owner_id=principal.id)
        try:
            created = self.store.insert(task)
        except StoreError:
            logger.exception("Error creating task")
            raise InternalFailure("Failed to create task")
        logger.info(f"Task {created.id} created by {principal.id}")
        return created

    def delete_task(self, principal: Optional[User], task_id: str) -> None:
        if principal is None:
            raise Unauthorized()
        if not task_id:
            raise InvalidInput("Task ID is required")
        try:
            task = self.store.find_by_id(task_id)
            if task is None:
                raise NotFound()
            if task.owner_id != principal.id:
                logger.warning(f"User {principal.id} tried to delete task {task_id} owned by {task.owner_id}")
                raise Forbidden()
            self.store.delete_by_id(task_id)
        except StoreError:
            logger.exception(f"Error deleting task {task_id}")
            raise InternalFailure("Failed to delete task")
        logger.info(f"Task {task_id} deleted by {principal.id}")
