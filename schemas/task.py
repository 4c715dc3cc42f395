from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from domain.entities import Task


class TaskCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    title: str
    description: str


class TaskResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    description: str
    user_id: str = Field(serialization_alias="userId")
    created_at: datetime = Field(serialization_alias="createdAt")

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            user_id=task.owner_id,
            created_at=task.created_at,
        )


class TaskListResponse(BaseModel):
    tasks: List[TaskResponse]


class TaskCreatedResponse(BaseModel):
    task: TaskResponse


class DeleteResponse(BaseModel):
    success: bool = True
