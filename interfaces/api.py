import asyncio
import logging
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from application.ports import AuthProvider
from application.use_cases import TaskUseCases
from domain.entities import User
from domain.errors import (
    AuthProviderError,
    AuthUnavailable,
    Forbidden,
    InternalFailure,
    InvalidInput,
    StoreError,
    TaskError,
    Unauthorized,
)
from infrastructure.auth import AuthentikProvider
from infrastructure.config import Settings, get_settings
from infrastructure.database import Database
from schemas.task import DeleteResponse, TaskCreate, TaskCreatedResponse, TaskListResponse, TaskResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache
def open_database(path: str) -> Database:
    return Database(path)


@lru_cache
def _auth_provider(settings: Settings) -> AuthentikProvider:
    return AuthentikProvider(settings)


def get_use_cases(settings: Settings = Depends(get_settings)) -> TaskUseCases:
    try:
        store = open_database(settings.database_path)
    except StoreError:
        logger.exception(f"Could not open task database {settings.database_path}")
        raise InternalFailure("Task store unavailable")
    return TaskUseCases(store)


def get_auth_provider(settings: Settings = Depends(get_settings)) -> AuthProvider:
    return _auth_provider(settings)


async def resolve_principal(request: Request, provider: AuthProvider) -> Optional[User]:
    try:
        return await provider.get_current_user(request)
    except AuthProviderError as e:
        logger.error(f"Could not resolve principal: {e}")
        raise AuthUnavailable()


async def get_current_user(
    request: Request, provider: AuthProvider = Depends(get_auth_provider)
) -> Optional[User]:
    """Principal for the request, or None when unauthenticated."""
    return await resolve_principal(request, provider)


async def task_error_handler(request: Request, exc: TaskError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def _parse_task_create(request: Request) -> TaskCreate:
    try:
        body = await request.json()
    except ValueError:
        raise InvalidInput("Request body must be JSON")
    try:
        return TaskCreate.model_validate(body)
    except ValidationError as e:
        logger.debug(f"Rejected task payload: {e.errors()}")
        raise InvalidInput()


@router.get("/tasks", response_model=TaskListResponse)
async def list_tasks(
    request: Request,
    user_id: Optional[str] = Query(default=None, alias="userId"),
    settings: Settings = Depends(get_settings),
    provider: AuthProvider = Depends(get_auth_provider),
    use_cases: TaskUseCases = Depends(get_use_cases),
):
    if not user_id:
        raise InvalidInput("Missing userId")
    if settings.enforce_list_ownership:
        principal = await resolve_principal(request, provider)
        if principal is None:
            raise Unauthorized()
        if principal.id != user_id:
            raise Forbidden("Forbidden: You can only list your own tasks")
    tasks = await asyncio.to_thread(use_cases.list_tasks, user_id)
    content = TaskListResponse(tasks=[TaskResponse.from_task(task) for task in tasks])
    return JSONResponse(content=content.model_dump(mode="json", by_alias=True))


@router.post("/tasks", status_code=201, response_model=TaskCreatedResponse)
async def create_task(
    request: Request,
    principal: Optional[User] = Depends(get_current_user),
    use_cases: TaskUseCases = Depends(get_use_cases),
):
    if principal is None:
        raise Unauthorized()
    payload = await _parse_task_create(request)
    task = await asyncio.to_thread(use_cases.create_task, principal, payload.title, payload.description)
    content = TaskCreatedResponse(task=TaskResponse.from_task(task))
    return JSONResponse(status_code=201, content=content.model_dump(mode="json", by_alias=True))


@router.delete("/tasks", response_model=DeleteResponse)
async def delete_task(
    task_id: Optional[str] = Query(default=None, alias="id"),
    principal: Optional[User] = Depends(get_current_user),
    use_cases: TaskUseCases = Depends(get_use_cases),
):
    if principal is None:
        raise Unauthorized()
    if not task_id:
        raise InvalidInput("Task ID is required")
    await asyncio.to_thread(use_cases.delete_task, principal, task_id)
    return DeleteResponse()
