import asyncio
import logging
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from domain.entities import User
from domain.errors import StoreError, TaskError
from infrastructure.config import Settings, get_settings
from interfaces.api import get_current_user, open_database, router as task_router, task_error_handler

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "interfaces" / "templates"))


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Task Manager")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.dependency_overrides[get_settings] = lambda: settings
    app.add_exception_handler(TaskError, task_error_handler)
    app.include_router(task_router)

    @app.get("/", response_class=HTMLResponse)
    async def root(
        current_user: Optional[User] = Depends(get_current_user),
        app_settings: Settings = Depends(get_settings),
    ):
        """Redirects to the dashboard if logged in, otherwise to login."""
        if current_user:
            return RedirectResponse(url="/dashboard")
        return RedirectResponse(url=app_settings.login_url)

    @app.get("/dashboard", response_class=HTMLResponse)
    async def dashboard(
        request: Request,
        current_user: Optional[User] = Depends(get_current_user),
        app_settings: Settings = Depends(get_settings),
    ):
        if not current_user:
            return RedirectResponse(url=app_settings.login_url)
        return templates.TemplateResponse(
            request=request, name="dashboard.html", context={"user": current_user}
        )

    @app.get("/logout")
    async def logout(app_settings: Settings = Depends(get_settings)):
        """Logs out the user by clearing the cookie."""
        response = RedirectResponse(url=app_settings.login_url)
        response.delete_cookie("access_token", path="/")
        return response

    @app.get("/health")
    async def health(app_settings: Settings = Depends(get_settings)):
        """Reports whether the task database answers a trivial query."""

        def ping() -> None:
            open_database(app_settings.database_path).ping()

        try:
            await asyncio.to_thread(ping)
        except StoreError as e:
            logger.error(f"Health check failed: {e}")
            return JSONResponse(status_code=503, content={"status": "unavailable"})
        return {"status": "ok"}

    logger.info(f"AUTHENTIK_ISSUER: {settings.authentik_issuer}")
    logger.info(f"JWKS URL: {settings.jwks_url}")
    logger.info(f"Database: {settings.database_path}")
    if not settings.enforce_list_ownership:
        logger.warning("ENFORCE_LIST_OWNERSHIP is off: any caller can list tasks by user id")
    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    run()
