import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from ...errors import TaskListError
from ..deps import get_auth_state, persist_refreshed_session

logger = logging.getLogger(__name__)

router = APIRouter()

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parents[1] / "templates"))

ERROR_MESSAGES = {
    "load": "Failed to load todos. Is the backend running?",
    "add": "Failed to add todo.",
    "delete": "Failed to delete todo.",
}


def _back_to_list(error: Optional[str] = None) -> RedirectResponse:
    url = f"/?error={error}" if error else "/"
    return RedirectResponse(url=url, status_code=303)


@router.get("/", response_class=HTMLResponse)
async def index(request: Request, error: Optional[str] = None):
    auth = await get_auth_state(request)
    context = {
        "user": None,
        "todos": [],
        "error": ERROR_MESSAGES.get(error) if error else None,
    }

    if auth.session is not None:
        context["user"] = {"id": auth.session.user_id, "email": auth.session.email}
        try:
            context["todos"] = await request.app.state.backend.list_tasks(auth.session.access_token)
        except TaskListError as exc:
            logger.error("Failed to fetch todos: %s", exc.message)
            context["error"] = ERROR_MESSAGES["load"]

    response = templates.TemplateResponse(request, "index.html", context)
    persist_refreshed_session(request, response, auth)
    return response


@router.post("/todos")
async def add_todo(request: Request, text: str = Form("")):
    auth = await get_auth_state(request)
    if auth.session is None:
        return _back_to_list()
    # Don't add empty tasks
    if not text.strip():
        return _back_to_list()

    try:
        await request.app.state.backend.create_task(auth.session.access_token, text)
        response = _back_to_list()
    except TaskListError as exc:
        logger.error("Failed to add todo: %s", exc.message)
        response = _back_to_list("add")
    persist_refreshed_session(request, response, auth)
    return response


@router.post("/todos/{task_id}/delete")
async def delete_todo(request: Request, task_id: int):
    auth = await get_auth_state(request)
    if auth.session is None:
        return _back_to_list()

    try:
        await request.app.state.backend.delete_task(auth.session.access_token, task_id)
        response = _back_to_list()
    except TaskListError as exc:
        logger.error("Failed to delete todo %s: %s", task_id, exc.message)
        response = _back_to_list("delete")
    persist_refreshed_session(request, response, auth)
    return response


@router.get("/auth-error", response_class=HTMLResponse)
def auth_error(request: Request, message: str = "Authentication failed"):
    return templates.TemplateResponse(request, "auth_error.html", {"message": message})
