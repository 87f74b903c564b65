"""Server-rendered dashboard page.

Renders the same listing as ``GET /messages`` at request time; the page then
re-fetches ``/messages.json`` every poll interval and offers a clear button.
"""

from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from ..dependencies import Context

TEMPLATES_DIR = Path(__file__).parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

router = APIRouter(tags=["Dashboard"])


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
def index(request: Request, context: Context):
    messages = [record.to_wire() for record in context.store.list_all()]
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "title": "Mongster",
            "messages": messages,
            "poll_interval_ms": int(context.settings.POLL_INTERVAL_SECONDS * 1000),
        },
    )
