"""Jinja2 templates and helpers shared by the HTML routes."""
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

from fastapi import Request
from fastapi.templating import Jinja2Templates

from app.core.config import settings
from app.fleet.reconciler import parse_timestamp

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def wants_json(request: Request) -> bool:
    """Check if the client prefers JSON response (AJAX request)."""
    accept = request.headers.get("accept", "")
    return "application/json" in accept


def local_time(value: datetime | str | None, fmt: str = "%d/%m/%Y %H:%M") -> str:
    """Format a stored UTC timestamp in the display timezone."""
    moment = parse_timestamp(value)
    if moment is None:
        return "-"
    return moment.astimezone(ZoneInfo(settings.display_timezone)).strftime(fmt)


templates.env.filters["local_time"] = local_time
