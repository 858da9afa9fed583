"""FastAPI web dashboard application."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates

from ..config import Config
from ..sync import (
    BusyError,
    SyncController,
    SyncError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Template directory
TEMPLATE_DIR = Path(__file__).parent / "templates"

# Fields offered by the add-event form, in display order
FORM_FIELDS = ("title", "date", "location", "description")


def _error_status(error: SyncError) -> int:
    """HTTP status used by the JSON API for a sync error."""
    if isinstance(error, BusyError):
        return 409
    if isinstance(error, ValidationError):
        return 422
    return 502


def _form_payload(form: Any) -> dict[str, str]:
    """Build a submit payload from form data, dropping blank optional fields."""
    payload = {}
    for name in FORM_FIELDS:
        value = str(form.get(name, "")).strip()
        if value or name == "title":
            payload[name] = value
    return payload


def create_app(config: Config, controller: SyncController) -> FastAPI:
    """Create the FastAPI dashboard application.

    Args:
        config: Application configuration.
        controller: Sync controller serving the event collection.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="Eventboard",
        description="Browse, filter and add events",
        version="0.1.0",
    )

    # Store references for route handlers
    app.state.config = config
    app.state.controller = controller

    # Set up Jinja2 templates
    templates = Jinja2Templates(directory=str(TEMPLATE_DIR))

    def render_grid(request: Request, query: str):
        view = controller.view(query)
        return templates.TemplateResponse(
            request,
            "partials/event_grid.html",
            {"view": view},
        )

    def render_form(
        request: Request,
        values: dict[str, str] | None = None,
        error: str | None = None,
    ):
        return templates.TemplateResponse(
            request,
            "partials/add_form.html",
            {"values": values or {}, "error": error},
        )

    # ==================== HTML Routes ====================

    @app.get("/", response_class=HTMLResponse)
    async def index(request: Request, query: str = ""):
        """Main page: search bar, add button and event grid."""
        context = {
            "title": config.dashboard.title,
            "query": query,
            # Snapshot only; the grid loads itself over HTMX
            "view": controller.view(query),
        }
        return templates.TemplateResponse(request, "index.html", context)

    # ==================== HTMX Partials ====================

    @app.get("/htmx/events", response_class=HTMLResponse)
    async def htmx_events(request: Request, query: str = ""):
        """HTMX partial for the filtered event grid."""
        await controller.load()
        return render_grid(request, query)

    @app.post("/htmx/events/refresh", response_class=HTMLResponse)
    async def htmx_refresh(request: Request):
        """Refetch the collection, e.g. after an error."""
        form = await request.form()
        await controller.refetch()
        return render_grid(request, str(form.get("query", "")))

    @app.get("/htmx/add-form", response_class=HTMLResponse)
    async def htmx_add_form(request: Request):
        """HTMX partial for the add-event popup."""
        return render_form(request)

    @app.post("/htmx/events", response_class=HTMLResponse)
    async def htmx_add_event(request: Request):
        """Submit the add-event form.

        On success the popup is closed and the grid is told to reload via
        the ``eventsChanged`` trigger. On failure the form stays open with
        the entered values and the error.
        """
        form = await request.form()
        payload = _form_payload(form)

        result = await controller.submit_event(payload)
        if not result.ok:
            logger.debug(f"Keeping add form open: {result.error.kind}")
            return render_form(request, values=payload, error=result.error.describe())

        return HTMLResponse("", headers={"HX-Trigger": "eventsChanged"})

    # ==================== API Routes (JSON) ====================

    @app.get("/api/events")
    async def api_events(query: str = "") -> dict[str, Any]:
        """Get the filtered event view as JSON."""
        view = await controller.get_view(query)
        return view.to_dict()

    @app.post("/api/events")
    async def api_add_event(payload: dict[str, Any]):
        """Submit a new event as JSON."""
        result = await controller.submit_event(payload)
        if not result.ok:
            return JSONResponse(
                status_code=_error_status(result.error),
                content={
                    "error": {
                        "kind": result.error.kind,
                        "message": result.error.describe(),
                    }
                },
            )
        return JSONResponse(status_code=201, content=result.value.to_dict())

    @app.get("/api/health")
    async def api_health() -> dict[str, Any]:
        """Health check endpoint for monitoring.

        Always returns 200 OK; the cache status tells whether the remote
        service has been reachable.
        """
        view = controller.view()
        pending = controller.pending_write

        return {
            "status": "ok",
            "timestamp": datetime.now().isoformat(),
            "components": {
                "remote": controller.transport.base_url,
                "cache_status": view.status.value,
                "cache_version": view.version,
                "cached_events": view.total,
                "cache_error": view.error.describe() if view.error else None,
                "pending_write": pending.status.value if pending else None,
            },
        }

    return app
