import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import HTMLResponse, PlainTextResponse
from jinja2 import TemplateNotFound

router = APIRouter(tags=["pages"])

logger = logging.getLogger(__name__)

INDEX_TEMPLATE = "index.html"


@router.get("/", response_class=HTMLResponse)
def index(request: Request):
    """Landing page: a small browser client for the /users API."""
    templates = request.app.state.templates
    try:
        return templates.TemplateResponse(request, INDEX_TEMPLATE)
    except (TemplateNotFound, OSError) as exc:
        logger.error("Failed to load template %s: %s", INDEX_TEMPLATE, exc)
        return PlainTextResponse(
            f"Failed to load template: {exc}",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
