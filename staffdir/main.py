import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool
from fastapi.templating import Jinja2Templates
from sqlalchemy.engine import Engine

from .config import Settings, get_settings
from .database import build_engine, build_session_factory, wait_for_database
from .errors import register_exception_handlers
from .routes import pages as pages_routes
from .routes import users as users_routes

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[Engine] = None,
    template_dir: Optional[Path] = None,
) -> FastAPI:
    """Build the application around an explicitly constructed engine.

    Pass ``engine`` to run against an existing pool (tests do this); otherwise
    one is built from ``settings.resolved_database_url`` and disposed on
    shutdown.
    """
    settings = settings or get_settings()
    owns_engine = engine is None
    if engine is None:
        engine = build_engine(settings.resolved_database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Refuse to serve traffic until the database answers.
        await run_in_threadpool(wait_for_database, app.state.engine)
        yield
        if owns_engine:
            app.state.engine.dispose()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)

    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.templates = Jinja2Templates(directory=str(template_dir or TEMPLATE_DIR))
    app.state.templates.env.globals["app_name"] = settings.app_name

    register_exception_handlers(app)

    app.include_router(pages_routes.router)
    app.include_router(users_routes.router)

    return app


def run() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    import uvicorn

    # uvicorn exits non-zero if the lifespan startup check fails.
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
