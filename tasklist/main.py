import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, load_settings
from .errors import register_exception_handlers
from .routers import auth, tasks
from .store import TaskStore

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, store: Optional[TaskStore] = None) -> FastAPI:
    """Build the backend API.

    The task store is created from ``settings.database_url`` unless one is
    passed in.
    """
    settings = settings or load_settings()
    settings.require("jwt_secret")
    store = store or TaskStore.from_url(settings.database_url)

    app = FastAPI(
        title="Tasklist API",
        description="Multi-user todo list API scoped by bearer token subject",
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(tasks.router, prefix="/api/todos", tags=["tasks"])

    @app.on_event("startup")
    def on_startup():
        store.create_tables()
        logger.info("Backend ready, allowed origins: %s", ", ".join(settings.cors_origins))

    @app.get("/")
    def read_root():
        return {"message": "Tasklist API"}

    @app.get("/health")
    def health_check():
        return {"status": "healthy"}

    return app
