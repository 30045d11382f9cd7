import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.ext.asyncio import async_sessionmaker

from omnia.core.config import settings
from omnia.core.errors import OmniaError, omnia_error_handler
from omnia.core.gate import access_gate
from omnia.core.security import CookieSessionVerifier, SessionVerifier
from omnia.db.session import AsyncSessionLocal
from omnia.routes import admin, auth, delivery, results
from omnia.services.delivery import SessionManager
from omnia.services.storage import LocalObjectStorage, ObjectStorage
from omnia.websocket import router as websocket

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(
    session_factory: Optional[async_sessionmaker] = None,
    storage: Optional[ObjectStorage] = None,
    session_verifier: Optional[SessionVerifier] = None,
    tick_seconds: float = settings.TIMER_TICK_SECONDS,
) -> FastAPI:
    session_manager = SessionManager(session_factory or AsyncSessionLocal, tick_seconds=tick_seconds)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        logger.info("Stopping live exam sessions")
        await session_manager.shutdown()

    app = FastAPI(title="Omnia Exams API", lifespan=lifespan)
    app.state.session_manager = session_manager
    app.state.storage = storage or LocalObjectStorage()
    app.state.session_verifier = session_verifier or CookieSessionVerifier()

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=settings.CORS_ORIGINS != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(access_gate)
    app.add_exception_handler(OmniaError, omnia_error_handler)

    # Include routers
    app.include_router(auth.router, prefix="/api", tags=["auth"])
    app.include_router(admin.router, prefix="/api", tags=["admin"])
    app.include_router(delivery.router, prefix="/api", tags=["delivery"])
    app.include_router(results.router, prefix="/api", tags=["results"])
    app.include_router(websocket.router, tags=["websocket"])
    app.mount(settings.MEDIA_URL, StaticFiles(directory=settings.MEDIA_ROOT, check_dir=False), name="media")

    @app.get("/health", tags=["health"])
    async def health_check():
        return {"status": "healthy", "service": "omnia-exams"}

    @app.get("/login", tags=["auth"])
    async def login_page():
        return {"login": "/api/auth/login"}

    @app.get("/admin", tags=["admin"])
    async def admin_home():
        return {
            "question_sets": "/api/admin/question-sets",
            "new_exam": "/api/admin/exams",
            "exams": "/api/admin/exams",
        }

    return app


app = create_app()
