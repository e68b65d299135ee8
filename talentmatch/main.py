# talentmatch/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from talentmatch.core.config import Settings, settings as default_settings
from talentmatch.core.errors import TalentMatchError
from talentmatch.core.logging import configure_logging
from talentmatch.container import Container, build_container
from talentmatch.db.session import create_all

# Routers
from talentmatch.api.routes import router as api_router
from talentmatch.api.candidate_routes import router as candidate_router
from talentmatch.api.job_routes import router as job_router
from talentmatch.api.search_routes import router as search_router
from talentmatch.api.bookmark_routes import router as bookmark_router
from talentmatch.api.call_routes import router as call_router

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, container: Container | None = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)
    container = container or build_container(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Ensure tables exist (schema changes go through alembic)
        await create_all(container.engine)
        if settings.CALL_SCHEDULER_ENABLED:
            container.scheduler.start()
        yield
        await container.scheduler.stop()
        await container.engine.dispose()

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app.state.container = container

    # Root -> redirect to Swagger UI
    @app.get("/", include_in_schema=False)
    def root():
        return RedirectResponse(url="/docs")

    @app.exception_handler(TalentMatchError)
    async def talentmatch_error_handler(request: Request, exc: TalentMatchError):
        if exc.status_code >= 500:
            logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.code, "message": exc.message})

    # CORS
    origins = [o.strip() for o in settings.BACKEND_CORS_ORIGINS.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # API routes
    app.include_router(api_router)        # /health, /auth/register, /auth/login
    app.include_router(candidate_router)  # /candidates/*
    app.include_router(job_router)        # /jobs/*
    app.include_router(search_router)     # /search/*
    app.include_router(bookmark_router)   # /bookmarks/*
    app.include_router(call_router)       # /calls/*

    return app


app = create_app()
