"""CardForge - FastAPI app entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException

from cardforge.core.config import BASE_DIR, Settings, get_settings
from cardforge.core.errors import AppError
from cardforge.core.logging import configure_logging
from cardforge.db.base import Base
from cardforge.db.session import make_engine, make_session_factory
from cardforge.routers import api, auth, web
from cardforge.services.generator import ContentGenerator
from cardforge.services.identity import IdentityProvider, JWTIdentityProvider
from cardforge.services.llm import CompletionClient, GroqCompletionClient

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))


def _wants_json(request: Request) -> bool:
    return request.url.path.startswith("/api") or request.url.path == "/health"


def _error_response(request: Request, status_code: int, body: dict, headers=None):
    if _wants_json(request):
        return JSONResponse(body, status_code=status_code, headers=headers)
    return templates.TemplateResponse(
        request,
        "error.html",
        {"current_user": None, "message": body["error"]},
        status_code=status_code,
        headers=headers,
    )


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.details or "-")
    return _error_response(request, exc.status_code, exc.to_body())


def _allowed_methods(request: Request) -> list[str]:
    """Methods of every route whose path matches, not just the first one."""
    path = request.scope["path"]
    methods: set[str] = set()
    for route in request.app.router.routes:
        route_methods = getattr(route, "methods", None)
        if route_methods and route.path_regex.match(path):
            methods |= route_methods
    return sorted(methods)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    headers = dict(getattr(exc, "headers", None) or {})
    if exc.status_code == 405:
        headers["Allow"] = ", ".join(_allowed_methods(request))
    return _error_response(request, exc.status_code, {"error": str(exc.detail)}, headers=headers or None)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    return _error_response(request, 400, {"error": "Invalid request body", "details": str(exc.errors()[:3])})


def create_app(
    settings: Settings | None = None,
    completion_client: CompletionClient | None = None,
    identity_provider: IdentityProvider | None = None,
) -> FastAPI:
    """Build the app with explicitly constructed collaborators."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    engine = make_engine(settings.database_url, echo=settings.debug)
    client = completion_client or GroqCompletionClient(settings.groq_api_key, settings.llm_model)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # create tables (async); Alembic owns real migrations
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        yield
        await engine.dispose()

    app = FastAPI(
        title=settings.app_name,
        description="Topic-driven flashcards, quizzes and progress tracking",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    app.state.generator = ContentGenerator(client, max_attempts=settings.llm_max_attempts)
    app.state.identity_provider = identity_provider or JWTIdentityProvider(settings)

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # Mount static files at /static
    app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")

    app.include_router(web.router)
    app.include_router(auth.router)
    app.include_router(api.router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
