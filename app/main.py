import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.core.exceptions import AppError
from app.core.logging_setup import configure_logging
from app.database import Database
from app.routes.auth.auth_routes import router as auth_router
from app.routes.auth.user_routes import router as user_router
from app.routes.contest.contest_routes import router as contest_router
from app.routes.contest.admin_routes import router as admin_router
from app.routes.contest.submission_routes import router as submission_router
from app.routes.contest.leaderboard_routes import router as leaderboard_router
from app.routes.payment.payment_routes import router as payment_router
from app.utils.response import error_response, validation_error_response

configure_logging(settings.log_level)
log = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for the application"""
    # Startup; tests attach their own store handle beforehand
    log.info("startup", app=settings.app_name, version=settings.app_version)
    owns_database = getattr(app.state, "database", None) is None
    if owns_database:
        app.state.database = await Database.connect(settings)

    yield
    # Shutdown
    if owns_database:
        app.state.database.close()
        app.state.database = None
    log.info("shutdown")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="SkillSpire API: contests, registrations, submissions and winners",
    lifespan=lifespan
)

cors_origins = [settings.frontend_url, *settings.cors_origins]

# Cookie auth needs explicit origins with credentials
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("x-request-id") or str(uuid.uuid4())
    structlog.contextvars.bind_contextvars(request_id=rid, path=request.url.path, method=request.method)
    try:
        response = await call_next(request)
    finally:
        structlog.contextvars.clear_contextvars()
    response.headers["X-Request-ID"] = rid
    return response


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return error_response(message=exc.message, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = {
        ".".join(str(part) for part in error["loc"] if part != "body"): error["msg"]
        for error in exc.errors()
    }
    return validation_error_response(message="Validation error", errors=errors)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    log.exception("unexpected_error", error=str(exc))
    return error_response(message="Internal server error", status_code=500)


# Include routers
app.include_router(auth_router)
app.include_router(user_router)
app.include_router(admin_router)
app.include_router(contest_router)
app.include_router(payment_router)
app.include_router(submission_router)
app.include_router(leaderboard_router)


@app.get("/")
async def read_root():
    """Root endpoint"""
    return {
        "message": f"{settings.app_name} API Running",
        "version": settings.app_version,
        "docs": "/docs"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}
