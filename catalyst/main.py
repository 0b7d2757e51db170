import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from catalyst.core.config import settings
from catalyst.core.database import init_db
from catalyst.core.errors import RateLimited, register_error_handlers
from catalyst.core.ratelimit import RateLimits, limit_general
from catalyst.api import auth, conversations, profile
from catalyst.services.llm import get_llm_provider

logger = logging.getLogger("catalyst")

STARTED_AT = time.monotonic()

ENDPOINTS = [
    "GET /health",
    "GET /api/status",
    "GET /api/user",
    "POST /api/login",
    "POST /api/register",
    "POST /api/logout",
    "GET /api/user/profile",
    "PUT /api/user/profile",
    "GET /api/conversations",
    "POST /api/conversations",
    "DELETE /api/conversations/:id",
    "GET /api/conversations/:id/messages",
    "POST /api/conversations/:id/messages",
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Configure logging based on debug setting
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s" if settings.debug
        else "%(levelname)-8s %(name)s: %(message)s",
    )

    init_db()
    app.state.llm_provider = get_llm_provider()
    logger.info(
        f"{settings.app_name} {settings.version} started "
        f"(environment={settings.environment}, llm={app.state.llm_provider.name})"
    )

    yield

    logger.info("Shutting down")


app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)
app.state.rate_limits = RateLimits()

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.secret_key,
    session_cookie=settings.session_cookie,
    max_age=settings.session_max_age,
    same_site="lax",
    https_only=settings.is_production,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

register_error_handlers(app)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    if request.url.path.startswith("/api"):
        duration = (time.perf_counter() - start) * 1000
        ip = request.client.host if request.client else "unknown"
        line = f"[{request.method}] {request.url.path} - {response.status_code} - {duration:.0f}ms - {ip}"
        if response.status_code >= 500:
            logger.error(line)
        elif response.status_code >= 400:
            logger.warning(line)
        else:
            logger.info(line)
    return response


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and request.url.path.startswith("/api"):
        try:
            limit_general(request)
        except RateLimited as limited:
            return JSONResponse(
                status_code=429,
                content=limited.to_dict(),
                headers={"Retry-After": str(limited.retry_after)},
            )
        return JSONResponse(
            status_code=404,
            content={
                "error": "API endpoint not found",
                "path": request.url.path,
                "method": request.method,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "availableEndpoints": ENDPOINTS,
            },
        )
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=exc.headers)


api_limits = [Depends(limit_general)]
app.include_router(auth.router, prefix="/api", tags=["auth"], dependencies=api_limits)
app.include_router(profile.router, prefix="/api/user", tags=["profile"], dependencies=api_limits)
app.include_router(conversations.router, prefix="/api/conversations", tags=["conversations"], dependencies=api_limits)


@app.get("/health")
async def health():
    uptime = int(time.monotonic() - STARTED_AT)
    return {
        "status": "healthy",
        "app": settings.app_name,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": {
            "seconds": uptime,
            "formatted": f"{uptime // 3600}h {(uptime % 3600) // 60}m {uptime % 60}s",
        },
        "environment": settings.environment,
        "version": settings.version,
        "features": {
            "database": "SQLite (SQLModel)",
            "authentication": "Signed cookie sessions + werkzeug password hashing",
            "ai_provider": settings.llm_provider,
            "security": "CORS + Rate Limiting",
        },
    }


@app.get("/api/status", dependencies=[Depends(limit_general)])
async def status():
    def quota(limit: tuple[int, int]) -> str:
        requests, window = limit
        return f"{requests} requests / {window // 60} minutes"

    return {
        "api": settings.app_name,
        "version": settings.version,
        "status": "operational",
        "endpoints": ENDPOINTS,
        "rateLimit": {
            "general": quota(settings.rate_limit_general),
            "auth": quota(settings.rate_limit_auth),
            "chat": quota(settings.rate_limit_chat),
        },
    }
