"""
# Blog Platform - Main Application Module

Entry point of the Blog Platform FastAPI application.

## Startup and Shutdown

The `lifespan()` context manager:

1.  Configures logging.
2.  Connects to MongoDB (with retries, see `DatabaseManager.connect`).
3.  Creates the indexes that back username, email and category name uniqueness.
4.  On shutdown, disconnects from MongoDB.

## Request Pipeline

*   **CORS**: origins from `CORS_ORIGINS`.
*   **Request logging**: method, path, status and duration of every request.
*   **Error mapping**: every `BlogPlatformError` is rendered as
    `{"success": false, "error": {"code", "message", "details"}}` with its HTTP status.
    401 responses include `WWW-Authenticate: Bearer`.
*   **Metrics**: Prometheus instrumentation exposed at `/metrics`.

## Routers

| Router | Prefix |
|--------|--------|
| Authentication | `/auth` |
| Posts and comments | `/posts` |
| Categories | `/categories` |

## Running

```bash
uvicorn blog_platform.main:app --host 0.0.0.0 --port 8000
```
"""

from contextlib import asynccontextmanager
import time

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from blog_platform.config import settings
from blog_platform.database import DatabaseManager, db_manager
from blog_platform.managers.logging_manager import get_logger, setup_logging
from blog_platform.routes.auth import router as auth_router
from blog_platform.routes.blog import router as posts_router
from blog_platform.routes.categories import router as categories_router
from blog_platform.utils.errors import BlogPlatformError
from blog_platform.utils.logging_utils import RequestLoggingMiddleware, log_application_lifecycle

setup_logging()
logger = get_logger(prefix="[Main]")

APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Connect to MongoDB and ensure indexes before serving; disconnect on shutdown.

    Raises:
        ServerSelectionTimeoutError: MongoDB could not be reached after all retries.
    """
    startup_start_time = time.time()
    log_application_lifecycle(
        "startup_initiated",
        {
            "app_name": settings.APP_NAME,
            "version": APP_VERSION,
            "environment": "production" if settings.is_production else "development",
            "debug_mode": settings.DEBUG,
        },
    )

    db_connect_start = time.time()
    await db_manager.connect()
    log_application_lifecycle(
        "database_connected",
        {
            "connection_duration": f"{time.time() - db_connect_start:.3f}s",
            "database_name": settings.MONGODB_DATABASE,
            "connection_url": (
                settings.MONGODB_URL.split("@")[-1] if "@" in settings.MONGODB_URL else settings.MONGODB_URL
            ),
        },
    )

    indexes_start = time.time()
    await db_manager.create_indexes()
    log_application_lifecycle("database_indexes_ready", {"indexes_duration": f"{time.time() - indexes_start:.3f}s"})

    log_application_lifecycle("startup_completed", {"startup_duration": f"{time.time() - startup_start_time:.3f}s"})

    yield

    shutdown_start_time = time.time()
    log_application_lifecycle("shutdown_initiated")
    await db_manager.disconnect()
    log_application_lifecycle("shutdown_completed", {"shutdown_duration": f"{time.time() - shutdown_start_time:.3f}s"})


app = FastAPI(
    title=settings.APP_NAME,
    description="""
    ## Blog Platform API

    Users register, log in with a bearer token, write posts filed under categories and
    tags, and comment on each other's posts.

    ### Access Rules
    - Anyone can read posts, comments and categories
    - Any logged-in user can create posts and comment
    - Only a post's author or an admin can edit or delete it
    - Only admins manage categories and accounts
    """,
    version=APP_VERSION,
    lifespan=lifespan,
    redirect_slashes=False,
    openapi_tags=[
        {"name": "Authentication", "description": "Registration, login and profile management"},
        {"name": "Posts", "description": "Posts and their comments"},
        {"name": "Categories", "description": "Post categories"},
        {"name": "Health", "description": "Service health"},
    ],
)


@app.exception_handler(BlogPlatformError)
async def blog_platform_error_handler(request: Request, exc: BlogPlatformError):
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    if exc.status_code >= 500:
        logger.error("Unhandled platform error on %s %s: %s", request.method, request.url.path, exc.message)
    else:
        logger.debug("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.to_dict()},
        headers=headers,
    )


def get_database_manager() -> DatabaseManager:
    return db_manager


@app.get("/health", tags=["Health"])
async def health(database: DatabaseManager = Depends(get_database_manager)):
    """Report whether MongoDB answers a ping. Always `200`; check the `database` field."""
    database_ok = await database.health_check()
    return {"status": "healthy" if database_ok else "degraded", "database": database_ok, "version": APP_VERSION}


cors_origins = settings.cors_origins_list
logger.info("Configuring CORS with origins: %s", cors_origins)
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,
)
app.add_middleware(RequestLoggingMiddleware)
log_application_lifecycle(
    "middleware_configured",
    {"middleware": ["CORSMiddleware", "RequestLoggingMiddleware"], "cors_origins": cors_origins},
)

routers_config = [
    ("auth", auth_router, "Registration, login and profile endpoints"),
    ("posts", posts_router, "Post and comment endpoints"),
    ("categories", categories_router, "Category endpoints"),
]
for router_name, router, description in routers_config:
    app.include_router(router)
    logger.info("Included %s router: %s", router_name, description)

log_application_lifecycle("routers_configured", {"routers": [name for name, _, _ in routers_config]})

Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=True,
    should_respect_env_var=False,
).instrument(app).expose(app, include_in_schema=False, endpoint="/metrics")
