import logging
from datetime import datetime

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import APP_ENV, APP_VERSION, CORS_ORIGINS, LOG_LEVEL, MIN_APP_VERSION
from .database import create_tables
from .errors import register_exception_handlers
from .middleware import client_detection, require_min_version
from .routers import auth, conversations, notebooks, sources

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Studium AI API",
    description="Notebooks with uploaded sources and an assistant that answers from them",
    version=APP_VERSION,
)

register_exception_handlers(app)

# Configure CORS (any localhost port is accepted while developing)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?" if APP_ENV == "development" else None,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "X-Requested-With",
        "X-Client-Type",
        "X-App-Version",
        "X-Device-ID",
    ],
    expose_headers=["X-Total-Count", "X-Page-Count"],
    max_age=86400,
)
app.middleware("http")(client_detection)

api_dependencies = [Depends(require_min_version(MIN_APP_VERSION))] if MIN_APP_VERSION else []

# Include routers under /api/v1 and the legacy /api alias
for prefix, in_schema in (("/api/v1", True), ("/api", False)):
    app.include_router(
        auth.router,
        prefix=f"{prefix}/auth",
        tags=["auth"],
        dependencies=api_dependencies,
        include_in_schema=in_schema,
    )
    app.include_router(
        notebooks.router,
        prefix=f"{prefix}/notebooks",
        tags=["notebooks"],
        dependencies=api_dependencies,
        include_in_schema=in_schema,
    )
    app.include_router(
        sources.router,
        prefix=prefix,
        tags=["sources"],
        dependencies=api_dependencies,
        include_in_schema=in_schema,
    )
    app.include_router(
        conversations.router,
        prefix=prefix,
        tags=["conversations"],
        dependencies=api_dependencies,
        include_in_schema=in_schema,
    )

# Create tables on startup
@app.on_event("startup")
def on_startup():
    create_tables()
    logger.info("Studium API %s started (%s)", APP_VERSION, APP_ENV)

@app.get("/")
def read_root():
    return {"message": "Studium AI API"}

@app.get("/api/health")
def health_check():
    return {
        "status": "ok",
        "message": "Server is running",
        "version": APP_VERSION,
        "timestamp": datetime.utcnow().isoformat(),
    }

@app.get("/api/version")
def api_version():
    return {
        "version": APP_VERSION,
        "apiVersions": ["v1"],
        "supportedPlatforms": ["web", "ios", "android", "tablet"],
    }
