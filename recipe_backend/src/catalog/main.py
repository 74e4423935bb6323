import logging
from contextlib import asynccontextmanager
from typing import List

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .config import configure_logging, get_settings
from .deps import init_db
from .errors import CatalogError
from .recipes import (
    categories_router,
    favorites_router,
    ratings_router,
    recipes_router,
)

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

# App metadata with OpenAPI info and tags
openapi_tags = [
    {"name": "Health", "description": "Service health checks"},
    {"name": "Diagnostics", "description": "Runtime configuration and diagnostics"},
    {"name": "Categories", "description": "Recipe categories"},
    {"name": "Recipes", "description": "Browse, search and publish recipes"},
    {"name": "Favorites", "description": "Manage favorite recipes (protected)"},
    {"name": "Ratings", "description": "Rate recipes from 1 to 5 (protected)"},
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Tables are created on startup; with no DATABASE_URL this is the in-memory fallback
    init_db()
    yield


app = FastAPI(
    title="Recipe Catalog Backend",
    description=(
        "Backend API for the recipe catalog. "
        "Provides endpoints for filtered recipe listings, recipe publishing, favorites and ratings."
    ),
    version="0.1.0",
    openapi_tags=openapi_tags,
    lifespan=lifespan,
)

# Configure CORS. If no explicit origins, allow all for development convenience.
allow_all = not settings.cors_allow_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all else settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    """Render catalog errors with the status code their kind maps to."""
    logger.info("%s %s rejected with %s: %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(categories_router)
app.include_router(recipes_router)
app.include_router(favorites_router)
app.include_router(ratings_router)


# Simple config model to expose limited non-sensitive runtime info if needed
class RuntimeConfig(BaseModel):
    """Non-sensitive runtime configuration values for diagnostics."""
    cors_allow_origins: List[str]
    jwt_algorithm: str
    access_token_expire_minutes: int
    database_configured: bool
    media_url_prefix: str


@app.get("/", summary="Health Check", tags=["Health"])
def health_check():
    """Health check endpoint. Returns a simple JSON indicating service status."""
    return {"message": "Healthy"}


# PUBLIC_INTERFACE
@app.get("/config/runtime", summary="Runtime Config (sanitized)", tags=["Diagnostics"])
def get_runtime_config() -> RuntimeConfig:
    """Return sanitized runtime configuration to aid debugging (no secrets)."""
    return RuntimeConfig(
        cors_allow_origins=settings.cors_allow_origins or ["*"],
        jwt_algorithm=settings.jwt_algorithm,
        access_token_expire_minutes=settings.access_token_expire_minutes,
        database_configured=bool(settings.database_url),
        media_url_prefix=settings.media_url_prefix,
    )
