import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.docs import get_swagger_ui_html

from app.core.config import settings
from app.core.error_handlers import register_error_handlers
from app.core.observability import setup_logging
from app.routers import auth, families, health, invitations, locations

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.log_level, settings.log_format)
    logger.info("Family Locator API started")
    yield
    logger.info("Family Locator API shutting down")


app = FastAPI(
    title="Family Locator API",
    version="1.0.0",
    description="API for family membership, invitations, and location sharing between family members.",
    # We proxy the API under /api at the edge. Swagger needs a fixed openapi URL
    # that includes this prefix; we provide a custom /docs route below.
    docs_url=None,
    root_path=settings.root_path,
    lifespan=lifespan,
)

# Custom Swagger UI that points at the externally reachable OpenAPI URL.
@app.get("/docs", include_in_schema=False)
def swagger_ui():
    prefix = (settings.root_path or "").rstrip("/")
    openapi_url = f"{prefix}{app.openapi_url}"
    return get_swagger_ui_html(openapi_url=openapi_url, title=f"{app.title} - Docs")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(families.router)
app.include_router(invitations.router)
app.include_router(locations.router)
