"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from epubflow.config import settings
from epubflow.api.v1.routes import upload, workflow

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(
        "%s starting: provider=%s, model=%s",
        settings.app_name, settings.llm_provider, settings.llm_model,
    )
    if not settings.get_api_key():
        logger.warning("No API key configured for provider %s", settings.llm_provider)
    yield


app = FastAPI(
    title=settings.app_name,
    description="EPUB translation workflow with LLM support",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(upload.router, prefix="/api/v1", tags=["upload"])
app.include_router(workflow.router, prefix="/api/v1", tags=["workflow"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "EPUB Flow Translator API", "version": "0.1.0"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("epubflow.main:app", host=settings.host, port=settings.port, reload=settings.debug)
