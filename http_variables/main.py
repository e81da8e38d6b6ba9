"""
HTTP Variables - FastAPI Application Entry Point

Resolves {{variable}} placeholders in HTTP request text against layered
scopes, executes requests and captures response values for later requests.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .database import init_db
from .exceptions import register_exception_handlers
from .logging_config import setup_logging
from .routers import environments, execute, variables


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown events."""
    setup_logging()
    init_db()
    logger.info("Environment store ready")
    yield


app = FastAPI(
    title="HTTP Variables",
    description="Placeholder resolution and response capture for HTTP request files",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.get("/")
async def root():
    """Root endpoint returning API information."""
    return {
        "name": "HTTP Variables",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


app.include_router(environments.router)
app.include_router(execute.router)
app.include_router(variables.router)
