"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from brewlog.config import get_settings
from brewlog.api import (
    backups,
    clones,
    collections,
    drafts,
    exports,
    recipes,
)
from brewlog.services.errors import RecipeValidationError

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Brewlog",
    description="Coffee brewing recipe tracker",
    version=settings.APP_VERSION,
)

# CORS configuration from environment
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RecipeValidationError)
async def recipe_validation_error_handler(request: Request, exc: RecipeValidationError):
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Validation failed",
            "errors": [{"field": path, "message": message} for path, message in exc.errors],
        },
    )


# Include routers
app.include_router(recipes.router, prefix="/api")
app.include_router(clones.router, prefix="/api")
app.include_router(collections.router, prefix="/api")
app.include_router(exports.router, prefix="/api")
app.include_router(backups.router, prefix="/api")
app.include_router(drafts.router, prefix="/api")


@app.get("/health")
@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": settings.APP_VERSION}


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Brewlog API", "docs": "/docs"}
