"""
Compliance Deadline API
Main application entry point.

Generates bounded series of recurring compliance deadlines from templates
for the people and structures of an organization, and tracks their
completion, rescheduling and cancellation.
"""

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.routes import build_generator, router
from src.utils.config import get_api_config
from src.utils.errors import ServiceError
from src.utils.logger import setup_logging

# Load environment variables
load_dotenv(override=True)

# Setup logging
logger = setup_logging()

# Load API configuration
api_config = get_api_config()

# Create FastAPI application
app = FastAPI(
    title=api_config['api']['title'],
    description=api_config['api']['description'],
    version=api_config['api']['version'],
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
cors_config = api_config.get('cors', {})
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_config.get('allow_origins', ["*"]),
    allow_credentials=True,
    allow_methods=cors_config.get('allow_methods', ["*"]),
    allow_headers=cors_config.get('allow_headers', ["*"]),
)

# Include API routes
app.include_router(router, prefix=api_config['api']['prefix'])


@app.on_event("startup")
async def startup_event():
    """Validate and log the effective configuration on startup."""
    logger.info("Starting Compliance Deadline API...")
    logger.info(f"API Version: {api_config['api']['version']}")
    try:
        generator = build_generator()
    except (ValueError, ServiceError) as e:
        logger.error(f"Invalid recurrence settings: {e}")
        raise
    logger.info(
        f"Recurrence lookahead cap: {generator.cap}, grouping: {generator.grouping.value}"
    )
    port = api_config.get('server', {}).get('port', 8000)
    logger.info(f"Docs available at: http://localhost:{port}/docs")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    logger.info("Shutting down Compliance Deadline API...")


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": api_config['api']['title'],
        "version": api_config['api']['version'],
        "description": api_config['api']['description'],
        "docs": "/docs",
        "health": f"{api_config['api']['prefix']}/health"
    }
