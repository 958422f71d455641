"""
main.py - Main FastAPI Application

This file is the entry point for the backend server.
It creates the FastAPI application, includes the API routes and starts the
background workers that run fact-check jobs.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from datetime import datetime

from .config import get_settings
from .api.deps import get_pipeline
from .api.v1 import fact_checks, health
from .errors import FactCheckError
from dotenv import load_dotenv

# Explicitly load .env file to ensure os.getenv works everywhere
load_dotenv()

# Load settings from .env file
settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create the FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="Queue social media posts for an AI credibility assessment",
    version=settings.VERSION
)

# Add CORS middleware to allow frontend to call the API
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(health.router, prefix=settings.API_V1_STR, tags=["Health"])
app.include_router(fact_checks.router, prefix=settings.API_V1_STR, tags=["Fact Checks"])


@app.exception_handler(FactCheckError)
async def fact_check_error_handler(request: Request, exc: FactCheckError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.get("/")
def root():
    """Root endpoint - returns welcome message."""
    return {
        "message": "Social Post Fact Checker API",
        "version": settings.VERSION,
        "docs": "/docs"
    }


@app.on_event("startup")
async def startup_event():
    """Runs when the application starts."""
    print("=" * 50)
    print(settings.APP_NAME)
    print("=" * 50)
    print(f"Started at: {datetime.now()}")
    recovered = get_pipeline().start()
    print(f"Background workers: {settings.WORKER_COUNT}, recovered pending jobs: {recovered}")
    print("API Documentation: http://localhost:8000/docs")
    print("=" * 50)


@app.on_event("shutdown")
async def shutdown_event():
    """Runs when the application shuts down."""
    print("Shutting down fact-check workers...")
    get_pipeline().stop()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("factcheck.main:app", host="0.0.0.0", port=8000, reload=True)
