"""
Markov Text Generation Service
Main application entry point
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from markov_service.api.routers import markov_router
from markov_service.api.routers.markov_router import MODEL_CACHE
from markov_service.config import settings
from markov_service.utils.logger import setup_logger

# Setup logging
logger = setup_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for service initialization"""
    logger.info("[BOOT] Starting Markov service...")
    logger.info(
        f"[BOOT] Defaults: order={settings.MARKOV_DEFAULT_ORDER}, "
        f"max_models={settings.MARKOV_MAX_MODELS}"
    )
    app.state.model_cache = MODEL_CACHE

    try:
        logger.info("[BOOT] Markov service ready!")
        yield
    finally:
        logger.info("[SHUTDOWN] Cleaning up...")
        MODEL_CACHE.clear()
        logger.info("[SHUTDOWN] Markov service stopped")


# Create FastAPI app
app = FastAPI(
    title="Markov Text Service",
    description="Fixed-order Markov chain text generation",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"[ERR] Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "ok": False,
            "error": {
                "code": "MARKOV_SERVICE_ERROR",
                "message": "Internal server error occurred",
                "details": {"type": type(exc).__name__},
            },
        },
    )


# Health check
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "ok": True,
        "data": {
            "status": "healthy",
            "service": settings.SERVICE_NAME,
            "models_loaded": len(MODEL_CACHE),
        },
    }


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "endpoints": {
            "health": "/health",
            "docs": "/docs",
            "markov": "/markov/*",
        },
    }


app.include_router(markov_router.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "markov_service.app:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
