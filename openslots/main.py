"""FastAPI application entry point."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .routes import catalog, ingest, sources
from .utils.logger import logger

# Create FastAPI app
app = FastAPI(
    title="OpenSlots API",
    description="Ingests public gym schedule PDFs into searchable open-use slots",
    version="1.0.0",
    debug=settings.debug,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify actual origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(ingest.router)
app.include_router(sources.router)
app.include_router(catalog.router)


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint.

    Returns:
        Health status
    """
    return {"status": "healthy", "service": "openslots"}


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint.

    Returns:
        Welcome message
    """
    return {
        "message": "OpenSlots API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }


# Startup event
@app.on_event("startup")
async def startup_event():
    """Run on application startup."""
    logger.info("Starting OpenSlots API")
    logger.info(f"Storage path: {settings.storage_path}")
    logger.info(f"Slot extractor: {settings.slot_extractor} (provider: {settings.llm_provider})")
    logger.info(f"Debug mode: {settings.debug}")


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    """Run on application shutdown."""
    logger.info("Shutting down OpenSlots API")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "openslots.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="info",
    )
