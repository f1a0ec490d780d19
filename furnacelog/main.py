"""Main FastAPI application for the FurnaceLog scheduling and history service."""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from furnacelog import __version__
from furnacelog.db.init import init_db
from furnacelog.errors import FurnaceLogError, create_error_response
from furnacelog.middleware.cors import add_cors_middleware
from furnacelog.routers import homes_router, maintenance_router, schedule_router, timeline_router, weather_router
from furnacelog.utils.metrics import metrics_collector

logger = logging.getLogger(__name__)

# Create FastAPI application
app = FastAPI(
    title="FurnaceLog API",
    description="Maintenance scheduling and climate history for homes in the North",
    version=__version__,
)

# Add CORS middleware
add_cors_middleware(app)


@app.exception_handler(FurnaceLogError)
async def furnacelog_error_handler(request: Request, exc: FurnaceLogError):
    return JSONResponse(status_code=exc.status_code, content=create_error_response(exc))


@app.on_event("startup")
async def startup_event():
    """Initialize database on startup."""
    try:
        init_db()
        logger.info("[SUCCESS] Database tables initialized successfully.")
    except Exception as e:
        logger.warning(f"[WARNING] Database initialization failed: {str(e)}")
        logger.warning("[WARNING] Server will continue but database operations may fail.")


@app.get("/health")
async def health_check():
    """Health check endpoint with scheduling metrics."""
    return {"status": "healthy", "version": __version__, "metrics": metrics_collector.get_metrics()}


@app.get("/")
async def root():
    """Root endpoint - API welcome message."""
    return {
        "message": "Welcome to the FurnaceLog API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }


app.include_router(homes_router, prefix="/api")  # /api/homes
app.include_router(schedule_router, prefix="/api")  # /api/homes/{home_id}/schedule
app.include_router(maintenance_router, prefix="/api")  # /api/homes/{home_id}/logs
app.include_router(timeline_router, prefix="/api")  # /api/timeline/{home_id}
app.include_router(weather_router, prefix="/api")  # /api/weather/{community}/observations

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "furnacelog.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
