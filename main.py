"""
Mindful Reflections entry point
Starts the FastAPI app serving the journaling API
"""

from fastapi import FastAPI
from mindful_reflections.api.routes import router
from mindful_reflections.services.reflection_service import create_session
from mindful_reflections.utils.config import settings
from mindful_reflections.utils.logger import logger

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug
)
app.include_router(router)


@app.on_event("startup")
async def startup_event():
    """Create the reflection session"""
    if getattr(app.state, "reflection_session", None) is None:
        app.state.reflection_session = create_session()
    session = app.state.reflection_session
    logger.info(f"{settings.app_name} v{settings.app_version} started")
    logger.info(f"Database path: {session.storage.db.db_path}")
    if not session.ai_enabled:
        logger.warning("LLM API key not configured, AI features are disabled")


@app.on_event("shutdown")
async def shutdown_event():
    """Close the reflection session"""
    session = getattr(app.state, "reflection_session", None)
    if session is not None:
        session.close()
        app.state.reflection_session = None
    logger.info(f"{settings.app_name} stopped")


@app.get("/")
async def root():
    """App information"""
    return {
        "app_name": settings.app_name,
        "version": settings.app_version,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check"""
    return {"status": "healthy", "code": 0}


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting server: {settings.host}:{settings.port}")
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
