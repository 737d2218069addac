# main.py

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import os
import logging
import uvicorn

from config.settings import (
    get_allowed_origins, get_log_level, get_signaling_settings, is_production, validate_environment,
)
from routes.status import router as status_router
from signaling import SignalingService, signaling_endpoint

logging.basicConfig(
    level=getattr(logging, get_log_level(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the signaling service on startup and close its connections on shutdown"""
    logger.info("Starting up call signaling server")
    try:
        validate_environment()
        logger.info("Environment validation passed")
    except Exception as e:
        logger.error(f"Environment validation failed: {e}")
        raise

    settings = get_signaling_settings()
    app.state.signaling = SignalingService(settings=settings)
    logger.info(f"Signaling service ready (strict_mode={settings.strict_mode})")

    yield

    logger.info("Shutting down call signaling server")
    await app.state.signaling.close()

app = FastAPI(
    title="Call Signaling Server",
    description="Room membership and WebRTC call signaling relay",
    version="1.0.0",
    lifespan=lifespan,
    docs_url=None if is_production() else "/docs",
    redoc_url=None if is_production() else "/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(status_router, tags=["Status"])

@app.websocket("/ws")
async def websocket_route(websocket: WebSocket):
    await signaling_endpoint(websocket, websocket.app.state.signaling)

@app.get("/")
async def root():
    return {
        "message": "Call Signaling Server",
        "status": "running",
        "version": "1.0.0",
        "environment": os.getenv("ENVIRONMENT", "development"),
        "endpoints": {
            "websocket": "/ws",
            "status": "/status",
            "rooms": "/rooms",
            "room_info": "/rooms/{room_id}",
            "health": "/health"
        }
    }

@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "environment": os.getenv("ENVIRONMENT", "development"),
    }

@app.exception_handler(500)
async def internal_server_error_handler(request, exc):
    logger.error(f"Internal server error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": "An unexpected error occurred"
        }
    )

@app.exception_handler(404)
async def not_found_handler(request, exc):
    return JSONResponse(
        status_code=404,
        content={
            "error": "Not found",
            "message": getattr(exc, "detail", None) or "The requested resource does not exist",
            "available_endpoints": [
                "/ws",
                "/status",
                "/rooms",
                "/rooms/{room_id}",
                "/health"
            ]
        }
    )

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", 10000)),
        reload=False,
        log_level=get_log_level().lower(),
        access_log=True,
    )
