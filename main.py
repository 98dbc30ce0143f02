# main.py - Signaling server entry point

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import uvicorn

# Import route modules
from routes.room_management import router as room_router
from routes.participant_management import router as participant_router
from config.settings import LOG_LEVELS, settings, validate_environment
from signaling import SignalingServer, get_signaling_server, signaling_endpoint, signaling_server

logging.basicConfig(
    level=settings.log_level if settings.log_level in LOG_LEVELS else "INFO",
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle app startup and shutdown"""
    # Startup
    logger.info("Starting up video call signaling server")
    try:
        validate_environment()
        logger.info(f"Environment validation passed (rejoin policy: {settings.rejoin_policy})")
    except Exception as e:
        logger.error(f"Environment validation failed: {e}")
        raise

    yield

    # Shutdown
    logger.info("Shutting down video call signaling server")
    try:
        await signaling_server.connections.close_all()
        logger.info("Connection writers stopped")
    except Exception as e:
        logger.warning(f"Error closing connections: {e}")

app = FastAPI(
    title="Video Call Signaling Server",
    description="Room membership and WebRTC signaling relay for mesh video calls",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials="*" not in settings.allowed_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# Include routers
app.include_router(room_router, prefix="/api", tags=["Room Management"])
app.include_router(participant_router, prefix="/api", tags=["Participant Management"])
app.add_api_websocket_route("/ws", signaling_endpoint)

@app.get("/")
async def root():
    return {
        "activeStatus": True,
        "error": False,
        "message": "Video call server is running.",
        "status": "running",
        "version": "1.0.0",
        "endpoints": {
            "signaling": "/ws",
            "list_rooms": "/api/rooms",
            "room_info": "/api/room/{room_id}",
            "participants": "/api/room/{room_id}/participants",
            "health": "/health"
        }
    }

@app.get("/health")
async def health_check(server: SignalingServer = Depends(get_signaling_server)):
    return {
        "status": "healthy",
        "active_connections": len(server.connections),
        "active_rooms": len(server.store),
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

if __name__ == "__main__":
    validate_environment()
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
        access_log=True,
        # room state lives in this process, so a single worker
        workers=1,
    )
