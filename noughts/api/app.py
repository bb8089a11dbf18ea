"""
FastAPI Application - WebSocket game server plus a small HTTP surface.

Endpoints:
    WS     /ws                 Game protocol (one socket per player)
    WS     /                   Same protocol, for clients that connect to the root
    GET    /api/v1/rooms       List live rooms
    GET    /health             Health check
    GET    /                   API info

Game protocol (JSON text frames, `type` discriminator):
    client -> server: createRoom, joinRoom, startGame, makeMove, resetGame, leaveRoom
    server -> client: connected, roomCreated, roomJoined, roomFull, playerJoined,
                      playerLeft, gameStarted, moveMade, gameReset

Malformed frames are dropped and the socket stays open.
"""

from contextlib import asynccontextmanager
from typing import Optional
import asyncio
import logging
import os

from .. import __version__

# Environment configuration
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3001"))
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")
LOG_LEVEL = os.getenv("NOUGHTS_LOG_LEVEL", "INFO").upper()

logger = logging.getLogger(__name__)


def create_app(directory=None):
    """
    Create the FastAPI application.

    Args:
        directory: Optional SessionDirectory (creates a new one if not provided)

    Returns:
        FastAPI application instance
    """
    from fastapi import FastAPI, WebSocket, WebSocketDisconnect
    from fastapi.middleware.cors import CORSMiddleware

    from ..session.manager import SessionDirectory
    from .gateway import ConnectionGateway
    from .schemas import HealthResponse, RoomInfo, RoomListResponse

    session_directory = directory or SessionDirectory()
    gateway = ConnectionGateway(session_directory)

    @asynccontextmanager
    async def lifespan(app):
        try:
            yield
        finally:
            gateway.shutdown()
            logger.info("Server stopped")

    app = FastAPI(
        title="Noughts Multiplayer Server",
        description="Server-authoritative two-player tic-tac-toe over WebSockets.",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.directory = session_directory
    app.state.gateway = gateway

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    async def serve_socket(websocket: WebSocket):
        await websocket.accept()
        connection = gateway.connect()
        writer = asyncio.create_task(gateway.pump(connection, websocket.send_text))

        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                raw: Optional[str | bytes] = message.get("text")
                if raw is None:
                    raw = message.get("bytes")
                if raw is not None:
                    gateway.handle_raw(connection.connection_id, raw)
        except WebSocketDisconnect:
            pass
        except Exception as e:
            logger.warning("Transport error on %s: %s", connection.connection_id, e)
        finally:
            gateway.disconnect(connection.connection_id)
            await writer

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """One player's game connection."""
        await serve_socket(websocket)

    @app.websocket("/")
    async def websocket_root(websocket: WebSocket):
        await serve_socket(websocket)

    # =========================================================================
    # Rooms
    # =========================================================================

    @app.get(
        "/api/v1/rooms",
        response_model=RoomListResponse,
        tags=["Rooms"],
        summary="List live rooms",
    )
    async def list_rooms() -> RoomListResponse:
        rooms = [RoomInfo.model_validate(summary) for summary in session_directory.list_rooms()]
        return RoomListResponse(rooms=rooms, count=len(rooms))

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="noughts-server",
            version=__version__,
            rooms=session_directory.room_count,
            connections=session_directory.connection_count,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Noughts Multiplayer Server",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
            "websocket": "/ws",
        }

    return app


# For running directly: uvicorn noughts.api.app:app
app = create_app()
