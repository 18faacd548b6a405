"""FastAPI main application for the Kaboom game backend"""

import logging
from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from .websocket_server import game_manager

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Kaboom Card Game API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
async def root():
    return {"message": "Kaboom Card Game API", "version": "1.0.0"}

@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "rooms": len(game_manager.engine.rooms),
        "connections": len(game_manager.connection_manager.active_connections),
    }

@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    await game_manager.handle_websocket(websocket)
