"""FastAPI backend streaming the particle universe and accepting pointer input."""
from __future__ import annotations

import asyncio
import dataclasses
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Union

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from starlette.websockets import WebSocketState

from .config import DEFAULT_CONFIG, SimConfig
from .integrators import INTEGRATORS
from .logging_setup import setup_logging
from .modifier import MouseAction
from .presets import get_preset, list_presets
from .simulation import Simulation

logger = logging.getLogger(__name__)


# ============================================================================
# Pydantic Models
# ============================================================================

class ConfigUpdate(BaseModel):
    """Update configuration parameters."""
    preset: Optional[str] = None
    # Each step is O(n^2) pure Python and runs inline in the frame loop
    n_particles: Optional[int] = Field(default=None, ge=0, le=500)
    dt: Optional[float] = Field(default=None, gt=0.0)
    gravity: Optional[float] = None
    force_factor: Optional[float] = Field(default=None, ge=0.0)
    integrator: Optional[str] = None
    seed: Optional[int] = None


class PointerUpdate(BaseModel):
    """Pointer snapshot from the input provider; -1, -1 keeps the position."""
    x: float = -1
    y: float = -1
    sign: Optional[int] = Field(default=None, ge=-1, le=1)
    radius: Optional[float] = Field(default=None, gt=0.0)
    action: Optional[MouseAction] = None
    spawn_type: Optional[Union[int, str]] = None


# ============================================================================
# FastAPI App with Lifespan
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    global _simulation_task
    setup_logging()
    logger.info("Starting background simulation task")
    _simulation_task = asyncio.create_task(_simulation_loop())

    yield

    logger.info("Cancelling background simulation task")
    if _simulation_task:
        _simulation_task.cancel()
        try:
            await _simulation_task
        except asyncio.CancelledError:
            pass

app = FastAPI(title="N-body Particle Universe", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global state
_config = DEFAULT_CONFIG
_simulation = Simulation(_config)
_state_lock = asyncio.Lock()
_websocket_clients: set = set()
_simulation_task = None


# ============================================================================
# Background Simulation Task
# ============================================================================

def _state_message() -> Dict[str, Any]:
    return {"type": "state", "payload": _simulation.get_state()}


async def _simulation_loop():
    """Background task that steps simulation and broadcasts to all clients."""
    while True:
        async with _state_lock:
            _simulation.step()
            message = _state_message()

        # Broadcast outside the lock
        dead_clients = set()
        for client in list(_websocket_clients):
            try:
                if client.client_state == WebSocketState.CONNECTED:
                    await client.send_json(message)
                else:
                    dead_clients.add(client)
            except (RuntimeError, WebSocketDisconnect) as exc:
                logger.warning("Dropping client after send failure: %s: %s", type(exc).__name__, exc)
                dead_clients.add(client)

        if dead_clients:
            logger.info("Removing %d dead clients", len(dead_clients))
        _websocket_clients.difference_update(dead_clients)

        await asyncio.sleep(_simulation.config.frame_interval)


# ============================================================================
# Helper Functions
# ============================================================================

def _update_config(config_update: ConfigUpdate) -> SimConfig:
    """Create new config with updates applied."""
    changes = config_update.model_dump(exclude_none=True)
    if "preset" in changes:
        get_preset(changes["preset"])
    if "integrator" in changes and changes["integrator"] not in INTEGRATORS:
        raise ValueError(
            f"Unknown integrator '{changes['integrator']}'. Available: {list(INTEGRATORS.keys())}"
        )
    return dataclasses.replace(_config, **changes)


def _config_payload() -> Dict[str, Any]:
    config = _simulation.config
    return {
        "config": {
            "width": config.width,
            "height": config.height,
            "preset": _simulation.preset.name,
            "particle_count": len(_simulation.universe),
            "dt": config.dt,
            "gravity": config.gravity,
            "force_factor": config.force_factor,
            "integrator": config.integrator,
            "radius_min": config.radius_min,
            "radius_max": config.radius_max,
            "frame_interval": config.frame_interval,
            "seed": config.seed,
        },
        "types": [
            {
                "name": t.name,
                "mass": t.mass,
                "radius": t.radius,
                "exclusion_constant": t.exclusion_constant,
                "dipole_moment": t.dipole_moment,
                "range": t.range,
                "color": list(t.color),
            }
            for t in _simulation.universe.catalog
        ],
    }


def _apply_pointer(update: PointerUpdate) -> None:
    # Resolve the spawn type first so a bad reference leaves the pointer unchanged
    if update.spawn_type is not None:
        _simulation.set_spawn_type(update.spawn_type)
    _simulation.set_pointer(
        x=update.x,
        y=update.y,
        sign=update.sign,
        radius=update.radius,
        action=update.action,
    )


# ============================================================================
# REST Endpoints
# ============================================================================

@app.get("/health")
async def health() -> Dict[str, str]:
    """Health check."""
    return {"status": "ok"}


@app.get("/config")
async def get_config() -> Dict[str, Any]:
    """Get current configuration and particle types."""
    async with _state_lock:
        return _config_payload()


@app.post("/config")
async def update_config(config_update: ConfigUpdate) -> Dict[str, Any]:
    """Update configuration and restart simulation."""
    global _config, _simulation
    async with _state_lock:
        try:
            new_config = _update_config(config_update)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        _config = new_config
        _simulation = Simulation(_config)
        logger.info("Configuration updated: %s", config_update.model_dump(exclude_none=True))
        return _config_payload()


@app.get("/state")
async def get_state() -> Dict[str, Any]:
    """Current particle snapshot with pointer statistics."""
    async with _state_lock:
        return _simulation.get_state()


@app.post("/pointer")
async def update_pointer(update: PointerUpdate) -> Dict[str, Any]:
    """Apply a pointer snapshot; it takes effect on the next step."""
    async with _state_lock:
        try:
            _apply_pointer(update)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return _simulation.get_state()["pointer"]


@app.post("/reset")
async def reset_simulation() -> Dict[str, str]:
    """Reset simulation to initial state."""
    async with _state_lock:
        _simulation.reset()
        return {"status": "reset"}


@app.get("/presets")
async def get_presets() -> List[Dict[str, Any]]:
    """List available presets."""
    return [
        {
            "name": p.name,
            "description": p.description,
            "types": [t.name for t in p.types],
            "weights": list(p.weights),
        }
        for p in list_presets()
    ]


@app.post("/presets/{name}")
async def apply_preset(name: str) -> Dict[str, Any]:
    """Apply a preset scenario."""
    global _config, _simulation
    async with _state_lock:
        try:
            preset = get_preset(name)
        except ValueError as e:
            raise HTTPException(status_code=404, detail=str(e))

        _config = dataclasses.replace(_config, preset=preset.name)
        _simulation = Simulation(_config, preset=preset)
        return {
            "preset": preset.name,
            "particle_count": len(_simulation.universe),
            "types": [t.name for t in preset.types],
        }


# ============================================================================
# WebSocket
# ============================================================================

async def _listener(websocket: WebSocket, queue: asyncio.Queue) -> None:
    """Listen for client messages."""
    try:
        while True:
            message = await websocket.receive_json()
            await queue.put(message)
    except WebSocketDisconnect:
        pass


async def _handle_message(message: Dict[str, Any]) -> None:
    """Handle client commands."""
    global _config, _simulation

    msg_type = message.get("type")

    if msg_type == "pointer":
        fields = {k: v for k, v in message.items() if k != "type"}
        try:
            update = PointerUpdate(**fields)
        except ValueError as exc:
            raise ValueError(f"Invalid pointer message: {exc}") from exc
        _apply_pointer(update)

    elif msg_type == "reset":
        _simulation.reset()

    elif msg_type == "use_preset":
        name = message.get("name")
        if name is None:
            raise ValueError("Message missing 'name'")
        preset = get_preset(name)
        _config = dataclasses.replace(_config, preset=preset.name)
        _simulation = Simulation(_config, preset=preset)

    else:
        raise ValueError(f"Unknown message type '{msg_type}'")


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    """WebSocket endpoint: clients receive state frames and send pointer input."""
    await websocket.accept()
    async with _state_lock:
        await websocket.send_json(_state_message())
    _websocket_clients.add(websocket)
    logger.info("Client connected, total clients: %d", len(_websocket_clients))

    queue: asyncio.Queue = asyncio.Queue()
    listener = asyncio.create_task(_listener(websocket, queue))

    try:
        while not listener.done():
            while not queue.empty():
                message = await queue.get()
                try:
                    async with _state_lock:
                        await _handle_message(message)
                        reply = _state_message()
                except ValueError as exc:
                    reply = {"type": "error", "detail": str(exc)}
                await websocket.send_json(reply)

            await asyncio.sleep(0.01)

    except WebSocketDisconnect:
        logger.info("WebSocket disconnected")
    finally:
        _websocket_clients.discard(websocket)
        logger.info("Client removed, remaining clients: %d", len(_websocket_clients))
        listener.cancel()
