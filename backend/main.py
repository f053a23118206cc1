"""
Main FastAPI application for the device control dashboard.
Manages the poll-cycle lifespan, output/sensor endpoints, and WebSocket state updates.
"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Literal

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse

import settings
from controller import DashboardController, OutputBusy
from device_api import OUTPUTS, DeviceClient
from shared_state import CHANNELS

current_dir = os.path.dirname(os.path.abspath(__file__))
static_dir = os.path.join(current_dir, "static")

controller = DashboardController(DeviceClient())

# ─────────────────────── Application Lifespan ───────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and run the sensor poll cycle while the app is up."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[logging.StreamHandler()],
    )

    active = controller
    logging.info("Dashboard targeting device server at %s", active.client.base_url)
    active.start()
    try:
        yield
    finally:
        await active.stop()
        active.client.close()

# ─────────────────────── FastAPI App Setup ───────────────────────
app = FastAPI(title="Device Control Dashboard", lifespan=lifespan)

# ─────────────────────── CORS Configuration ───────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["*"],
)

# ─────────────────────── Dashboard Page ───────────────────────
@app.get("/", include_in_schema=False)
async def index():
    return FileResponse(os.path.join(static_dir, "index.html"))

# ─────────────────────── REST API Endpoints ───────────────────────
@app.get("/state")
async def read_state():
    """Return outputs, sensor readings, loading flags and active notices."""
    return controller.snapshot()

@app.post("/outputs/{output_id}/{state}")
async def set_output(output_id: str, state: Literal["on", "off"]):
    """
    Switch an LED (led1..led4) or the buzzer on or off.
    A failed device call still answers 200 with ok=false and an error notice.
    """
    if output_id not in OUTPUTS:
        raise HTTPException(status_code=404, detail=f"Unknown output: {output_id}")
    try:
        ok, notice = await controller.set_output(output_id, state)
    except OutputBusy:
        raise HTTPException(status_code=409, detail=f"{output_id} request already in progress")

    return {
        "ok": ok,
        "output": output_id,
        "state": controller.state.outputs[output_id],
        "notice": notice.model_dump(),
    }

@app.post("/sensors/refresh")
async def refresh_all_sensors():
    """Read every channel now and return the readings once all have settled."""
    await controller.poll_all()
    return {"sensors": controller.state.snapshot()["sensors"]}

@app.post("/sensors/{channel}/refresh")
async def refresh_sensor(channel: str):
    """Read one channel now instead of waiting for the next poll tick."""
    if channel not in CHANNELS:
        raise HTTPException(status_code=404, detail=f"Unknown channel: {channel}")
    updated = await controller.poll_channel(channel)
    return {"updated": updated, "sensors": controller.state.snapshot()["sensors"]}

@app.delete("/notices/{notice_id}")
async def dismiss_notice(notice_id: int):
    if not controller.notices.dismiss(notice_id):
        raise HTTPException(status_code=404, detail="No such notice.")
    return {"dismissed": notice_id}

# ─────────────────────── WebSocket Stream ───────────────────────
@app.websocket("/ws/state")
async def ws_state(websocket: WebSocket):
    """Stream dashboard state changes to the browser."""
    await websocket.accept()
    last_sent = None
    try:
        while True:
            state = controller.snapshot()
            if state != last_sent:
                await websocket.send_json(state)
                last_sent = state
            try:
                # Client frames (text or binary) are ignored; only a disconnect matters
                message = await asyncio.wait_for(websocket.receive(), timeout=0.2)
            except asyncio.TimeoutError:
                continue
            if message["type"] == "websocket.disconnect":
                break
    except WebSocketDisconnect:
        pass

# ─────────────────────── CLI Entrypoint ───────────────────────
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.DASHBOARD_HOST,
        port=settings.DASHBOARD_PORT,
        reload=True,
    )
