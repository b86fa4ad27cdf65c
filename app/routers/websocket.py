# app/routers/websocket.py
"""
WebSocket endpoint streaming a plant's derived phase state.
"""
from fastapi import APIRouter, WebSocket
from starlette.websockets import WebSocketDisconnect

from app.core import config
from app.core.database import async_session_maker
from app.models import Plant
from app.services.notifications import plant_connections, build_phase_state

router = APIRouter(tags=["websocket"])


@router.websocket("/ws/plants/{plant_id}")
async def plant_websocket(websocket: WebSocket, plant_id: int):
    """
    Subscribe to a plant. The current phase state is sent on connect and
    again after every phase or event change.
    """
    await websocket.accept()

    async with async_session_maker() as session:
        plant = await session.get(Plant, plant_id)
        if not plant:
            await websocket.send_json({"error": "Plant not found"})
            await websocket.close()
            return
        await websocket.send_json(build_phase_state(plant))

    plant_connections[plant_id].append(websocket)
    print(f"[NOTIFY] Websocket subscribed to plant {plant_id} ({len(plant_connections[plant_id])} total)")

    try:
        while True:
            message = await websocket.receive_text()
            if message == "ping":
                await websocket.send_json({"type": "pong"})
            elif config.DEBUG:
                print(f"[NOTIFY] Ignoring websocket message for plant {plant_id}: {message}")
    except WebSocketDisconnect:
        pass
    finally:
        if websocket in plant_connections[plant_id]:
            plant_connections[plant_id].remove(websocket)
        if not plant_connections[plant_id]:
            plant_connections.pop(plant_id, None)
        print(f"[NOTIFY] Websocket unsubscribed from plant {plant_id}")
