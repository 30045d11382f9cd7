import asyncio
import logging
import traceback
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from omnia.core.errors import NotFoundError, OmniaError
from omnia.services.delivery import ExamSession, SessionStatus

router = APIRouter()
logger = logging.getLogger(__name__)

def session_state(session: ExamSession) -> dict:
    return {
        "type": "session_state",
        "session_id": session.session_id,
        "status": session.status.value,
        "time_left": session.time_left,
        "attempt_id": session.attempt_id,
    }

async def forward_events(websocket: WebSocket, queue: asyncio.Queue):
    """Relay countdown ticks until the attempt is submitted."""
    while True:
        message = await queue.get()
        await websocket.send_json(message)
        if message["type"] == "submitted":
            return

async def handle_message(websocket: WebSocket, session: ExamSession, data: dict):
    if data.get("type") == "submit":
        try:
            await session.finish()
        except OmniaError as e:
            await websocket.send_json({"type": "error", "detail": e.to_detail()})
    elif data.get("type") == "state":
        await websocket.send_json(session_state(session))
    else:
        await websocket.send_json({"type": "error", "detail": f"Unknown message type: {data.get('type')}"})

@router.websocket("/ws/sessions/{session_id}")
async def session_countdown(websocket: WebSocket, session_id: str):
    await websocket.accept()

    try:
        session = websocket.app.state.session_manager.get(session_id)
    except NotFoundError:
        logger.error(f"Session {session_id} not found")
        await websocket.close(code=4003, reason="Session not found")
        return

    await websocket.send_json(session_state(session))
    if session.status is SessionStatus.SUBMITTED:
        await websocket.close()
        return

    queue = session.subscribe()
    sender = asyncio.create_task(forward_events(websocket, queue))
    try:
        while not sender.done():
            receiver = asyncio.create_task(websocket.receive_json())
            done, _ = await asyncio.wait({sender, receiver}, return_when=asyncio.FIRST_COMPLETED)
            if receiver in done:
                await handle_message(websocket, session, receiver.result())
            else:
                receiver.cancel()
        await websocket.close()
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected for session {session_id}")
    except Exception as e:
        logger.error(f"WebSocket error: {str(e)}")
        logger.error(f"Stack trace: {traceback.format_exc()}")
    finally:
        sender.cancel()
        session.unsubscribe(queue)
        logger.debug(f"Client detached from session {session_id}")
