"""WebSocket channels for clients and the telephony media stream."""
import logging
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from interview_relay.core.dependencies import get_coordinator
from interview_relay.services.call_session.connection import ChannelConnection
from interview_relay.services.call_session.manager import InterviewCoordinator
from interview_relay.services.call_session.router import MessageRouter

router = APIRouter()
logger = logging.getLogger(__name__)

NORMAL_CLOSE_CODES = (1000, 1001)


@router.websocket("/ws")
@router.websocket("/voice")
async def interview_channel(
    websocket: WebSocket,
    coordinator: InterviewCoordinator = Depends(get_coordinator),
):
    """Serve one duplex channel until the peer disconnects.

    Frames are handled one at a time, in arrival order.
    """
    await websocket.accept()
    connection = ChannelConnection(websocket, channel=websocket.url.path)
    message_router = MessageRouter(coordinator)
    logger.info(
        f"[WS] New connection - Channel: {connection.channel}, "
        f"Client: {websocket.client.host if websocket.client else 'unknown'}"
    )

    close_code = 1000
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                close_code = message.get("code", 1000)
                break
            if message.get("text") is not None:
                await message_router.dispatch(connection, message["text"])
            elif message.get("bytes") is not None:
                await message_router.dispatch_binary(connection, message["bytes"])
    except WebSocketDisconnect as e:
        close_code = e.code
    finally:
        await coordinator.handle_disconnect(
            connection, normal=close_code in NORMAL_CLOSE_CODES
        )
