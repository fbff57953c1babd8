"""
roomhub.api.ws
~~~~~~~~~~~~~~

WebSocket 实时交互接口。

每个连接一个 ``Session``：接收协程逐帧解析并分派指令，出站事件经由
``WebSocketConnection`` 的有界队列发送。连接关闭（客户端断开、被踢/封禁、
房主解散或慢连接被断开）后执行且仅执行一次断线对账。

消息协议见 ``roomhub.schemas.commands`` 与 ``roomhub.schemas.events``。
"""
from __future__ import annotations

import asyncio
import uuid

from fastapi import APIRouter, Depends, WebSocket

from roomhub.api.deps import get_room_service
from roomhub.core.config import settings
from roomhub.core.logging import conn_id_ctx_var, get_logger
from roomhub.services.connection import WebSocketConnection
from roomhub.services.room_service import RoomService
from roomhub.services.session import Session

logger = get_logger(__name__)

router: APIRouter = APIRouter()


async def _receive_loop(websocket: WebSocket, service: RoomService, session: Session) -> None:
    """逐帧读取并处理，直到客户端断开。单帧异常只记录日志，不中断连接。"""
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return

        raw = message.get("text")
        if raw is None:
            raw = (message.get("bytes") or b"").decode("utf-8", errors="replace")

        try:
            await service.handle_frame(session, raw)
        except Exception as e:
            logger.error("处理指令异常: %s", e, exc_info=True)


@router.websocket("/ws")
@router.websocket("/")
async def websocket_endpoint(
    websocket: WebSocket,
    service: RoomService = Depends(get_room_service),
) -> None:
    """WebSocket 房间端点。"""
    conn_id = f"ws-{uuid.uuid4().hex[:8]}"
    token = conn_id_ctx_var.set(conn_id)

    try:
        await websocket.accept()
        connection = WebSocketConnection(
            websocket, conn_id, max_queue=settings.OUTBOUND_QUEUE_SIZE,
        )
        connection.start()
        session = Session(connection, session_id=conn_id)
        logger.info("连接建立")

        receiver = asyncio.create_task(_receive_loop(websocket, service, session))
        closer = asyncio.create_task(connection.wait_closed())
        try:
            # 客户端断开，或服务端主动终止（踢出/封禁/解散/溢出）
            await asyncio.wait({receiver, closer}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            receiver.cancel()
            closer.cancel()
            if receiver.done() and not receiver.cancelled() and receiver.exception() is not None:
                exc = receiver.exception()
                logger.error("WebSocket 接收异常: %s", exc, exc_info=exc)
            await service.disconnect(session)
            connection.terminate()
            await connection.wait_closed()
            logger.info("连接关闭 | closed_by_moderator=%s", session.closed_by_moderator)
    finally:
        conn_id_ctx_var.reset(token)
