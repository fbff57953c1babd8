"""
roomhub.services.connection
~~~~~~~~~~~~~~~~~~~~~~~~~~~

WebSocket 出站通道 —— 每个连接一个有界发送队列 + 单个写协程。

- ``send()`` 不阻塞：只把事件放入本连接的队列，广播永远不会被某个慢连接卡住。
- 单写协程按 FIFO 顺序发送，保证同一连接上的事件顺序。
- 队列溢出视为慢消费者：丢弃积压并断开该连接。
- ``terminate()`` 立即生效：拒绝后续事件，已入队的帧（如 ``kicked``）发完后关闭。
"""
from __future__ import annotations

import asyncio

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from roomhub.core.logging import get_logger
from roomhub.schemas.events import Event

logger = get_logger(__name__)

# 队列中的关闭哨兵
_CLOSE = None


class WebSocketConnection:
    """单个 WebSocket 连接的出站通道。

    Attributes:
        websocket: 已 accept 的 FastAPI WebSocket。
        conn_id: 日志用的连接短 ID。
    """

    def __init__(self, websocket: WebSocket, conn_id: str, max_queue: int = 64) -> None:
        self.websocket = websocket
        self.conn_id = conn_id
        self._outbox: asyncio.Queue[str | None] = asyncio.Queue(maxsize=max_queue)
        self._closing: bool = False
        self._closed = asyncio.Event()
        self._writer: asyncio.Task[None] | None = None

    def start(self) -> None:
        """启动写协程。需在事件循环中调用。"""
        if self._writer is None and not self._closed.is_set():
            self._writer = asyncio.create_task(self._write_loop())

    @property
    def is_open(self) -> bool:
        """连接是否仍可接收事件。"""
        return not self._closing

    def send(self, event: Event) -> bool:
        """把事件放入发送队列。

        Returns:
            是否成功入队；连接已关闭或因溢出被断开时返回 False。
        """
        if self._closing:
            return False
        try:
            self._outbox.put_nowait(event.to_json())
        except asyncio.QueueFull:
            logger.warning(
                "出站队列已满，断开慢连接 | conn=%s | 积压: %d",
                self.conn_id, self._outbox.qsize(),
            )
            self._drop_backlog()
            self.terminate()
            return False
        return True

    def terminate(self) -> None:
        """立即终止连接（幂等）。已入队的帧会先发出，随后关闭 socket。"""
        if self._closing:
            return
        self._closing = True
        if self._outbox.full():
            self._drop_backlog()
        self._outbox.put_nowait(_CLOSE)
        if self._writer is None:
            # 写协程从未启动，直接收尾
            self._closed.set()

    async def wait_closed(self) -> None:
        """等待写协程退出、socket 关闭。"""
        await self._closed.wait()

    def _drop_backlog(self) -> None:
        while not self._outbox.empty():
            self._outbox.get_nowait()

    async def _write_loop(self) -> None:
        try:
            while True:
                frame = await self._outbox.get()
                if frame is _CLOSE:
                    break
                await self.websocket.send_text(frame)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # 对端已断开，后续事件不再投递
            logger.debug("发送失败，连接视为关闭 | conn=%s | %s", self.conn_id, e)
        finally:
            self._closing = True
            await self._close_socket()
            self._closed.set()

    async def _close_socket(self) -> None:
        if self.websocket.application_state == WebSocketState.DISCONNECTED:
            return
        try:
            await self.websocket.close()
        except Exception as e:
            logger.debug("关闭 socket 失败（可能已断开）| conn=%s | %s", self.conn_id, e)
