"""
roomhub.services.session
~~~~~~~~~~~~~~~~~~~~~~~~

会话模型 —— 服务端为每个连接维护的状态。

状态机: ``Unbound → Bound(room_code, user_id, username) → Closed``。
会话只通过 ``room_code`` 引用房间，不持有 ``Room`` 对象。
"""
from __future__ import annotations

from typing import Protocol

from roomhub.schemas.events import Event


class Connection(Protocol):
    """会话依赖的传输层能力。"""

    @property
    def is_open(self) -> bool: ...

    def send(self, event: Event) -> bool: ...

    def terminate(self) -> None: ...


class Session:
    """单个连接的服务端会话。

    Attributes:
        connection: 传输层连接（由 WebSocket 端点拥有）。
        session_id: 日志用的会话 ID。
        room_code: 当前绑定的房间号，未绑定时为 ``None``。
        user_id: 当前绑定的用户 ID。
        username: 当前绑定的昵称。
        closed_by_moderator: 连接是否因踢出/封禁被关闭，断线时据此跳过离开广播。
        closed: 断线对账是否已经执行过。
    """

    def __init__(self, connection: Connection, session_id: str = "-") -> None:
        self.connection = connection
        self.session_id = session_id
        self.room_code: str | None = None
        self.user_id: str | None = None
        self.username: str | None = None
        self.closed_by_moderator: bool = False
        self.closed: bool = False

    @property
    def is_bound(self) -> bool:
        return self.room_code is not None and self.user_id is not None

    def bind(self, room_code: str, user_id: str, username: str) -> None:
        self.room_code = room_code
        self.user_id = user_id
        self.username = username

    def clear(self) -> None:
        """清除房间绑定。"""
        self.room_code = None
        self.user_id = None
        self.username = None

    def send(self, event: Event) -> bool:
        return self.connection.send(event)

    def terminate(self) -> None:
        self.connection.terminate()

    def __repr__(self) -> str:
        return f"Session({self.session_id}, room={self.room_code}, user={self.user_id})"
