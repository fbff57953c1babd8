"""
roomhub.services.broadcast
~~~~~~~~~~~~~~~~~~~~~~~~~~

房间广播器 —— 把事件扇出到房间的在线成员。

先对成员列表做快照再逐个投递；``send()`` 只是入队，不会阻塞，
单个连接投递失败（已关闭）直接跳过，不影响其余成员。
"""
from __future__ import annotations

from collections.abc import Iterable

from roomhub.core.logging import get_logger
from roomhub.schemas.events import Event
from roomhub.services.room import Member
from roomhub.services.room_store import RoomStore

logger = get_logger(__name__)


class Broadcaster:
    """房间级广播。

    Attributes:
        store: 用于按房间号解析房间的仓库。
    """

    def __init__(self, store: RoomStore) -> None:
        self.store = store

    async def broadcast_to_room(self, room_code: str, event: Event) -> int:
        """向房间全部在线成员广播事件，返回成功入队的连接数。"""
        room = await self.store.get(room_code)
        if room is None:
            return 0
        return self.deliver(room.snapshot(), event)

    async def broadcast_user_list(self, room_code: str) -> int:
        """广播房间当前名单 ``userList{users, hostId}``。"""
        room = await self.store.get(room_code)
        if room is None:
            return 0
        return self.deliver(room.snapshot(), room.user_list())

    def deliver(self, members: Iterable[Member], event: Event) -> int:
        delivered = 0
        for member in members:
            if not member.session.connection.is_open:
                continue
            if member.session.send(event):
                delivered += 1
        logger.debug("广播 %s -> %d 个连接", getattr(event, "type", "?"), delivered)
        return delivered
