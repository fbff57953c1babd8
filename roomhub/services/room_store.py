"""
roomhub.services.room_store
~~~~~~~~~~~~~~~~~~~~~~~~~~~

房间仓库 —— 房间号到 ``Room`` 的映射，独占所有房间实例。

仓库级操作（查找、不存在则创建、删除）在 ``_lock`` 内原子执行，
避免两个并发的 createRoom 为同一房间号装入两个不同的实例。
锁顺序固定为「房间锁 → 仓库锁」，仓库锁内从不获取房间锁。
"""
from __future__ import annotations

import asyncio

from roomhub.core.logging import get_logger
from roomhub.services.room import Room

logger = get_logger(__name__)


class RoomStore:
    """进程内房间仓库。"""

    def __init__(self) -> None:
        self._rooms: dict[str, Room] = {}
        self._lock = asyncio.Lock()

    async def ensure_room(self, room_code: str, host_id: str) -> Room:
        """获取房间，不存在则以 ``host_id`` 为房主创建。

        已存在时原样返回，不会改变房主。
        """
        async with self._lock:
            room = self._rooms.get(room_code)
            if room is None:
                room = Room(room_code=room_code, host_id=host_id)
                self._rooms[room_code] = room
                logger.info("房间已创建 | room=%s | host=%s", room_code, host_id)
            return room

    async def get(self, room_code: str) -> Room | None:
        async with self._lock:
            return self._rooms.get(room_code)

    async def delete_if_empty(self, room_code: str) -> bool:
        """仅当房间没有成员时删除。返回是否删除。"""
        async with self._lock:
            room = self._rooms.get(room_code)
            if room is None or not room.is_empty:
                return False
            self._remove(room_code, room)
            return True

    async def delete(self, room_code: str) -> bool:
        """无条件删除房间（房主离开时使用）。返回是否删除。"""
        async with self._lock:
            room = self._rooms.get(room_code)
            if room is None:
                return False
            self._remove(room_code, room)
            return True

    def _remove(self, room_code: str, room: Room) -> None:
        del self._rooms[room_code]
        room.mark_deleted()
        logger.info("房间已删除 | room=%s", room_code)

    def list_rooms(self) -> list[Room]:
        return list(self._rooms.values())

    def __contains__(self, room_code: object) -> bool:
        return room_code in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)
