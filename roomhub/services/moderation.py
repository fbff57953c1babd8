"""
roomhub.services.moderation
~~~~~~~~~~~~~~~~~~~~~~~~~~~

房主管理 —— 踢出与封禁。

被处理的会话先标记 ``closed_by_moderator``，再收到 ``kicked`` / ``banned``
事件并被强制断开；它随后的断线对账只做本地清理，不会再广播"离开"消息。
"""
from __future__ import annotations

from roomhub.core.exceptions import Forbidden, UnknownTarget
from roomhub.core.logging import get_logger
from roomhub.schemas.events import BannedEvent, ChatMessageEvent, Event, KickedEvent
from roomhub.services.broadcast import Broadcaster
from roomhub.services.room import Member, Room
from roomhub.services.room_store import RoomStore

logger = get_logger(__name__)


class ModerationController:
    """执行仅限房主的踢人/封禁操作。"""

    def __init__(self, store: RoomStore, broadcaster: Broadcaster) -> None:
        self.store = store
        self.broadcaster = broadcaster

    async def kick_user(self, room_code: str, requester_id: str, target_id: str) -> None:
        """把目标用户踢出房间。

        Raises:
            Forbidden: 发起者不是房主。
            UnknownTarget: 目标不在房间内（调用方静默忽略）。
        """
        room = await self.store.get(room_code)
        if room is None:
            logger.debug("踢人忽略：房间不存在 | room=%s", room_code)
            return

        async with room.lock:
            if room.deleted:
                return
            if not room.is_host(requester_id):
                raise Forbidden("Only the host can kick users!")

            evicted = room.remove_user(target_id)
            if not evicted:
                raise UnknownTarget()

            self._evict(evicted, KickedEvent())
            logger.info("用户被踢出 | room=%s | target=%s", room_code, target_id)
            await self._announce_removal(
                room, f"{evicted[0].username} has been kicked by the host.",
            )

    async def ban_user(self, room_code: str, requester_id: str, target_id: str) -> None:
        """封禁目标用户；若其在房间内，同时踢出。

        目标不在房间内时仍写入封禁集合，阻止其后续加入。

        Raises:
            Forbidden: 发起者不是房主。
        """
        room = await self.store.get(room_code)
        if room is None:
            logger.debug("封禁忽略：房间不存在 | room=%s", room_code)
            return

        async with room.lock:
            if room.deleted:
                return
            if not room.is_host(requester_id):
                raise Forbidden("Only the host can ban users!")

            room.ban(target_id)
            logger.info("用户被封禁 | room=%s | target=%s", room_code, target_id)

            evicted = room.remove_user(target_id)
            if not evicted:
                return

            self._evict(evicted, BannedEvent())
            await self._announce_removal(
                room, f"{evicted[0].username} has been banned by the host.",
            )

    @staticmethod
    def _evict(members: list[Member], event: Event) -> None:
        for member in members:
            member.session.closed_by_moderator = True
            member.session.send(event)
            member.session.terminate()

    async def _announce_removal(self, room: Room, text: str) -> None:
        await self.broadcaster.broadcast_to_room(room.room_code, ChatMessageEvent.system(text))
        if room.is_empty:
            await self.store.delete_if_empty(room.room_code)
        else:
            await self.broadcaster.broadcast_user_list(room.room_code)
