"""
roomhub.services.reconciler
~~~~~~~~~~~~~~~~~~~~~~~~~~~

断线对账 —— 连接关闭（任何原因）或主动 leaveRoom 时整理房间状态。

1. 被踢/被封禁关闭的连接：只清理会话绑定，不再广播。
2. 房主离开：通知其余成员 ``roomClosed``，强制断开他们，并删除房间。
3. 普通成员离开：移除成员，广播"离开"消息，房间空了就删除，否则广播名单。
"""
from __future__ import annotations

from roomhub.core.logging import get_logger
from roomhub.schemas.events import ChatMessageEvent, RoomClosedEvent
from roomhub.services.broadcast import Broadcaster
from roomhub.services.room import Room
from roomhub.services.room_store import RoomStore
from roomhub.services.session import Session

logger = get_logger(__name__)


class DisconnectReconciler:

    def __init__(self, store: RoomStore, broadcaster: Broadcaster) -> None:
        self.store = store
        self.broadcaster = broadcaster

    async def on_disconnect(self, session: Session) -> None:
        """连接关闭时调用。每个会话至多执行一次。"""
        if session.closed:
            return
        session.closed = True

        if session.closed_by_moderator:
            session.clear()
            return
        await self.leave(session)

    async def leave(self, session: Session) -> None:
        """主动离开（或非管理原因断线）的对账流程。"""
        if not session.is_bound:
            return

        room = await self.store.get(session.room_code)
        if room is not None:
            async with room.lock:
                # 房间已被拆除并可能被同名新房间取代时，不碰新房间
                if not room.deleted and room.has_session(session):
                    if room.is_host(session.user_id):
                        await self._close_room(room, session)
                    else:
                        await self._remove_member(room, session)
        session.clear()

    async def _close_room(self, room: Room, host: Session) -> None:
        room.remove_session(host)
        remaining = room.snapshot()
        for member in remaining:
            if member.session.connection.is_open:
                member.session.send(RoomClosedEvent())
            member.session.terminate()
        await self.store.delete(room.room_code)
        logger.info(
            "房主离开，房间解散 | room=%s | 断开成员: %d", room.room_code, len(remaining),
        )

    async def _remove_member(self, room: Room, session: Session) -> None:
        member = room.remove_session(session)
        username = member.username if member is not None else session.username
        await self.broadcaster.broadcast_to_room(
            room.room_code, ChatMessageEvent.system(f"{username} has left the chat."),
        )
        if room.is_empty:
            await self.store.delete_if_empty(room.room_code)
        else:
            await self.broadcaster.broadcast_user_list(room.room_code)
        logger.info("成员离开 | room=%s | user=%s", room.room_code, session.user_id)
