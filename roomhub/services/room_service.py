"""
roomhub.services.room_service
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

房间业务服务 —— 解析入站帧，按指令类型分派到对应处理器。

在 FastAPI lifespan 中创建并挂载于 ``app.state.room_service``。
每个连接在自己的协程里调用 ``handle_frame()``，共享状态只经由
``RoomStore`` 和各房间的锁访问。
"""
from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from roomhub.core.exceptions import (
    AlreadyMember,
    Banned,
    RoomHubError,
    RoomNotFound,
    SessionClosed,
)
from roomhub.core.logging import get_logger
from roomhub.schemas.commands import (
    BanUserCommand,
    Command,
    CreateRoomCommand,
    JoinRoomCommand,
    KickUserCommand,
    LeaveRoomCommand,
    MessageCommand,
    parse_command,
)
from roomhub.schemas.events import (
    ChatMessageEvent,
    ErrorEvent,
    RoomCreatedEvent,
    RoomJoinedEvent,
)
from roomhub.schemas.rooms import RoomInfoData
from roomhub.services.broadcast import Broadcaster
from roomhub.services.moderation import ModerationController
from roomhub.services.reconciler import DisconnectReconciler
from roomhub.services.room import Room
from roomhub.services.room_store import RoomStore
from roomhub.services.session import Session

logger = get_logger(__name__)

Handler = Callable[[Session, Any], Awaitable[None]]


class RoomService:
    """房间服务（每个应用一个实例）。

    - ``handle_frame(session, raw)`` → 解析并执行一帧指令，业务错误回报给该会话
    - ``disconnect(session)``        → 连接关闭时的对账
    - ``list_rooms()`` / ``get_room_info()`` → 只读查询（REST 用）

    Attributes:
        store: 房间仓库。
        broadcaster: 房间广播器。
        moderation: 房主管理控制器。
        reconciler: 断线对账器。
        close_on_leave: 处理 leaveRoom 后是否主动关闭连接。
    """

    def __init__(self, store: RoomStore | None = None, close_on_leave: bool = False) -> None:
        self.store: RoomStore = store if store is not None else RoomStore()
        self.broadcaster = Broadcaster(self.store)
        self.moderation = ModerationController(self.store, self.broadcaster)
        self.reconciler = DisconnectReconciler(self.store, self.broadcaster)
        self.close_on_leave = close_on_leave
        self._handlers: dict[type, Handler] = {
            CreateRoomCommand: self.create_room,
            JoinRoomCommand: self.join_room,
            MessageCommand: self.post_message,
            LeaveRoomCommand: self.leave_room,
            KickUserCommand: self.kick_user,
            BanUserCommand: self.ban_user,
        }

    # ── 入口 ──────────────────────────────────────────────────────────

    async def handle_frame(self, session: Session, raw: str) -> None:
        """处理一帧入站文本。业务错误以 ``error{message}`` 回报，不向上抛出。"""
        try:
            if session.closed_by_moderator or not session.connection.is_open:
                raise SessionClosed()
            command = parse_command(raw)
            if command is None:
                logger.debug("忽略未知指令 | session=%s", session.session_id)
                return
            await self.dispatch(session, command)
        except RoomHubError as e:
            if e.silent:
                logger.debug("指令静默忽略 | %s | %s", type(e).__name__, e.message)
                return
            logger.info("指令被拒绝 | %s | %s", type(e).__name__, e.message)
            session.send(ErrorEvent(message=e.message))

    async def dispatch(self, session: Session, command: Command) -> None:
        handler = self._handlers[type(command)]
        await handler(session, command)

    async def disconnect(self, session: Session) -> None:
        await self.reconciler.on_disconnect(session)

    # ── 指令处理器 ────────────────────────────────────────────────────

    async def create_room(self, session: Session, cmd: CreateRoomCommand) -> None:
        """创建房间；房间号已存在时等同于加入（不改变房主）。"""
        await self._check_admission(cmd.room_code, cmd.user_id, must_exist=False)
        await self._detach(session)
        while True:
            room = await self.store.ensure_room(cmd.room_code, cmd.user_id)
            async with room.lock:
                if room.deleted:
                    # 与房间拆除发生竞争，重新获取
                    continue
                self._admit(room, session, cmd.user_id, cmd.username)
                session.send(RoomCreatedEvent(room_code=room.room_code))
                await self.broadcaster.broadcast_user_list(room.room_code)
                return

    async def join_room(self, session: Session, cmd: JoinRoomCommand) -> None:
        """加入已存在的房间。

        Raises:
            RoomNotFound: 房间不存在。
            Banned: 该 userId 已被本房间封禁。
            AlreadyMember: 该 userId 已在房间内。
        """
        await self._check_admission(cmd.room_code, cmd.user_id, must_exist=True)
        await self._detach(session)
        room = await self.store.get(cmd.room_code)
        if room is None:
            raise RoomNotFound()

        async with room.lock:
            if room.deleted:
                raise RoomNotFound()
            self._admit(room, session, cmd.user_id, cmd.username)
            session.send(RoomJoinedEvent(room_code=room.room_code))
            await self.broadcaster.broadcast_to_room(
                room.room_code,
                ChatMessageEvent.system(f"{cmd.username} has joined the chat."),
            )
            await self.broadcaster.broadcast_user_list(room.room_code)

    async def post_message(self, session: Session, cmd: MessageCommand) -> None:
        """把聊天消息原样扇出给房间全部成员。"""
        room = await self.store.get(cmd.room_code)
        if room is None:
            raise RoomNotFound()

        async with room.lock:
            if room.deleted:
                raise RoomNotFound()
            await self.broadcaster.broadcast_to_room(
                room.room_code, ChatMessageEvent(sender=cmd.sender, message=cmd.message),
            )

    async def leave_room(self, session: Session, cmd: LeaveRoomCommand) -> None:
        await self.reconciler.leave(session)
        if self.close_on_leave:
            session.terminate()

    async def kick_user(self, session: Session, cmd: KickUserCommand) -> None:
        await self.moderation.kick_user(cmd.room_code, cmd.user_id, cmd.target_id)

    async def ban_user(self, session: Session, cmd: BanUserCommand) -> None:
        await self.moderation.ban_user(cmd.room_code, cmd.user_id, cmd.target_id)

    # ── 查询 ──────────────────────────────────────────────────────────

    def list_rooms(self) -> list[RoomInfoData]:
        """列出所有活跃房间的摘要信息。"""
        return [room.info() for room in self.store.list_rooms()]

    async def get_room_info(self, room_code: str) -> RoomInfoData | None:
        room = await self.store.get(room_code)
        return room.info() if room is not None else None

    # ── 内部 ──────────────────────────────────────────────────────────

    async def _detach(self, session: Session) -> None:
        """已绑定房间的会话再次创建/加入时，先走主动离开流程。"""
        if session.is_bound:
            logger.info(
                "会话切换房间，先离开原房间 | session=%s | room=%s",
                session.session_id, session.room_code,
            )
            await self.reconciler.leave(session)

    async def _check_admission(self, room_code: str, user_id: str, *, must_exist: bool) -> None:
        """在离开原房间之前校验目标房间，校验失败时原房间保持不变。"""
        room = await self.store.get(room_code)
        if room is None:
            if must_exist:
                raise RoomNotFound()
            return
        async with room.lock:
            if room.deleted:
                if must_exist:
                    raise RoomNotFound()
                return
            self._check_admissible(room, user_id)

    @staticmethod
    def _check_admissible(room: Room, user_id: str) -> None:
        if room.is_banned(user_id):
            raise Banned()
        if room.has_user(user_id):
            raise AlreadyMember()

    @classmethod
    def _admit(cls, room: Room, session: Session, user_id: str, username: str) -> None:
        """校验并把会话加入房间（调用方需持有 ``room.lock``）。"""
        if session.closed_by_moderator or not session.connection.is_open:
            raise SessionClosed()
        cls._check_admissible(room, user_id)
        session.bind(room.room_code, user_id, username)
        room.add_member(session, user_id, username)
        logger.info(
            "成员加入 | room=%s | user=%s | 当前成员: %d",
            room.room_code, user_id, len(room.members),
        )
