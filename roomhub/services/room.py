"""
roomhub.services.room
~~~~~~~~~~~~~~~~~~~~~

房间领域模型 —— 房主、成员列表与封禁集合。

房间的所有成员/封禁变更都必须在 ``room.lock`` 内进行。
状态机: ``NonExistent → Active → Deleted``，删除后实例不再复用。
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass

from roomhub.schemas.events import UserEntry, UserListEvent
from roomhub.schemas.rooms import RoomInfoData
from roomhub.services.session import Session


@dataclass(eq=False)
class Member:
    """房间成员。``session`` 为非拥有引用，会话由连接自身持有。"""

    user_id: str
    username: str
    session: Session


class Room:
    """一个聊天房间。

    Attributes:
        room_code: 房间号（房间仓库中的唯一键）。
        host_id: 创建者的 userId，踢人/封禁的唯一授权身份（按身份而非在线判断）。
        members: 按加入顺序排列的在线成员。
        banned: 本房间实例生命周期内只增不减的封禁集合。
        lock: 串行化本房间所有变更的锁。
        deleted: 是否已从仓库移除。
    """

    def __init__(self, room_code: str, host_id: str) -> None:
        self.room_code = room_code
        self.host_id = host_id
        self.members: list[Member] = []
        self.banned: set[str] = set()
        self.lock = asyncio.Lock()
        self.deleted: bool = False

    # ── 查询 ──────────────────────────────────────────────────────────

    @property
    def is_empty(self) -> bool:
        return not self.members

    def is_host(self, user_id: str | None) -> bool:
        return user_id is not None and user_id == self.host_id

    def is_banned(self, user_id: str) -> bool:
        return user_id in self.banned

    def has_user(self, user_id: str) -> bool:
        return any(m.user_id == user_id for m in self.members)

    def has_session(self, session: Session) -> bool:
        return any(m.session is session for m in self.members)

    def find_members(self, user_id: str) -> list[Member]:
        return [m for m in self.members if m.user_id == user_id]

    # ── 变更（调用方需持有 lock）─────────────────────────────────────

    def add_member(self, session: Session, user_id: str, username: str) -> Member:
        member = Member(user_id=user_id, username=username, session=session)
        self.members.append(member)
        return member

    def remove_session(self, session: Session) -> Member | None:
        """移除指定会话对应的成员，返回被移除的成员。"""
        for i, member in enumerate(self.members):
            if member.session is session:
                return self.members.pop(i)
        return None

    def remove_user(self, user_id: str) -> list[Member]:
        """移除某个 userId 的全部成员条目。"""
        removed = self.find_members(user_id)
        self.members = [m for m in self.members if m.user_id != user_id]
        return removed

    def ban(self, user_id: str) -> None:
        self.banned.add(user_id)

    def mark_deleted(self) -> None:
        self.deleted = True

    # ── 视图 ──────────────────────────────────────────────────────────

    def snapshot(self) -> list[Member]:
        """当前成员列表的快照，供锁外广播使用。"""
        return list(self.members)

    def user_list(self) -> UserListEvent:
        """按成员顺序构造 ``userList`` 名单事件。"""
        return UserListEvent(
            users=[UserEntry(username=m.username, user_id=m.user_id) for m in self.members],
            host_id=self.host_id,
        )

    def info(self) -> RoomInfoData:
        return RoomInfoData(
            room_code=self.room_code,
            host_id=self.host_id,
            member_count=len(self.members),
            banned_count=len(self.banned),
        )
