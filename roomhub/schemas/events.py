"""
roomhub.schemas.events
~~~~~~~~~~~~~~~~~~~~~~

出站事件模型。序列化时使用 camelCase 别名，与客户端协议保持一致。
"""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SYSTEM_SENDER: str = "System"


class Event(BaseModel):
    """所有出站事件的基类。"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> str:
        """序列化为发给客户端的 JSON 文本。"""
        return self.model_dump_json(by_alias=True)


class RoomCreatedEvent(Event):
    type: Literal["roomCreated"] = "roomCreated"
    room_code: str


class RoomJoinedEvent(Event):
    type: Literal["roomJoined"] = "roomJoined"
    room_code: str


class ChatMessageEvent(Event):
    type: Literal["message"] = "message"
    sender: str
    message: str

    @classmethod
    def system(cls, text: str) -> ChatMessageEvent:
        """构造一条系统消息。"""
        return cls(sender=SYSTEM_SENDER, message=text)


class UserEntry(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    username: str
    user_id: str


class UserListEvent(Event):
    type: Literal["userList"] = "userList"
    users: list[UserEntry] = Field(default_factory=list)
    host_id: str


class ErrorEvent(Event):
    type: Literal["error"] = "error"
    message: str


class KickedEvent(Event):
    type: Literal["kicked"] = "kicked"


class BannedEvent(Event):
    type: Literal["banned"] = "banned"


class RoomClosedEvent(Event):
    type: Literal["roomClosed"] = "roomClosed"
