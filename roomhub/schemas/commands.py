"""
roomhub.schemas.commands
~~~~~~~~~~~~~~~~~~~~~~~~

入站指令模型 —— 以 ``type`` 字段为标签的封闭联合类型。

客户端帧为 JSON 文本，字段使用 camelCase（``roomCode`` / ``userId`` ...），
模型内部统一使用 snake_case。
"""
from __future__ import annotations

import json
from typing import Annotated, Literal, Union, get_args

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from roomhub.core.exceptions import MalformedInput


class _Command(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class CreateRoomCommand(_Command):
    type: Literal["createRoom"]
    room_code: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    username: str


class JoinRoomCommand(_Command):
    type: Literal["joinRoom"]
    room_code: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    username: str


class MessageCommand(_Command):
    type: Literal["message"]
    room_code: str
    sender: str
    message: str


class LeaveRoomCommand(_Command):
    """离开当前房间。房间与身份取自会话绑定，帧内字段被忽略。"""

    type: Literal["leaveRoom"]


class KickUserCommand(_Command):
    type: Literal["kickUser"]
    room_code: str
    user_id: str = Field(..., description="发起操作的用户（需为房主）")
    target_id: str


class BanUserCommand(_Command):
    type: Literal["banUser"]
    room_code: str
    user_id: str = Field(..., description="发起操作的用户（需为房主）")
    target_id: str


_COMMAND_MODELS: tuple[type[_Command], ...] = (
    CreateRoomCommand,
    JoinRoomCommand,
    MessageCommand,
    LeaveRoomCommand,
    KickUserCommand,
    BanUserCommand,
)

Command = Annotated[Union[_COMMAND_MODELS], Field(discriminator="type")]

# 由各指令模型的 ``type`` 字面量推导
COMMAND_TYPES: frozenset[str] = frozenset(
    get_args(model.model_fields["type"].annotation)[0] for model in _COMMAND_MODELS
)

_command_adapter: TypeAdapter[Command] = TypeAdapter(Command)


def parse_command(raw: str) -> Command | None:
    """解析一帧入站文本。

    Args:
        raw: WebSocket 收到的原始文本。

    Returns:
        解析后的指令；``type`` 未知时返回 ``None``（调用方直接忽略）。

    Raises:
        MalformedInput: JSON 无法解析、不是对象，或已知指令缺少必填字段。
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        raise MalformedInput() from e

    if not isinstance(data, dict):
        raise MalformedInput()
    if data.get("type") not in COMMAND_TYPES:
        return None

    try:
        return _command_adapter.validate_python(data)
    except ValidationError as e:
        raise MalformedInput() from e
