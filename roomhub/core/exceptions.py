"""
roomhub.core.exceptions
~~~~~~~~~~~~~~~~~~~~~~~

房间业务异常。全部是连接级、非致命错误：只回报给出错的会话，不影响其他房间。
"""
from __future__ import annotations


class RoomHubError(Exception):
    """业务异常基类。

    Attributes:
        message: 回给客户端的 ``error{message}`` 文本。
        silent: 为 True 时不向客户端回报。
    """

    message: str = "Unexpected error"
    silent: bool = False

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class MalformedInput(RoomHubError):
    """入站帧无法解析或缺少必填字段。"""

    message = "Invalid message format"


class RoomNotFound(RoomHubError):
    message = "Room does not exist!"


class Banned(RoomHubError):
    message = "You are banned from this room!"


class Forbidden(RoomHubError):
    """非房主尝试执行管理操作。"""

    message = "Only the host can moderate this room!"


class AlreadyMember(RoomHubError):
    message = "You are already in this room!"


class UnknownTarget(RoomHubError):
    """管理操作的目标不在房间内，静默忽略。"""

    message = "Target is not in this room"
    silent = True


class SessionClosed(RoomHubError):
    """会话连接已被终止（踢出/封禁/解散），后续指令静默丢弃。"""

    message = "Connection is closed"
    silent = True
