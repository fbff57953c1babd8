"""
tests.conftest
~~~~~~~~~~~~~~

共享 pytest fixtures —— 用内存中的假连接替代真实 WebSocket，
记录每个会话收到的事件，便于断言广播结果。
"""
from __future__ import annotations

import json
import os
from collections.abc import Callable
from typing import Any

import pytest

# ── 在所有测试导入前设置环境变量 ─────────────────────────────────────
os.environ.setdefault("ENVIRONMENT", "test")

from roomhub.schemas.events import Event  # noqa: E402
from roomhub.services.room_service import RoomService  # noqa: E402
from roomhub.services.room_store import RoomStore  # noqa: E402
from roomhub.services.session import Session  # noqa: E402


class FakeConnection:
    """记录投递事件的假连接。"""

    def __init__(self) -> None:
        self.events: list[dict[str, Any]] = []
        self.open: bool = True
        self.terminated: bool = False

    @property
    def is_open(self) -> bool:
        return self.open

    def send(self, event: Event) -> bool:
        if not self.open:
            return False
        self.events.append(json.loads(event.to_json()))
        return True

    def terminate(self) -> None:
        self.open = False
        self.terminated = True

    def types(self) -> list[str]:
        return [e["type"] for e in self.events]

    def messages(self) -> list[str]:
        """所有 ``message`` 事件的文本。"""
        return [e["message"] for e in self.events if e["type"] == "message"]

    def last(self, event_type: str) -> dict[str, Any]:
        return [e for e in self.events if e["type"] == event_type][-1]

    def clear(self) -> None:
        self.events.clear()


@pytest.fixture()
def store() -> RoomStore:
    return RoomStore()


@pytest.fixture()
def service(store: RoomStore) -> RoomService:
    return RoomService(store=store)


@pytest.fixture()
def make_session() -> Callable[[str], Session]:
    """会话工厂：``make_session("a")`` 返回挂着 ``FakeConnection`` 的会话。"""

    def _make(name: str = "s") -> Session:
        return Session(FakeConnection(), session_id=name)

    return _make


def frame(type_: str, **fields: Any) -> str:
    """构造一帧入站 JSON 文本。"""
    return json.dumps({"type": type_, **fields})
