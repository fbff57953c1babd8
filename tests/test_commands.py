"""
tests.test_commands
~~~~~~~~~~~~~~~~~~~

入站指令解析与出站事件序列化测试。
"""
from __future__ import annotations

import json

import pytest

from roomhub.core.exceptions import MalformedInput
from roomhub.schemas.commands import (
    COMMAND_TYPES,
    BanUserCommand,
    CreateRoomCommand,
    LeaveRoomCommand,
    MessageCommand,
    parse_command,
)
from roomhub.schemas.events import ChatMessageEvent, KickedEvent, UserEntry, UserListEvent
from tests.conftest import frame


class TestParseCommand:

    def test_create_room_maps_camel_case_fields(self) -> None:
        cmd = parse_command(frame("createRoom", roomCode="R1", userId="a1", username="A"))

        assert isinstance(cmd, CreateRoomCommand)
        assert cmd.room_code == "R1"
        assert cmd.user_id == "a1"
        assert cmd.username == "A"

    def test_ban_user_requires_target(self) -> None:
        cmd = parse_command(frame("banUser", roomCode="R1", userId="a1", targetId="c1"))

        assert isinstance(cmd, BanUserCommand)
        assert cmd.target_id == "c1"

    def test_message_keeps_text_verbatim(self) -> None:
        cmd = parse_command(frame("message", roomCode="R1", sender="B", message="  hi <b>  "))

        assert isinstance(cmd, MessageCommand)
        assert cmd.message == "  hi <b>  "

    def test_leave_room_ignores_extra_fields(self) -> None:
        cmd = parse_command(frame("leaveRoom", roomCode="R1", userId="b1", username="B"))

        assert isinstance(cmd, LeaveRoomCommand)

    def test_unknown_type_is_ignored(self) -> None:
        assert parse_command(frame("dance", roomCode="R1")) is None

    def test_missing_type_is_ignored(self) -> None:
        assert parse_command(json.dumps({"roomCode": "R1"})) is None

    @pytest.mark.parametrize("raw", ["not json", "{", "[1, 2]", '"createRoom"', "null"])
    def test_unparsable_frame_is_malformed(self, raw: str) -> None:
        with pytest.raises(MalformedInput) as exc_info:
            parse_command(raw)
        assert exc_info.value.message == "Invalid message format"

    def test_known_type_missing_field_is_malformed(self) -> None:
        with pytest.raises(MalformedInput):
            parse_command(frame("joinRoom", roomCode="R1", username="B"))

    def test_wrong_field_type_is_malformed(self) -> None:
        with pytest.raises(MalformedInput):
            parse_command(frame("kickUser", roomCode="R1", userId="a1", targetId=42))


class TestEvents:

    def test_user_list_serializes_with_camel_case(self) -> None:
        event = UserListEvent(
            users=[UserEntry(username="A", user_id="a1"), UserEntry(username="B", user_id="b1")],
            host_id="a1",
        )

        assert json.loads(event.to_json()) == {
            "type": "userList",
            "users": [{"username": "A", "userId": "a1"}, {"username": "B", "userId": "b1"}],
            "hostId": "a1",
        }

    def test_system_message(self) -> None:
        event = ChatMessageEvent.system("B has joined the chat.")

        assert json.loads(event.to_json()) == {
            "type": "message",
            "sender": "System",
            "message": "B has joined the chat.",
        }

    def test_empty_event(self) -> None:
        assert json.loads(KickedEvent().to_json()) == {"type": "kicked"}


class TestCommandTypes:

    def test_command_types_match_union_members(self) -> None:
        assert COMMAND_TYPES == {
            "createRoom", "joinRoom", "message", "leaveRoom", "kickUser", "banUser",
        }
