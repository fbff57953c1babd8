"""
roomhub.schemas.rooms
~~~~~~~~~~~~~~~~~~~~~

房间相关的只读 REST 响应模型。
"""
from __future__ import annotations

from pydantic import BaseModel, Field


class RoomInfoData(BaseModel):
    """房间摘要信息。"""

    room_code: str = Field(..., description="房间号")
    host_id: str = Field(..., description="房主 userId")
    member_count: int = Field(..., description="当前成员数")
    banned_count: int = Field(..., description="已封禁用户数")


class HealthData(BaseModel):
    status: str = Field(default="ok", description="服务状态")
    environment: str = Field(..., description="运行环境")
    active_rooms: int = Field(..., description="活跃房间数")
