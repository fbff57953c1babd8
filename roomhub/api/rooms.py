"""
roomhub.api.rooms
~~~~~~~~~~~~~~~~~

房间只读 REST 接口。

端点:
  - ``GET /rooms``              → 活跃房间列表
  - ``GET /rooms/{room_code}``  → 房间详情
"""
from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from roomhub.api.deps import get_room_service
from roomhub.core.exceptions import RoomNotFound
from roomhub.schemas.api_response import ApiResponse
from roomhub.schemas.rooms import RoomInfoData
from roomhub.services.room_service import RoomService

router: APIRouter = APIRouter()


@router.get("/rooms", summary="获取活跃房间列表", response_model=ApiResponse[list[RoomInfoData]])
async def list_rooms(service: RoomService = Depends(get_room_service)):
    """返回所有活跃房间的摘要。"""
    return ApiResponse.ok(data=service.list_rooms())


@router.get("/rooms/{room_code}", summary="获取房间详情", response_model=ApiResponse[RoomInfoData])
async def room_info(room_code: str, service: RoomService = Depends(get_room_service)):
    """返回指定房间的房主、成员数与封禁数。

    Args:
        room_code: 房间号。
    """
    info = await service.get_room_info(room_code)
    if info is None:
        response = ApiResponse.fail(msg=RoomNotFound.message, code=404)
        return JSONResponse(status_code=404, content=response.model_dump())
    return ApiResponse.ok(data=info)
