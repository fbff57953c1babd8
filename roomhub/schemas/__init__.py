"""
roomhub.schemas
~~~~~~~~~~~~~~~
入站指令、出站事件与 REST 响应的 Pydantic 模型。
"""
from roomhub.schemas.api_response import ApiResponse
from roomhub.schemas.rooms import HealthData, RoomInfoData

ApiResponse.model_rebuild()

__all__ = ["ApiResponse", "HealthData", "RoomInfoData"]
