"""
roomhub.schemas.api_response
~~~~~~~~~~~~~~~~~~~~~~~~~~~~

REST 接口统一应答体：``{"code": 200, "data": {...}, "msg": "success"}``。
"""
from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """统一 JSON 应答体。

    Attributes:
        code: 业务状态码，200 表示成功，其余沿用 HTTP 语义（404 / 500）。
        data: 业务数据，失败时通常为 ``None``。
        msg: 人类可读的状态消息。
    """

    code: int = Field(default=200, description="业务状态码")
    data: T = Field(..., description="业务数据")
    msg: str = Field(default="success", description="状态消息")

    @classmethod
    def ok(cls, data: T, msg: str = "success") -> ApiResponse[T]:
        return cls(code=200, data=data, msg=msg)

    @classmethod
    def fail(cls, msg: str = "error", code: int = 500, data: Any = None) -> ApiResponse[Any]:
        return cls(code=code, data=data, msg=msg)
