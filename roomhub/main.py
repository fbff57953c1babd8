"""
roomhub.main
~~~~~~~~~~~~

FastAPI 应用入口 —— 注册路由、挂载中间件、定义生命周期。
"""
from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from roomhub.api import rooms, ws
from roomhub.api.deps import get_room_service
from roomhub.core.config import settings
from roomhub.core.logging import get_logger, setup_logging
from roomhub.schemas import ApiResponse, HealthData
from roomhub.services.room_service import RoomService

setup_logging()
logger = get_logger(__name__)


# ── 生命周期 ──────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期钩子：创建房间服务并挂到 ``app.state``。"""
    app.state.room_service = RoomService(close_on_leave=settings.CLOSE_ON_LEAVE)
    logger.info(
        "🚀 应用已启动 | env=%s | port=%d | log_level=%s",
        settings.ENVIRONMENT,
        settings.PORT,
        settings.effective_log_level,
    )
    yield
    logger.info("👋 应用已关闭 | 剩余房间: %d", len(app.state.room_service.store))


app: FastAPI = FastAPI(
    title=settings.PROJECT_NAME,
    description="实时聊天房间服务",
    version=settings.VERSION,
    debug=settings.debug,
    lifespan=lifespan,
)

if settings.is_prod:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[],
        allow_methods=["GET"],
        allow_headers=["*"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(rooms.router, prefix="/api", tags=["Rooms"])
app.include_router(ws.router, tags=["WebSocket"])


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """未处理异常统一返回 ``ApiResponse.fail()``，prod 环境隐藏细节。"""
    logger.error("未捕获异常: %s %s -> %s", request.method, request.url, exc, exc_info=True)
    detail = str(exc) if not settings.is_prod else "服务器内部错误"
    response = ApiResponse.fail(msg=detail, code=500, data=None)
    return JSONResponse(status_code=500, content=response.model_dump())


@app.get("/", response_class=PlainTextResponse, tags=["System"])
async def index() -> str:
    return "WebSocket server is running."


@app.get("/health", tags=["System"], response_model=HealthData)
async def health_check(service: RoomService = Depends(get_room_service)) -> HealthData:
    """服务健康状态与活跃房间数。"""
    return HealthData(environment=settings.ENVIRONMENT, active_rooms=len(service.store))


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "roomhub.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.reload,
        log_level=settings.effective_log_level.lower(),
    )
