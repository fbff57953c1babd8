"""
roomhub.core.logging
~~~~~~~~~~~~~~~~~~~~

统一日志配置，根据环境自动设置日志级别和格式。

所有模块应通过 ``get_logger(__name__)`` 获取 logger 实例。每条日志会带上
当前连接 ID（``conn_id_ctx_var``），便于在多连接并发时追踪单个会话。
"""
from __future__ import annotations

import logging
import sys
from contextvars import ContextVar

from roomhub.core.config import settings

# 日志格式：时间 | 级别 | [连接] | 模块名 | 消息
_LOG_FORMAT: str = "%(asctime)s | %(levelname)-7s | [%(conn_id)s] | %(name)s | %(message)s"
_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"

conn_id_ctx_var: ContextVar[str] = ContextVar("conn_id", default="-")


class ConnectionIdFilter(logging.Filter):
    """把当前上下文的连接 ID 注入到日志记录中。"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.conn_id = conn_id_ctx_var.get()
        return True


def setup_logging() -> None:
    """根据当前环境配置全局日志。应在应用启动时调用一次。"""
    level = getattr(logging, settings.effective_log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format=_LOG_FORMAT,
        datefmt=_DATE_FORMAT,
        stream=sys.stdout,
        force=True,
    )
    for handler in logging.getLogger().handlers:
        handler.addFilter(ConnectionIdFilter())

    # 降低第三方库的日志噪音
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("websockets").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """获取指定模块的 logger 实例。

    Args:
        name: 模块名，通常传 ``__name__``。

    Returns:
        配置好的 ``logging.Logger`` 实例。
    """
    return logging.getLogger(name)
