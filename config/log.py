"""
日志初始化
为 SISREG 查询链路注册 loguru 文件输出（每进程仅注册一次）

作者: Tom
创建时间: 2025-11-18T10:40:27+08:00
"""

from typing import Optional

from loguru import logger

from config.settings import get_settings

_sink_id: Optional[int] = None


def setup_logger() -> None:
    """设置专用日志器"""
    global _sink_id
    if _sink_id is not None:
        return
    settings = get_settings()
    _sink_id = logger.add(
        settings.log_file,
        rotation="1 day",
        retention="7 days",
        level=settings.log_level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function}:{line} | {message}"
    )
    logger.debug(f"日志输出已注册: {settings.log_file}")


__all__ = ["setup_logger"]
