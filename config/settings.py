"""
配置管理模块
负责加载和管理应用程序的所有配置项（SISREG 连接、分页上限、LLM、日志）

作者: Tom
创建时间: 2025-11-18T10:02:11+08:00
"""

import os
from typing import Dict
from pydantic_settings import BaseSettings
from pydantic import Field
from dotenv import load_dotenv
from pathlib import Path

# 项目根目录（确保无论从何处运行，都定位到项目根的 .env）
_ROOT_DIR = Path(__file__).resolve().parents[1]

# 加载环境变量（显式指定项目根 .env，避免因工作目录变化导致加载错误）
load_dotenv(dotenv_path=_ROOT_DIR / ".env")


class Settings(BaseSettings):
    """应用程序配置类"""

    # 应用基础配置
    app_name: str = Field(default="SISREG-Consulta")
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=True)

    # SISREG Elasticsearch 默认凭证（未配置时为空，由凭证存储按用户覆盖）
    sisreg_base_url: str = Field(default="")
    sisreg_username: str = Field(default="")
    sisreg_password: str = Field(default="")

    # 远程查询约束
    sisreg_timeout_s: float = Field(default=30.0, gt=0)
    sisreg_page_size: int = Field(default=1000, ge=1, le=1000)
    export_max_records: int = Field(default=10000, ge=1)
    dashboard_max_records: int = Field(default=5000, ge=1)

    # 通义千问API配置（用于生成分析洞察）
    dashscope_api_key: str = Field(default="")
    default_model: str = Field(default="qwen-plus")
    max_tokens: int = Field(default=2000)
    temperature: float = Field(default=0.7)
    llm_timeout_ms: int = Field(default=60000, ge=50)

    # 日志配置
    log_level: str = Field(default="INFO")
    log_file: str = Field(default="./logs/app.log")

    class Config:
        # 显式指定项目根的 .env 文件
        env_file = str(_ROOT_DIR / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    def get_log_dir(self) -> str:
        """获取日志目录路径"""
        return os.path.dirname(self.log_file)

    def ensure_directories(self) -> None:
        """确保必要的目录存在"""
        directory = self.get_log_dir()
        if directory and not os.path.exists(directory):
            os.makedirs(directory, exist_ok=True)

    def has_default_credentials(self) -> bool:
        """是否通过环境变量配置了默认 SISREG 凭证"""
        return bool(self.sisreg_base_url and self.sisreg_username and self.sisreg_password)


# 全局配置实例
settings = Settings()

# 确保目录存在
settings.ensure_directories()


def get_settings() -> Settings:
    """获取配置实例"""
    return settings


def validate_api_key() -> bool:
    """验证API密钥是否配置"""
    return bool(settings.dashscope_api_key and settings.dashscope_api_key != "your_dashscope_api_key_here")


def get_model_config() -> dict:
    """获取模型配置"""
    return {
        "model": settings.default_model,
        "max_tokens": settings.max_tokens,
        "temperature": settings.temperature
    }


def get_sisreg_limits() -> Dict[str, int]:
    """获取分页与批量拉取上限"""
    return {
        "page_size": settings.sisreg_page_size,
        "export_max_records": settings.export_max_records,
        "dashboard_max_records": settings.dashboard_max_records,
    }
