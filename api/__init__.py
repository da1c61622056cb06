"""
HTTP 接口模块（FastAPI）

作者: Tom
创建时间: 2025-11-22T09:50:44+08:00
"""
