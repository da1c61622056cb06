"""
配置模块：应用配置、日志输出与凭证存储

作者: Tom
创建时间: 2025-11-18T10:01:37+08:00
"""
