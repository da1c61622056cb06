"""
分析模块：仪表盘聚合、管理指标与 LLM 分析上下文

作者: Tom
创建时间: 2025-11-20T14:17:02+08:00
"""
