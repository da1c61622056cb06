"""
SISREG 领域模块：数据模型、常量表与记录字段工具

作者: Tom
创建时间: 2025-11-18T11:01:20+08:00
"""
