"""
查询构造模块：每个 (实体类型, 模式) 组合对应一个构造器

作者: Tom
创建时间: 2025-11-19T09:30:12+08:00
"""
