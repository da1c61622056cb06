"""
报表模块：XLSX 导出

作者: Tom
创建时间: 2025-11-21T15:32:18+08:00
"""
