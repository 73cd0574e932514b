"""
计算管道模块
"""
