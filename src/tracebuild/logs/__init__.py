# -*- coding: utf-8 -*-
"""
tracebuild 日志

- 多种日志格式（glog、text、json）
- 统一输出到 stderr
"""

from .config import (
    LogConfig,
    LogFormatter,
    LogLevel,
    install_logs,
)
from .formatter import GlogFormatter, JsonFormatter, TextFormatter

__all__ = [
    "LogConfig",
    "LogFormatter",
    "LogLevel",
    "install_logs",
    "GlogFormatter",
    "JsonFormatter",
    "TextFormatter",
]
