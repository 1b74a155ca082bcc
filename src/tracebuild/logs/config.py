# -*- coding: utf-8 -*-
"""
日志配置模块

tracebuild 的 stdout 用于输出 id/now 结果以及 stdout 导出器，
因此日志统一输出到 stderr。
"""

import logging
import os
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, TextIO

from .formatter import GlogFormatter, JsonFormatter, TextFormatter

ENV_LOG_LEVEL = "TRACEBUILD_LOG_LEVEL"
ENV_LOG_FORMATTER = "TRACEBUILD_LOG_FORMATTER"
ENV_LOG_REPORT_CALLER = "TRACEBUILD_LOG_REPORT_CALLER"
ENV_LOG_COLORS = "TRACEBUILD_LOG_COLORS"


class LogFormatter(str, Enum):
    """日志格式枚举"""
    GLOG = "glog"
    TEXT = "text"
    JSON = "json"


class LogLevel(str, Enum):
    """日志级别枚举"""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"
    CRITICAL = "critical"


# 日志级别映射
LEVEL_MAP = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "critical": logging.CRITICAL,
}


def _parse_bool(value: Optional[str], default: bool = False) -> bool:
    """解析布尔型环境变量，无法识别时返回 default"""
    if value is None:
        return default
    lower = value.strip().lower()
    if lower in ("true", "1", "yes"):
        return True
    if lower in ("false", "0", "no"):
        return False
    return default


@dataclass
class LogConfig:
    """
    日志配置

    Attributes:
        formatter: 日志格式（glog、text、json）
        level: 日志级别
        report_caller: 是否报告调用者信息
        enable_colors: 是否启用颜色输出
    """
    formatter: str = LogFormatter.GLOG.value
    level: str = LogLevel.WARNING.value
    report_caller: bool = False
    enable_colors: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LogConfig":
        """从环境变量创建配置"""
        if environ is None:
            environ = os.environ
        return cls(
            formatter=environ.get(ENV_LOG_FORMATTER, LogFormatter.GLOG.value),
            level=environ.get(ENV_LOG_LEVEL, LogLevel.WARNING.value),
            report_caller=_parse_bool(environ.get(ENV_LOG_REPORT_CALLER)),
            enable_colors=_parse_bool(environ.get(ENV_LOG_COLORS)),
        )


def _create_formatter(config: LogConfig) -> logging.Formatter:
    formatter = config.formatter.lower()
    if formatter == LogFormatter.JSON:
        return JsonFormatter(report_caller=config.report_caller)
    if formatter == LogFormatter.TEXT:
        return TextFormatter(report_caller=config.report_caller)
    return GlogFormatter(
        enable_colors=config.enable_colors,
        report_caller=config.report_caller,
    )


def install_logs(config: Optional[LogConfig] = None, stream: Optional[TextIO] = None) -> None:
    """
    安装日志配置

    替换根日志记录器的处理器，输出到 stream（默认 stderr）。

    Args:
        config: 日志配置，如果为 None 则从环境变量读取
        stream: 输出流
    """
    if config is None:
        config = LogConfig.from_env()

    level = LEVEL_MAP.get(config.level.lower(), logging.WARNING)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(_create_formatter(config))
    root_logger.addHandler(handler)

    logging.getLogger(__name__).debug(
        "Logs installed: level=%s, formatter=%s", config.level, config.formatter
    )
