# -*- coding: utf-8 -*-
"""
日志格式化器

Glog 格式：
[LEVEL] [DATETIME] [PID] [FILE:LINE](FUNC) MESSAGE key=value ...

示例：
[WARN] [20240917 23:00:00.123456] [12345] [pipeline.py:120](install_pipeline) Failed to install chosen pipeline
"""

import json
import logging
import os
import sys
from datetime import datetime


class GlogFormatter(logging.Formatter):
    """Google Log 格式化器"""

    # 日志级别缩写映射
    LEVEL_MAP = {
        logging.DEBUG: "DEBU",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERRO",
        logging.CRITICAL: "FATA",
    }

    COLORS = {
        logging.DEBUG: "\033[37m",
        logging.INFO: "\033[36m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(
        self,
        datefmt: str = "%Y%m%d %H:%M:%S",
        enable_colors: bool = False,
        report_caller: bool = True,
    ):
        """
        初始化格式化器

        Args:
            datefmt: 日期格式
            enable_colors: 是否启用颜色（仅在 stderr 为终端时生效）
            report_caller: 是否报告调用者信息
        """
        super().__init__()
        self.datefmt = datefmt
        self.enable_colors = enable_colors
        self.report_caller = report_caller
        self._is_terminal = hasattr(sys.stderr, "isatty") and sys.stderr.isatty()

    def _colorize(self, text: str, level: int) -> str:
        if not self.enable_colors or not self._is_terminal:
            return text
        color = self.COLORS.get(level, "")
        return f"{color}{text}{self.RESET}" if color else text

    def format(self, record: logging.LogRecord) -> str:
        parts = []

        level_text = self.LEVEL_MAP.get(record.levelno, "UNKN")
        parts.append(self._colorize(f"[{level_text}]", record.levelno))

        # 时间戳包含微秒
        dt = datetime.fromtimestamp(record.created)
        parts.append(f"[{dt.strftime(self.datefmt)}.{dt.microsecond:06d}]")

        parts.append(f"[{record.process or os.getpid()}]")

        if self.report_caller:
            filename = os.path.basename(record.pathname)
            parts.append(f"[{filename}:{record.lineno}]({record.funcName})")

        parts.append(record.getMessage())

        if hasattr(record, "extra_fields") and record.extra_fields:
            for key, value in record.extra_fields.items():
                parts.append(f"{key}={value}")

        if record.exc_info:
            parts.append("\n" + self.formatException(record.exc_info))

        return " ".join(parts)


class TextFormatter(logging.Formatter):
    """
    文本格式化器

    输出格式：DATETIME - NAME - LEVEL - MESSAGE
    """

    def __init__(self, datefmt: str = "%Y-%m-%d %H:%M:%S", report_caller: bool = True):
        if report_caller:
            fmt = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
        else:
            fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        super().__init__(fmt=fmt, datefmt=datefmt)


class JsonFormatter(logging.Formatter):
    """JSON 格式化器，每条日志一行"""

    def __init__(self, report_caller: bool = True):
        super().__init__()
        self.report_caller = report_caller

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        if self.report_caller:
            log_data["file"] = record.pathname
            log_data["line"] = record.lineno
            log_data["function"] = record.funcName

        if hasattr(record, "extra_fields") and record.extra_fields:
            log_data.update(record.extra_fields)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)
