"""
日志配置测试
"""

import io
import json
import logging

import pytest

from tracebuild.logs import (
    GlogFormatter,
    JsonFormatter,
    LogConfig,
    TextFormatter,
    install_logs,
)
from tracebuild.logs.config import _create_formatter


@pytest.mark.usefixtures("restore_logging")
class TestInstallLogs:
    """install_logs 测试"""

    def test_defaults_from_env(self):
        """测试默认配置"""
        config = LogConfig.from_env({})
        assert config.formatter == "glog"
        assert config.level == "warning"
        assert config.report_caller is False
        assert config.enable_colors is False

    def test_env(self):
        """测试从环境变量读取"""
        config = LogConfig.from_env({"TRACEBUILD_LOG_LEVEL": "debug", "TRACEBUILD_LOG_FORMATTER": "json"})
        assert config.level == "debug"
        assert isinstance(_create_formatter(config), JsonFormatter)

    def test_report_caller_and_colors_from_env(self):
        """测试调用者信息与颜色开关可以从环境变量设置"""
        config = LogConfig.from_env({"TRACEBUILD_LOG_REPORT_CALLER": "true", "TRACEBUILD_LOG_COLORS": "1"})
        assert config.report_caller is True
        assert config.enable_colors is True

        formatter = _create_formatter(config)
        assert isinstance(formatter, GlogFormatter)
        assert formatter.report_caller is True
        assert formatter.enable_colors is True

    @pytest.mark.parametrize("value", ["false", "0", "no", "maybe", ""])
    def test_bool_env_not_enabled(self, value):
        """测试关闭或无法识别的布尔值"""
        config = LogConfig.from_env({"TRACEBUILD_LOG_REPORT_CALLER": value, "TRACEBUILD_LOG_COLORS": value})
        assert config.report_caller is False
        assert config.enable_colors is False

    def test_report_caller_in_text_output(self):
        """测试开启调用者信息后 text 日志包含文件名"""
        stream = io.StringIO()
        config = LogConfig.from_env(
            {"TRACEBUILD_LOG_FORMATTER": "text", "TRACEBUILD_LOG_LEVEL": "info", "TRACEBUILD_LOG_REPORT_CALLER": "yes"}
        )
        install_logs(config, stream=stream)
        logging.getLogger("tracebuild.test").info("with caller")
        assert "test_logs.py" in stream.getvalue()

    def test_formatter_selection(self):
        """测试格式化器选择"""
        assert isinstance(_create_formatter(LogConfig(formatter="glog")), GlogFormatter)
        assert isinstance(_create_formatter(LogConfig(formatter="TEXT")), TextFormatter)
        assert isinstance(_create_formatter(LogConfig(formatter="unknown")), GlogFormatter)

    def test_level_filtering(self):
        """测试日志级别过滤"""
        stream = io.StringIO()
        install_logs(LogConfig(level="error"), stream=stream)
        logger = logging.getLogger("tracebuild.test")
        logger.warning("hidden message")
        logger.error("visible message")
        output = stream.getvalue()
        assert "hidden message" not in output
        assert "visible message" in output
        assert output.startswith("[ERRO]")

    def test_unknown_level_defaults_to_warning(self):
        """测试未知级别使用 warning"""
        install_logs(LogConfig(level="verbose"), stream=io.StringIO())
        assert logging.getLogger().level == logging.WARNING

    def test_json_output(self):
        """测试 JSON 输出"""
        stream = io.StringIO()
        install_logs(LogConfig(formatter="json", level="info"), stream=stream)
        logging.getLogger("tracebuild.test").info("pipeline %s", "installed")
        record = json.loads(stream.getvalue().splitlines()[-1])
        assert record["message"] == "pipeline installed"
        assert record["level"] == "INFO"
        assert record["logger"] == "tracebuild.test"

    def test_replaces_handlers(self):
        """测试重复安装不会重复输出"""
        stream = io.StringIO()
        install_logs(LogConfig(level="info"), stream=stream)
        install_logs(LogConfig(level="info"), stream=stream)
        logging.getLogger("tracebuild.test").info("once")
        assert stream.getvalue().count("once") == 1


class TestGlogFormatter:
    """GlogFormatter 测试"""

    def test_format(self):
        """测试 glog 格式"""
        formatter = GlogFormatter(report_caller=True)
        record = logging.LogRecord(
            "tracebuild", logging.WARNING, "/src/pipeline.py", 12, "push failed: %s", ("timeout",), None, "push"
        )
        text = formatter.format(record)
        assert text.startswith("[WARN]")
        assert "[pipeline.py:12](push)" in text
        assert text.endswith("push failed: timeout")
