"""
命令行测试
"""

import re
import sys
import time

import pytest

from tracebuild.cli import build_parser, main
from tracebuild.id import BuildId

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="需要 POSIX 命令")

BUILD_ID = "0af7651916cd43dd8448eb211c80319cb7ad6b7169203331"
STEP_ID = "00000000000000000000000000000000b7ad6b7169203332"


@pytest.fixture
def no_exporters(monkeypatch):
    """不导出任何遥测数据"""
    monkeypatch.setenv("OTEL_TRACES_EXPORTER", "none")
    monkeypatch.setenv("OTEL_METRICS_EXPORTER", "none")


@pytest.fixture
def stdout_exporters(monkeypatch):
    """遥测数据输出到 stdout"""
    monkeypatch.setenv("OTEL_TRACES_EXPORTER", "stdout")
    monkeypatch.setenv("OTEL_METRICS_EXPORTER", "none")


@pytest.mark.usefixtures("restore_logging")
class TestSimpleCommands:
    """id / now 子命令测试"""

    def test_id(self, capsys):
        """测试生成 ID"""
        assert main(["id"]) == 0
        out = capsys.readouterr().out.strip()
        assert re.fullmatch(r"[0-9a-f]{48}", out)
        BuildId.parse(out)

    def test_now(self, capsys):
        """测试当前时间"""
        before = int(time.time())
        assert main(["now"]) == 0
        after = int(time.time())
        assert before <= int(capsys.readouterr().out.strip()) <= after

    def test_missing_command(self, capsys):
        """测试缺少子命令"""
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 2


@posix_only
@pytest.mark.usefixtures("restore_logging", "no_exporters")
class TestCmdCommand:
    """cmd 子命令测试"""

    def test_true(self):
        """测试 true 退出码为 0"""
        assert main(["cmd", "--build", BUILD_ID, "true"]) == 0

    def test_false(self):
        """测试 false 退出码为 1"""
        assert main(["cmd", "--build", BUILD_ID, "false"]) == 1

    def test_arguments_with_dashes(self):
        """测试以 - 开头的命令参数透传给子命令"""
        assert main(["cmd", "--build", BUILD_ID, "--step", STEP_ID, "sh", "-c", "exit 5"]) == 5

    def test_missing_executable(self, capsys):
        """测试命令不存在时退出码为 71"""
        assert main(["cmd", "--build", BUILD_ID, "tracebuild-definitely-missing-program"]) == 71
        assert "Failed to fork child program" in capsys.readouterr().err

    def test_malformed_build_id(self, capsys):
        """测试非法 build id 在启动子命令前报错"""
        with pytest.raises(SystemExit) as exc_info:
            main(["cmd", "--build", "not-an-id", "true"])
        assert exc_info.value.code == 2
        assert "string len is not 48" in capsys.readouterr().err

    def test_missing_cmd(self):
        """测试缺少命令"""
        with pytest.raises(SystemExit) as exc_info:
            main(["cmd", "--build", BUILD_ID])
        assert exc_info.value.code == 2

    def test_unsupported_exporter_does_not_fail(self, monkeypatch):
        """测试导出器配置错误不影响退出码"""
        monkeypatch.setenv("OTEL_TRACES_EXPORTER", "zipkin")
        assert main(["cmd", "--build", BUILD_ID, "true"]) == 0


@pytest.mark.usefixtures("restore_logging", "stdout_exporters")
class TestReportCommands:
    """step / build 子命令测试"""

    def test_step(self, capsys):
        """测试上报 step"""
        start = str(int(time.time()) - 10)
        code = main(
            [
                "step",
                "--build", BUILD_ID,
                "--id", STEP_ID,
                "--start-time", start,
                "--name", "compile",
                "--status", "success",
            ]
        )
        assert code == 0
        out = capsys.readouterr().out
        assert '"name": "step - compile"' in out
        assert '"span_id": "b7ad6b7169203332"' in out
        assert '"parent_id": "b7ad6b7169203331"' in out
        assert '"status": "OK"' in out

    def test_build(self, capsys):
        """测试上报 build"""
        code = main(
            [
                "build",
                "--id", BUILD_ID,
                "--start-time", str(int(time.time())),
                "--name", "ci",
                "--branch", "main",
                "--commit", "abc123",
            ]
        )
        assert code == 0
        out = capsys.readouterr().out
        assert '"name": "build - ci"' in out
        assert '"trace_id": "0af7651916cd43dd8448eb211c80319c"' in out
        assert '"tracebuild.build.branch": "main"' in out

    @pytest.mark.parametrize(
        "argv,message",
        [
            (["step", "--build", BUILD_ID, "--id", STEP_ID, "--start-time", "yesterday"], "invalid unix timestamp"),
            (["build", "--id", BUILD_ID, "--start-time", "0", "--status", "ok"], "valid are: success, failure"),
        ],
    )
    def test_malformed_arguments(self, argv, message, capsys):
        """测试非法参数"""
        with pytest.raises(SystemExit) as exc_info:
            main(argv)
        assert exc_info.value.code == 2
        assert message in capsys.readouterr().err


class TestParser:
    """参数解析测试"""

    def test_cmd_remainder(self):
        """测试命令参数原样保留"""
        args = build_parser().parse_args(["cmd", "--build", BUILD_ID, "make", "-j4", "--keep-going"])
        assert args.cmd == "make"
        assert args.args == ["-j4", "--keep-going"]
        assert args.step is None
        assert args.build == BuildId.parse(BUILD_ID)
