"""
子进程监控测试
"""

import asyncio
import errno
import os
import signal
import sys

import pytest

from tracebuild.errors import (
    EX_OSERR,
    ChildIoError,
    ChildKilledError,
    SignalSetupError,
    SpawnError,
)
from tracebuild.process import (
    ExitOutcome,
    SupervisorState,
    TerminationListener,
    fork_with_sigterm,
    request_graceful_termination,
    run_to_completion,
    spawn,
)

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="需要 POSIX 信号")

# 收到 SIGTERM 后以 7 退出的子进程
TRAP_SCRIPT = 'trap "exit 7" TERM; while true; do sleep 0.05; done'


class TestExitOutcome:
    """ExitOutcome 测试"""

    def test_clean_exit(self):
        """测试正常退出"""
        outcome = ExitOutcome(3)
        assert outcome.code == 3
        assert outcome.exit_code == 3

    def test_killed_by_signal(self):
        """测试被信号终止时没有退出码"""
        outcome = ExitOutcome(-signal.SIGTERM)
        assert outcome.code is None
        assert outcome.exit_code == 1


class TestErrors:
    """错误退出码测试"""

    def test_spawn_error_code(self):
        """测试无法启动时退出码为 71"""
        err = SpawnError("missing", FileNotFoundError(errno.ENOENT, "No such file"))
        assert err.suggested_exit_code == EX_OSERR == 71
        assert "missing" in str(err)

    def test_signal_setup_error_code(self):
        """测试监听注册失败时退出码为 71"""
        assert SignalSetupError(OSError("boom")).suggested_exit_code == 71

    def test_child_io_error_code(self):
        """测试 IO 错误使用 errno"""
        assert ChildIoError(OSError(errno.EIO, "io")).suggested_exit_code == errno.EIO
        assert ChildIoError(OSError("io")).suggested_exit_code == 1

    def test_child_killed_code(self):
        """测试强制结束时退出码为 1"""
        assert ChildKilledError(123).suggested_exit_code == 1


@posix_only
class TestForkWithSigterm:
    """fork_with_sigterm 测试"""

    @pytest.mark.asyncio
    async def test_true(self):
        """测试 true 退出码为 0"""
        outcome = await fork_with_sigterm("true")
        assert outcome.exit_code == 0

    @pytest.mark.asyncio
    async def test_false(self):
        """测试 false 退出码为 1"""
        outcome = await fork_with_sigterm("false")
        assert outcome.exit_code == 1

    @pytest.mark.asyncio
    async def test_exit_code_passthrough(self):
        """测试透传子进程退出码"""
        outcome = await fork_with_sigterm("sh", ["-c", "exit 42"])
        assert outcome.code == 42

    @pytest.mark.asyncio
    async def test_missing_executable(self):
        """测试可执行文件不存在"""
        with pytest.raises(SpawnError) as exc_info:
            await fork_with_sigterm("tracebuild-definitely-missing-program")
        assert exc_info.value.suggested_exit_code == 71

    @pytest.mark.asyncio
    async def test_forwards_sigterm(self):
        """测试进程收到 SIGTERM 后转发给子进程，并返回子进程自己的退出码"""
        loop = asyncio.get_running_loop()
        loop.call_later(0.5, os.kill, os.getpid(), signal.SIGTERM)
        outcome = await asyncio.wait_for(fork_with_sigterm("sh", ["-c", TRAP_SCRIPT]), 10)
        assert outcome.code == 7

    @pytest.mark.asyncio
    async def test_listener_removed_after_completion(self):
        """测试结束后注销 SIGTERM 处理器"""
        await fork_with_sigterm("true")
        loop = asyncio.get_running_loop()
        assert not loop.remove_signal_handler(signal.SIGTERM)


@posix_only
class TestRunToCompletion:
    """run_to_completion 测试"""

    @pytest.mark.asyncio
    async def test_spawn_state(self):
        """测试子进程状态"""
        handle = await spawn("sh", ["-c", "exit 0"])
        assert handle.args == ["-c", "exit 0"]
        outcome = await run_to_completion(handle)
        assert outcome.exit_code == 0
        assert handle.state == SupervisorState.TERMINATED

    @pytest.mark.asyncio
    async def test_termination_request_forwarded(self):
        """测试终止请求被转发给子进程"""
        with TerminationListener().install() as listener:
            handle = await spawn("sh", ["-c", TRAP_SCRIPT])
            assert handle.state == SupervisorState.RUNNING
            task = asyncio.ensure_future(run_to_completion(handle, listener))
            await asyncio.sleep(0.5)
            listener.request()
            outcome = await asyncio.wait_for(task, 10)
        assert listener.requested
        assert outcome.code == 7

    @pytest.mark.asyncio
    async def test_plain_child_terminated(self):
        """测试未处理 SIGTERM 的子进程被信号终止，退出码为 1"""
        with TerminationListener().install() as listener:
            handle = await spawn("sleep", ["30"])
            task = asyncio.ensure_future(run_to_completion(handle, listener))
            await asyncio.sleep(0.1)
            listener.request()
            outcome = await asyncio.wait_for(task, 10)
        assert outcome.code is None
        assert outcome.exit_code == 1

    @pytest.mark.asyncio
    async def test_completion_wins_over_request(self, monkeypatch):
        """测试子进程已退出时不再转发终止请求"""
        forwarded = []
        monkeypatch.setattr(
            "tracebuild.process.supervisor.request_graceful_termination",
            lambda process: forwarded.append(process) or True,
        )
        with TerminationListener().install() as listener:
            handle = await spawn("true")
            await handle.process.wait()
            listener.request()
            outcome = await run_to_completion(handle, listener)
        assert outcome.exit_code == 0
        assert forwarded == []

    @pytest.mark.asyncio
    async def test_kill_when_graceful_unsupported(self, monkeypatch):
        """测试不支持优雅终止时强制结束子进程"""
        monkeypatch.setattr(
            "tracebuild.process.supervisor.request_graceful_termination",
            lambda process: False,
        )
        with TerminationListener().install() as listener:
            handle = await spawn("sleep", ["30"])
            task = asyncio.ensure_future(run_to_completion(handle, listener))
            await asyncio.sleep(0.1)
            listener.request()
            with pytest.raises(ChildKilledError) as exc_info:
                await asyncio.wait_for(task, 10)
        assert exc_info.value.suggested_exit_code == 1
        assert handle.state == SupervisorState.TERMINATED


@posix_only
class TestTermination:
    """终止请求测试"""

    @pytest.mark.asyncio
    async def test_forward_to_exited_child(self):
        """测试向已退出的子进程转发只记录日志"""
        handle = await spawn("true")
        await handle.process.wait()
        assert request_graceful_termination(handle.process) is True

    @pytest.mark.asyncio
    async def test_listener_request(self):
        """测试手动请求终止"""
        with TerminationListener().install() as listener:
            assert not listener.requested
            listener.request()
            await asyncio.wait_for(listener.wait(), 1)
            assert listener.requested

    @pytest.mark.asyncio
    async def test_install_failure(self):
        """测试注册失败"""

        class BrokenLoop:
            def add_signal_handler(self, sig, callback):
                raise RuntimeError("no signals here")

        with pytest.raises(SignalSetupError) as exc_info:
            TerminationListener().install(BrokenLoop())
        assert exc_info.value.suggested_exit_code == 71
