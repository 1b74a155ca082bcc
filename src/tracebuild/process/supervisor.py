# -*- coding: utf-8 -*-
"""
子进程监控

启动子命令，同时等待：
1. 子进程自然退出
2. tracebuild 自身收到终止请求

收到终止请求时转发给子进程并继续等待其退出码；
两者同时就绪时以子进程退出为准，不再转发。
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from tracebuild.errors import ChildIoError, ChildKilledError, SpawnError
from tracebuild.process.termination import (
    TerminationListener,
    request_graceful_termination,
)

logger = logging.getLogger(__name__)


class SupervisorState(str, Enum):
    """子进程状态"""
    RUNNING = "running"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class ExitOutcome:
    """
    子进程退出结果

    Attributes:
        returncode: asyncio 返回码，被信号终止时为负数
    """
    returncode: int

    @property
    def code(self) -> Optional[int]:
        """子进程退出码；被信号终止时没有退出码"""
        if self.returncode < 0:
            return None
        return self.returncode

    @property
    def exit_code(self) -> int:
        """转换后的进程退出码"""
        code = self.code
        return 1 if code is None else code


class ProcessHandle:
    """已启动的子进程"""

    def __init__(self, cmd: str, args: Sequence[str], process: asyncio.subprocess.Process):
        self.cmd = cmd
        self.args: List[str] = list(args)
        self.process = process

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def state(self) -> SupervisorState:
        if self.process.returncode is None:
            return SupervisorState.RUNNING
        return SupervisorState.TERMINATED

    def __repr__(self) -> str:
        return f"ProcessHandle(cmd={self.cmd!r}, pid={self.pid}, state={self.state.value})"


async def spawn(cmd: str, args: Sequence[str] = ()) -> ProcessHandle:
    """
    启动子进程

    子进程继承 tracebuild 的 stdin/stdout/stderr。

    Raises:
        SpawnError: 可执行文件不存在或无法执行
    """
    try:
        process = await asyncio.create_subprocess_exec(cmd, *args)
    except OSError as e:
        raise SpawnError(cmd, e) from e

    logger.debug("Spawned child program %s with pid %d", cmd, process.pid)
    return ProcessHandle(cmd, args, process)


async def run_to_completion(
    handle: ProcessHandle,
    listener: Optional[TerminationListener] = None,
) -> ExitOutcome:
    """
    等待子进程结束

    Args:
        handle: 子进程
        listener: 已注册的终止请求监听器；为 None 时在此注册并在返回前注销

    Returns:
        ExitOutcome

    Raises:
        SignalSetupError: 无法注册终止请求监听
        ChildIoError: 等待子进程时发生 OS 错误
        ChildKilledError: 平台不支持优雅终止，子进程被强制结束
    """
    owned = listener is None
    if owned:
        listener = TerminationListener().install()

    process = handle.process
    wait_task = asyncio.ensure_future(process.wait())
    term_task = asyncio.ensure_future(listener.wait())
    try:
        done, _ = await asyncio.wait(
            {wait_task, term_task},
            return_when=asyncio.FIRST_COMPLETED,
        )
        if wait_task not in done:
            await _terminate(handle)
        returncode = await wait_task
    except OSError as e:
        raise ChildIoError(e) from e
    finally:
        term_task.cancel()
        if not wait_task.done():
            wait_task.cancel()
        if owned:
            listener.close()

    logger.debug("Child program %s exited with %d", handle.cmd, returncode)
    return ExitOutcome(returncode)


async def _terminate(handle: ProcessHandle) -> None:
    """转发终止请求；不支持时强制结束子进程并抛出 ChildKilledError"""
    process = handle.process
    if process.returncode is not None:
        return

    logger.info("Forwarding termination request to child program %s (pid %d)", handle.cmd, handle.pid)
    if request_graceful_termination(process):
        return

    try:
        process.kill()
    except ProcessLookupError as e:
        logger.warning("Failed to kill child process %d: %s", handle.pid, e)
    await process.wait()
    raise ChildKilledError(handle.pid)


async def fork_with_sigterm(cmd: str, args: Sequence[str] = ()) -> ExitOutcome:
    """
    启动子进程并等待结束，期间把终止请求转发给子进程

    先注册监听再启动子进程，注册失败时不会留下无人监管的子进程。
    """
    with TerminationListener().install() as listener:
        handle = await spawn(cmd, args)
        return await run_to_completion(handle, listener)
