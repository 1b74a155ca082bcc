# -*- coding: utf-8 -*-
"""
终止请求监听与转发

- POSIX：通过事件循环监听 SIGTERM，并向子进程转发 SIGTERM
- 不支持事件循环信号处理的平台（Windows）：监听中断请求（SIGINT），
  且无法优雅终止子进程
"""

import asyncio
import logging
import signal
import sys
from typing import Callable, Optional

from tracebuild.errors import SignalSetupError

logger = logging.getLogger(__name__)


def supports_graceful_termination() -> bool:
    """当前平台是否支持向子进程转发优雅终止请求"""
    return sys.platform != "win32"


def request_graceful_termination(process: asyncio.subprocess.Process) -> bool:
    """
    请求子进程优雅退出

    子进程已经退出时只记录日志。

    Args:
        process: 子进程

    Returns:
        平台是否支持优雅终止；返回 False 时调用方需要自行强制结束子进程
    """
    if not supports_graceful_termination():
        return False

    try:
        process.send_signal(signal.SIGTERM)
    except ProcessLookupError as e:
        logger.warning("Failed to forward SIGTERM to child process %s: %s", process.pid, e)
    return True


class TerminationListener:
    """
    终止请求监听器

    需要在事件循环内创建。

    示例:
        ```python
        with TerminationListener().install() as listener:
            await listener.wait()
        ```
    """

    def __init__(self):
        self._event = asyncio.Event()
        self._uninstall: Optional[Callable[[], None]] = None

    def install(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> "TerminationListener":
        """
        注册监听

        Raises:
            SignalSetupError: 无法注册信号处理器
        """
        if loop is None:
            loop = asyncio.get_running_loop()

        try:
            loop.add_signal_handler(signal.SIGTERM, self.request)
        except NotImplementedError:
            self._install_interrupt_handler(loop)
        except (RuntimeError, ValueError, OSError) as e:
            raise SignalSetupError(e) from e
        else:
            self._uninstall = lambda: loop.remove_signal_handler(signal.SIGTERM)

        return self

    def _install_interrupt_handler(self, loop: asyncio.AbstractEventLoop) -> None:
        def handler(signum, frame):
            loop.call_soon_threadsafe(self.request)

        try:
            previous = signal.signal(signal.SIGINT, handler)
        except (ValueError, OSError) as e:
            raise SignalSetupError(e) from e
        self._uninstall = lambda: signal.signal(signal.SIGINT, previous)

    def request(self) -> None:
        """标记收到终止请求"""
        if not self._event.is_set():
            logger.info("Termination requested")
        self._event.set()

    @property
    def requested(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        """等待终止请求"""
        await self._event.wait()

    def close(self) -> None:
        """注销监听"""
        if self._uninstall is not None:
            self._uninstall()
            self._uninstall = None

    def __enter__(self) -> "TerminationListener":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
