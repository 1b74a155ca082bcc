# -*- coding: utf-8 -*-
"""
子进程监控模块

- 启动子命令
- 转发终止请求
- 退出码转换
"""

from tracebuild.process.supervisor import (
    ExitOutcome,
    ProcessHandle,
    SupervisorState,
    fork_with_sigterm,
    run_to_completion,
    spawn,
)
from tracebuild.process.termination import (
    TerminationListener,
    request_graceful_termination,
    supports_graceful_termination,
)

__all__ = [
    "ExitOutcome",
    "ProcessHandle",
    "SupervisorState",
    "fork_with_sigterm",
    "run_to_completion",
    "spawn",
    "TerminationListener",
    "request_graceful_termination",
    "supports_graceful_termination",
]
