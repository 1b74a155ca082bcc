# -*- coding: utf-8 -*-
"""
tracebuild 错误定义

每个错误携带 suggested_exit_code，供命令行层转换为进程退出码。
遥测相关的错误（PipelineInstallError / ExportPushError）只会被记录日志，
不会影响被监控命令的退出码。
"""

from typing import Optional

# From https://man.netbsd.org/sysexits.3
EX_OSERR = 71


class TracebuildError(Exception):
    """tracebuild 错误基类"""

    suggested_exit_code: int = 1


class MalformedIdError(TracebuildError, ValueError):
    """Build/Step ID 格式错误"""

    pass


class MalformedTimestampError(TracebuildError, ValueError):
    """时间戳格式错误"""

    pass


class MalformedStatusError(TracebuildError, ValueError):
    """状态格式错误"""

    pass


class ForkError(TracebuildError):
    """子进程监控错误基类"""

    pass


class SpawnError(ForkError):
    """子进程无法启动"""

    suggested_exit_code = EX_OSERR

    def __init__(self, cmd: str, err: OSError):
        super().__init__(f"Failed to fork child program {cmd}: {err}")
        self.cmd = cmd
        self.err = err


class SignalSetupError(ForkError):
    """无法注册终止信号监听"""

    suggested_exit_code = EX_OSERR

    def __init__(self, err: BaseException):
        super().__init__(f"Failed to register SIGTERM handler: {err}")
        self.err = err


class ChildIoError(ForkError):
    """等待子进程时发生 OS 错误"""

    def __init__(self, err: OSError):
        super().__init__(f"Child program failed: {err}")
        self.err = err

    @property
    def suggested_exit_code(self) -> int:
        return self.err.errno or 1


class ChildKilledError(ForkError):
    """无法优雅终止，子进程已被强制杀死"""

    def __init__(self, pid: Optional[int] = None):
        super().__init__(
            f"Child program {pid} was killed; graceful termination is not supported on this platform"
        )
        self.pid = pid


class PipelineInstallError(TracebuildError):
    """遥测管道安装失败（会触发降级）"""

    pass


class ExportPushError(TracebuildError):
    """指标推送失败"""

    pass


class PipelineStateError(TracebuildError):
    """管道状态不允许当前操作"""

    pass


class PipelineNotShutdownError(PipelineStateError):
    """已安装的管道未被关闭"""

    pass
