# -*- coding: utf-8 -*-
"""
子命令实现

- cmd：运行子命令并上报 CLIENT span
- step：上报一个已经结束的 step span
- build：上报 build 根 span

每个子命令还会记录一个耗时直方图指标。
"""

import logging
import sys
import time
from typing import Mapping, Optional, Sequence, Union

from opentelemetry import metrics, trace
from opentelemetry.context import Context
from opentelemetry.trace import SpanKind, StatusCode

from tracebuild.context import derive_parent
from tracebuild.errors import ForkError
from tracebuild.id import BuildId, StepId
from tracebuild.opentelemetry.pipeline import Pipeline
from tracebuild.process import fork_with_sigterm
from tracebuild.status import Status
from tracebuild.timestamp import Timestamp

logger = logging.getLogger(__name__)

# span 属性
ATTR_CMD_COMMAND = "tracebuild.cmd.command"
ATTR_CMD_ARGUMENTS = "tracebuild.cmd.arguments"
ATTR_CMD_EXIT_CODE = "tracebuild.cmd.exit_code"
ATTR_BUILD_BRANCH = "tracebuild.build.branch"
ATTR_BUILD_COMMIT = "tracebuild.build.commit"

# 指标标签
LABEL_NAME = "tracebuild.name"
LABEL_EXIT_CODE = "tracebuild.exit_code"
LABEL_BRANCH = "tracebuild.branch"
LABEL_STATUS = "tracebuild.status"

METRIC_CMD_DURATION = "tracebuild.cmd.duration"
METRIC_STEP_DURATION = "tracebuild.step.duration"
METRIC_BUILD_DURATION = "tracebuild.build.duration"


def record_duration_metric(
    meter: metrics.Meter,
    name: str,
    duration_seconds: int,
    labels: Mapping[str, Union[str, int]],
) -> None:
    """
    记录一次整秒耗时

    Args:
        meter: Meter
        name: 指标名
        duration_seconds: 耗时（秒）
        labels: 指标标签
    """
    try:
        histogram = meter.create_histogram(name, unit="s")
        histogram.record(duration_seconds, attributes=dict(labels))
    except Exception as e:
        logger.error("Failed to record metric %s: %s", name, e)


def _elapsed_seconds(start: float) -> int:
    """从 start（time.time() 的返回值）到现在经过的整秒数，向下取整"""
    return max(0, int(time.time() - start))

def _span_name(kind: str, name: Optional[str]) -> str:
    if name is None:
        return kind
    return f"{kind} - {name}"


async def run_cmd(
    pipeline: Pipeline,
    build: BuildId,
    step: Optional[StepId],
    cmd: str,
    args: Sequence[str] = (),
) -> int:
    """
    运行子命令并上报 span 与耗时指标

    Args:
        pipeline: 已安装的遥测管道
        build: Build ID
        step: 父 Step ID
        cmd: 命令
        args: 命令参数

    Returns:
        进程退出码：子命令的退出码，或监控失败时的建议退出码
    """
    args = list(args)
    span = pipeline.tracer.start_span(
        _span_name("cmd", " ".join([cmd, *args])),
        context=derive_parent(build, step),
        kind=SpanKind.CLIENT,
        attributes={
            ATTR_CMD_COMMAND: cmd,
            ATTR_CMD_ARGUMENTS: args,
        },
    )
    start = time.time()

    with trace.use_span(span, end_on_exit=True):
        try:
            outcome = await fork_with_sigterm(cmd, args)
        except ForkError as e:
            print(e, file=sys.stderr)
            span.record_exception(e)
            span.set_status(StatusCode.ERROR, str(e))
            exit_code = e.suggested_exit_code
        else:
            exit_code = outcome.exit_code
            span.set_attribute(ATTR_CMD_EXIT_CODE, exit_code)
            span.set_status(StatusCode.OK if exit_code == 0 else StatusCode.ERROR)

    record_duration_metric(
        pipeline.meter,
        METRIC_CMD_DURATION,
        _elapsed_seconds(start),
        {LABEL_NAME: cmd, LABEL_EXIT_CODE: exit_code},
    )
    return exit_code


def report_step(
    pipeline: Pipeline,
    build: BuildId,
    step: Optional[StepId],
    id: StepId,
    start_time: Timestamp,
    name: Optional[str] = None,
    status: Optional[Status] = None,
) -> None:
    """
    上报 step span

    span id 取自 id，父上下文由 build 与 step 推导，从 start_time 开始到现在结束。
    """
    with pipeline.ids.preset(span_id=id.span_id):
        span = pipeline.tracer.start_span(
            _span_name("step", name),
            context=derive_parent(build, step),
            kind=SpanKind.INTERNAL,
            start_time=start_time.nanos,
        )
    if status is not None:
        span.set_status(status.status_code)
    span.end()

    labels = {}
    if name is not None:
        labels[LABEL_NAME] = name
    if status is not None:
        labels[LABEL_STATUS] = str(status)
    record_duration_metric(pipeline.meter, METRIC_STEP_DURATION, start_time.elapsed_seconds(), labels)


def report_build(
    pipeline: Pipeline,
    id: BuildId,
    start_time: Timestamp,
    name: Optional[str] = None,
    branch: Optional[str] = None,
    commit: Optional[str] = None,
    status: Optional[Status] = None,
) -> None:
    """
    上报 build 根 span

    trace id 和 span id 都取自 id，使 cmd/step 推导出的父上下文指向它。
    """
    with pipeline.ids.preset(trace_id=id.trace_id, span_id=id.span_id):
        span = pipeline.tracer.start_span(
            _span_name("build", name),
            context=Context(),
            kind=SpanKind.INTERNAL,
            start_time=start_time.nanos,
        )
    if branch is not None:
        span.set_attribute(ATTR_BUILD_BRANCH, branch)
    if commit is not None:
        span.set_attribute(ATTR_BUILD_COMMIT, commit)
    if status is not None:
        span.set_status(status.status_code)
    span.end()

    labels = {}
    if name is not None:
        labels[LABEL_NAME] = name
    if branch is not None:
        labels[LABEL_BRANCH] = branch
    if status is not None:
        labels[LABEL_STATUS] = str(status)
    record_duration_metric(pipeline.meter, METRIC_BUILD_DURATION, start_time.elapsed_seconds(), labels)
