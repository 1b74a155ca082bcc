# -*- coding: utf-8 -*-
"""
父上下文推导

根据命令行传入的 Build ID 和可选的 Step ID 构造远程父 SpanContext，
使互不相关的进程调用落在同一条 trace 中。
"""

from typing import Optional

from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.trace import NonRecordingSpan, SpanContext, TraceFlags

from tracebuild.id import BuildId, StepId


def derive_span_context(build: BuildId, step: Optional[StepId] = None) -> SpanContext:
    """
    推导父 SpanContext

    - trace_id 总是取 build 的 trace 部分
    - span_id 取 step 的 span 部分；没有 step 时取 build 自身的 span 部分，
      即 build 根 span 成为父节点

    结果总是 remote 且已采样。
    """
    span_id = step.span_id if step is not None else build.span_id
    return SpanContext(
        trace_id=build.trace_id,
        span_id=span_id,
        is_remote=True,
        trace_flags=TraceFlags(TraceFlags.SAMPLED),
    )


def derive_parent(build: BuildId, step: Optional[StepId] = None) -> Context:
    """
    推导父上下文

    返回的 Context 不依赖当前的 ambient context，可直接作为
    ``tracer.start_span(context=...)`` 的参数。
    """
    span_context = derive_span_context(build, step)
    return trace.set_span_in_context(NonRecordingSpan(span_context), Context())
