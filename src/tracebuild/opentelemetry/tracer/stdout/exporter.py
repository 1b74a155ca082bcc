# -*- coding: utf-8 -*-
"""
Stdout Trace 导出器

用于调试，将 Span 输出到控制台。
"""

import json
import logging
import sys
from typing import Optional, TextIO

from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SpanExporter

from tracebuild.opentelemetry.tracer.tracer import TracerExporterBuilder

logger = logging.getLogger(__name__)


def format_span(span: ReadableSpan) -> str:
    """格式化为带缩进的 JSON，每个 span 一段"""
    return json.dumps(
        {
            "name": span.name,
            "kind": span.kind.name,
            "trace_id": format(span.context.trace_id, "032x"),
            "span_id": format(span.context.span_id, "016x"),
            "parent_id": format(span.parent.span_id, "016x") if span.parent else None,
            "start_time": span.start_time,
            "end_time": span.end_time,
            "status": span.status.status_code.name,
            "attributes": dict(span.attributes) if span.attributes else {},
        },
        indent=2,
        default=str,
    ) + "\n"


class StdoutTraceExporterBuilder(TracerExporterBuilder):
    """
    Stdout Trace 导出器构建器

    示例:
        ```python
        builder = StdoutTraceExporterBuilder(pretty_print=True)
        exporter = builder.build()
        ```
    """

    def __init__(
        self,
        pretty_print: bool = True,
        out: Optional[TextIO] = None,
    ):
        """
        初始化 Stdout 导出器构建器

        Args:
            pretty_print: 是否格式化输出
            out: 输出流（默认 stdout）
        """
        self._pretty_print = pretty_print
        self._out = out or sys.stdout

    def build(self) -> SpanExporter:
        """构建 SpanExporter"""
        if self._pretty_print:
            exporter = ConsoleSpanExporter(out=self._out, formatter=format_span)
        else:
            exporter = ConsoleSpanExporter(out=self._out)

        logger.debug("Stdout Trace exporter created: pretty_print=%s", self._pretty_print)

        return exporter
