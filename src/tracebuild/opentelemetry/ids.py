# -*- coding: utf-8 -*-
"""
可预设的 ID 生成器

OpenTelemetry SDK 通过 IdGenerator 生成 trace/span id，
命令行传入的 Build/Step ID 需要原样成为 span 的 id，
因此在启动 span 前临时预设下一个 id。
"""

import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from opentelemetry.sdk.trace.id_generator import IdGenerator, RandomIdGenerator


class PresetIdGenerator(IdGenerator):
    """
    预设 ID 生成器

    未预设时退化为随机生成。

    示例:
        ```python
        ids = PresetIdGenerator()
        provider = TracerProvider(id_generator=ids)
        with ids.preset(trace_id=build.trace_id, span_id=build.span_id):
            span = tracer.start_span("build", context=Context())
        ```
    """

    def __init__(self):
        self._random = RandomIdGenerator()
        self._local = threading.local()

    @contextmanager
    def preset(
        self,
        trace_id: Optional[int] = None,
        span_id: Optional[int] = None,
    ) -> Iterator[None]:
        """在上下文内预设下一个 trace id / span id，只生效一次"""
        self._local.trace_id = trace_id
        self._local.span_id = span_id
        try:
            yield
        finally:
            self._local.trace_id = None
            self._local.span_id = None

    def generate_span_id(self) -> int:
        span_id = getattr(self._local, "span_id", None)
        if span_id is not None:
            self._local.span_id = None
            return span_id
        return self._random.generate_span_id()

    def generate_trace_id(self) -> int:
        trace_id = getattr(self._local, "trace_id", None)
        if trace_id is not None:
            self._local.trace_id = None
            return trace_id
        return self._random.generate_trace_id()
