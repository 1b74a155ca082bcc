# -*- coding: utf-8 -*-
"""
Jaeger Trace 导出器

- 默认通过 UDP 发送到 Jaeger agent
- 配置了 collector 端点时通过 HTTP 直接发送到 collector

依赖 opentelemetry-exporter-jaeger-thrift（pip install tracebuild[jaeger]）。
未安装时 build() 抛出 ImportError，由 Pipeline 降级处理。
"""

import logging

from opentelemetry.sdk.trace.export import SpanExporter

from tracebuild.opentelemetry.tracer.tracer import TracerExporterBuilder

logger = logging.getLogger(__name__)


class JaegerTraceExporterBuilder(TracerExporterBuilder):
    """
    Jaeger Trace 导出器构建器

    示例:
        ```python
        builder = JaegerTraceExporterBuilder(agent_host="localhost", agent_port=6831)
        exporter = builder.build()
        ```
    """

    def __init__(
        self,
        agent_host: str = "localhost",
        agent_port: int = 6831,
        collector_endpoint: str = "",
        timeout_ms: int = 5000,
    ):
        """
        初始化 Jaeger 导出器构建器

        Args:
            agent_host: Jaeger agent 地址
            agent_port: Jaeger agent 端口
            collector_endpoint: Jaeger collector HTTP 端点（非空时优先）
            timeout_ms: 超时时间（毫秒）
        """
        self._agent_host = agent_host
        self._agent_port = agent_port
        self._collector_endpoint = collector_endpoint
        self._timeout_ms = timeout_ms

    def build(self) -> SpanExporter:
        """构建 SpanExporter"""
        from opentelemetry.exporter.jaeger.thrift import JaegerExporter

        if self._collector_endpoint:
            exporter = JaegerExporter(
                collector_endpoint=self._collector_endpoint,
                timeout=int(self._timeout_ms / 1000),
            )
            logger.debug("Jaeger collector exporter created: endpoint=%s", self._collector_endpoint)
            return exporter

        exporter = JaegerExporter(
            agent_host_name=self._agent_host,
            agent_port=self._agent_port,
            udp_split_oversized_batches=True,
        )
        logger.debug(
            "Jaeger agent exporter created: agent=%s:%d",
            self._agent_host,
            self._agent_port,
        )
        return exporter
