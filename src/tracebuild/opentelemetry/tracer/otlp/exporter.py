# -*- coding: utf-8 -*-
"""
OTLP Trace 导出器

支持：
- gRPC 协议（默认）
- HTTP 协议
- 自定义 Headers
"""

import logging
from typing import Dict, Optional

from opentelemetry.sdk.trace.export import SpanExporter

from tracebuild.opentelemetry.config import DEFAULT_OTLP_ENDPOINT, OTLPProtocol
from tracebuild.opentelemetry.tracer.tracer import TracerExporterBuilder

logger = logging.getLogger(__name__)


class OTLPTraceExporterBuilder(TracerExporterBuilder):
    """
    OTLP Trace 导出器构建器

    示例:
        ```python
        builder = OTLPTraceExporterBuilder(
            endpoint="https://localhost:4317",
            protocol=OTLPProtocol.GRPC,
        )
        exporter = builder.build()
        ```
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_OTLP_ENDPOINT,
        protocol: OTLPProtocol = OTLPProtocol.GRPC,
        headers: Optional[Dict[str, str]] = None,
        insecure: Optional[bool] = None,
        timeout_ms: int = 5000,
    ):
        """
        初始化 OTLP Trace 导出器构建器

        Args:
            endpoint: OTLP 端点地址
            protocol: 协议类型（grpc/http）
            headers: 请求头
            insecure: 是否禁用 TLS，None 时由端点 scheme 决定
            timeout_ms: 超时时间（毫秒）
        """
        self._endpoint = endpoint
        self._protocol = protocol
        self._headers = headers or {}
        self._insecure = insecure
        self._timeout_ms = timeout_ms

    def build(self) -> SpanExporter:
        """构建 SpanExporter"""
        if self._protocol == OTLPProtocol.HTTP:
            return self._build_http_exporter()
        return self._build_grpc_exporter()

    def _build_http_exporter(self) -> SpanExporter:
        """构建 HTTP 导出器"""
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
            OTLPSpanExporter,
        )

        # 构建端点 URL
        endpoint = self._endpoint
        if not endpoint.startswith("http"):
            scheme = "https" if self._insecure is False else "http"
            endpoint = f"{scheme}://{endpoint}"
        if not endpoint.endswith("/v1/traces"):
            endpoint = f"{endpoint.rstrip('/')}/v1/traces"

        exporter = OTLPSpanExporter(
            endpoint=endpoint,
            headers=self._headers,
            timeout=self._timeout_ms / 1000,
        )

        logger.debug("OTLP HTTP Trace exporter created: endpoint=%s", endpoint)

        return exporter

    def _build_grpc_exporter(self) -> SpanExporter:
        """构建 gRPC 导出器"""
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
            OTLPSpanExporter,
        )

        exporter = OTLPSpanExporter(
            endpoint=self._endpoint,
            headers=self._headers if self._headers else None,
            timeout=self._timeout_ms / 1000,
            insecure=self._insecure,
        )

        logger.debug(
            "OTLP gRPC Trace exporter created: endpoint=%s, insecure=%s",
            self._endpoint,
            self._insecure,
        )

        return exporter
