# -*- coding: utf-8 -*-
"""
OTLP Metric 导出器

支持：
- gRPC 协议（默认）
- HTTP 协议
- 自定义 Headers
"""

import logging
from typing import Dict, Optional

from opentelemetry.sdk.metrics.export import MetricReader, PeriodicExportingMetricReader

from tracebuild.opentelemetry.config import DEFAULT_OTLP_ENDPOINT, OTLPProtocol
from tracebuild.opentelemetry.metric.meter import PushExporterBuilder

logger = logging.getLogger(__name__)


class OTLPMetricExporterBuilder(PushExporterBuilder):
    """
    OTLP Metric 导出器构建器

    指标由 PeriodicExportingMetricReader 周期导出，
    MeterProvider 关闭时会再导出一次。

    示例:
        ```python
        builder = OTLPMetricExporterBuilder(
            endpoint="https://localhost:4317",
            protocol=OTLPProtocol.GRPC,
        )
        reader = builder.build()
        ```
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_OTLP_ENDPOINT,
        protocol: OTLPProtocol = OTLPProtocol.GRPC,
        headers: Optional[Dict[str, str]] = None,
        insecure: Optional[bool] = None,
        timeout_ms: int = 5000,
        export_interval_ms: int = 60000,
    ):
        """
        初始化 OTLP Metric 导出器构建器

        Args:
            endpoint: OTLP 端点地址
            protocol: 协议类型（grpc/http）
            headers: 请求头
            insecure: 是否禁用 TLS，None 时由端点 scheme 决定
            timeout_ms: 超时时间（毫秒）
            export_interval_ms: 导出间隔（毫秒）
        """
        self._endpoint = endpoint
        self._protocol = protocol
        self._headers = headers or {}
        self._insecure = insecure
        self._timeout_ms = timeout_ms
        self._export_interval_ms = export_interval_ms

    def build(self) -> MetricReader:
        """构建 MetricReader"""
        if self._protocol == OTLPProtocol.HTTP:
            exporter = self._build_http_exporter()
        else:
            exporter = self._build_grpc_exporter()

        return PeriodicExportingMetricReader(
            exporter=exporter,
            export_interval_millis=self._export_interval_ms,
            export_timeout_millis=self._timeout_ms,
        )

    def _build_http_exporter(self):
        """构建 HTTP 导出器"""
        from opentelemetry.exporter.otlp.proto.http.metric_exporter import (
            OTLPMetricExporter,
        )

        # 构建端点 URL
        endpoint = self._endpoint
        if not endpoint.startswith("http"):
            scheme = "https" if self._insecure is False else "http"
            endpoint = f"{scheme}://{endpoint}"
        if not endpoint.endswith("/v1/metrics"):
            endpoint = f"{endpoint.rstrip('/')}/v1/metrics"

        exporter = OTLPMetricExporter(
            endpoint=endpoint,
            headers=self._headers,
            timeout=self._timeout_ms / 1000,
        )

        logger.debug("OTLP HTTP Metric exporter created: endpoint=%s", endpoint)

        return exporter

    def _build_grpc_exporter(self):
        """构建 gRPC 导出器"""
        from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import (
            OTLPMetricExporter,
        )

        exporter = OTLPMetricExporter(
            endpoint=self._endpoint,
            headers=self._headers if self._headers else None,
            timeout=self._timeout_ms / 1000,
            insecure=self._insecure,
        )

        logger.debug(
            "OTLP gRPC Metric exporter created: endpoint=%s, insecure=%s",
            self._endpoint,
            self._insecure,
        )

        return exporter
