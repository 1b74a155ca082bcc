# -*- coding: utf-8 -*-
"""
OpenTelemetry Tracer 模块

提供分布式追踪功能：
- OTLP 导出器（gRPC/HTTP）
- Jaeger 导出器
- Stdout 导出器（调试用）
- TracerProvider 管理
"""

from tracebuild.opentelemetry.tracer.tracer import (
    INSTRUMENTATION_NAME,
    Tracer,
    TracerExporterBuilder,
)

__all__ = [
    "INSTRUMENTATION_NAME",
    "Tracer",
    "TracerExporterBuilder",
]
