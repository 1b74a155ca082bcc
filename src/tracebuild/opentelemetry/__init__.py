# -*- coding: utf-8 -*-
"""
tracebuild OpenTelemetry 模块

- 环境变量驱动的配置
- Trace 导出：OTLP / Jaeger / Stdout / none
- Metric 导出：OTLP / Prometheus Push Gateway / Stdout / none
- 安装失败自动降级的遥测管道
"""

from tracebuild.opentelemetry.config import (
    MetricExporterType,
    OpenTelemetryConfig,
    TraceExporterType,
    fallback_config,
    load_config,
)
from tracebuild.opentelemetry.ids import PresetIdGenerator
from tracebuild.opentelemetry.pipeline import (
    Pipeline,
    PipelineState,
    build_pipeline,
    install_pipeline,
)

__all__ = [
    "MetricExporterType",
    "OpenTelemetryConfig",
    "TraceExporterType",
    "fallback_config",
    "load_config",
    "PresetIdGenerator",
    "Pipeline",
    "PipelineState",
    "build_pipeline",
    "install_pipeline",
]
