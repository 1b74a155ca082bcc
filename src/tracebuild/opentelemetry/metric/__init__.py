# -*- coding: utf-8 -*-
"""
OpenTelemetry Metric 模块

提供指标收集功能：
- OTLP 导出器（Push 模式）
- Prometheus Push Gateway 导出器（Pull 模式，关闭前推送）
- Stdout 导出器（调试用）
- MeterProvider 管理
"""

from tracebuild.opentelemetry.metric.meter import (
    DURATION_BUCKETS,
    Meter,
    MeterExporterBuilder,
    PullExporterBuilder,
    PushExporterBuilder,
    duration_views,
)

__all__ = [
    "DURATION_BUCKETS",
    "Meter",
    "MeterExporterBuilder",
    "PullExporterBuilder",
    "PushExporterBuilder",
    "duration_views",
]
