# -*- coding: utf-8 -*-
"""Prometheus Push Gateway 导出器"""

from tracebuild.opentelemetry.metric.prometheus.exporter import (
    PrometheusPushGatewayExporterBuilder,
    sanitize_prometheus_key,
)

__all__ = [
    "PrometheusPushGatewayExporterBuilder",
    "sanitize_prometheus_key",
]
