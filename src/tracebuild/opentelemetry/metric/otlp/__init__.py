# -*- coding: utf-8 -*-
"""OTLP Metric 导出器"""

from tracebuild.opentelemetry.metric.otlp.exporter import OTLPMetricExporterBuilder

__all__ = ["OTLPMetricExporterBuilder"]
