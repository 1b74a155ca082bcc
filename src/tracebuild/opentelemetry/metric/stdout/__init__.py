# -*- coding: utf-8 -*-
"""Stdout Metric 导出器"""

from tracebuild.opentelemetry.metric.stdout.exporter import StdoutMetricExporterBuilder

__all__ = ["StdoutMetricExporterBuilder"]
