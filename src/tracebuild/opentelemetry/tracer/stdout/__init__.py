# -*- coding: utf-8 -*-
"""Stdout Trace 导出器"""

from tracebuild.opentelemetry.tracer.stdout.exporter import StdoutTraceExporterBuilder

__all__ = ["StdoutTraceExporterBuilder"]
