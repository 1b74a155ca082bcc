# -*- coding: utf-8 -*-
"""Jaeger Trace 导出器"""

from tracebuild.opentelemetry.tracer.jaeger.exporter import JaegerTraceExporterBuilder

__all__ = ["JaegerTraceExporterBuilder"]
