# -*- coding: utf-8 -*-
"""OTLP Trace 导出器"""

from tracebuild.opentelemetry.tracer.otlp.exporter import OTLPTraceExporterBuilder

__all__ = ["OTLPTraceExporterBuilder"]
