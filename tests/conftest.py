#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
pytest 配置文件

提供测试夹具和配置
"""

import logging
import sys
from pathlib import Path
from typing import Callable, List

import pytest

# 将 src 目录添加到 Python 路径
ROOT_DIR = Path(__file__).parent.parent
SRC_DIR = ROOT_DIR / "src"
sys.path.insert(0, str(SRC_DIR))

from opentelemetry.sdk.metrics.export import InMemoryMetricReader, MetricReader
from opentelemetry.sdk.trace.export import SpanExporter
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from tracebuild.opentelemetry.config import ResourceConfig
from tracebuild.opentelemetry.ids import PresetIdGenerator
from tracebuild.opentelemetry.metric.meter import Meter, PushExporterBuilder
from tracebuild.opentelemetry.pipeline import Pipeline
from tracebuild.opentelemetry.resource import create_resource
from tracebuild.opentelemetry.tracer.tracer import Tracer, TracerExporterBuilder


class MemorySpanExporterBuilder(TracerExporterBuilder):
    """返回给定内存导出器的构建器"""

    def __init__(self, exporter: SpanExporter):
        self._exporter = exporter

    def build(self) -> SpanExporter:
        return self._exporter


class MemoryMetricReaderBuilder(PushExporterBuilder):
    """返回给定内存 MetricReader 的构建器"""

    def __init__(self, reader: MetricReader):
        self._reader = reader

    def build(self) -> MetricReader:
        return self._reader


@pytest.fixture(scope="session")
def project_root() -> Path:
    """项目根目录"""
    return ROOT_DIR


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    """内存 Span 导出器"""
    return InMemorySpanExporter()


@pytest.fixture
def metric_reader() -> InMemoryMetricReader:
    """内存 MetricReader"""
    return InMemoryMetricReader()


@pytest.fixture
def pipeline(span_exporter, metric_reader):
    """导出到内存的已安装管道"""
    resource = create_resource(ResourceConfig(service_name="tracebuild-test"))
    ids = PresetIdGenerator()
    tracer = Tracer(
        resource=resource,
        exporter_builder=MemorySpanExporterBuilder(span_exporter),
        id_generator=ids,
        use_batch_processor=False,
    )
    meter = Meter(
        resource=resource,
        push_exporter_builder=MemoryMetricReaderBuilder(metric_reader),
    )
    pipeline = Pipeline(tracer, meter, ids).install()
    yield pipeline
    pipeline.shutdown()


@pytest.fixture
def metric_points(metric_reader) -> Callable[[str], List]:
    """按指标名获取数据点"""

    def collect(name: str) -> List:
        data = metric_reader.get_metrics_data()
        if data is None:
            return []
        points = []
        for resource_metrics in data.resource_metrics:
            for scope_metrics in resource_metrics.scope_metrics:
                for metric in scope_metrics.metrics:
                    if metric.name == name:
                        points.extend(metric.data.data_points)
        return points

    return collect


@pytest.fixture
def restore_logging():
    """测试结束后恢复根日志记录器"""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)
