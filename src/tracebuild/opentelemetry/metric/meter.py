# -*- coding: utf-8 -*-
"""
OpenTelemetry Meter 核心实现

提供：
- MeterProvider 创建和管理
- Push/Pull 两种导出模式
- 关闭前的一次性 flush（Pull 模式的推送）

MeterProvider 不会注册为全局 Provider，由 Pipeline 显式持有。
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from opentelemetry import metrics
from opentelemetry.sdk.metrics import Histogram, MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader
from opentelemetry.sdk.metrics.view import ExplicitBucketHistogramAggregation, View
from opentelemetry.sdk.resources import Resource

from tracebuild.errors import ExportPushError

logger = logging.getLogger(__name__)

INSTRUMENTATION_NAME = "tracebuild"

# 耗时直方图的分桶边界（秒）
DURATION_BUCKETS = (0.0, 1.0, 10.0, 100.0, 1000.0)


def duration_views() -> Sequence[View]:
    """耗时直方图使用固定分桶"""
    return [
        View(
            instrument_type=Histogram,
            aggregation=ExplicitBucketHistogramAggregation(boundaries=DURATION_BUCKETS),
        )
    ]


class MeterExporterBuilder(ABC):
    """
    Meter 导出器构建器基类

    所有导出器实现都需要继承此类。
    """

    @abstractmethod
    def build(self) -> MetricReader:
        """
        构建 MetricReader

        Returns:
            MetricReader 实例
        """
        pass

    def flush(self) -> None:
        """在 MeterProvider 关闭前调用，默认无操作"""
        pass


class PushExporterBuilder(MeterExporterBuilder):
    """
    Push 模式导出器构建器基类

    用于 OTLP、Stdout 等主动推送的导出器，关闭 MeterProvider 时由 SDK 完成最后一次导出。
    """
    pass


class PullExporterBuilder(MeterExporterBuilder):
    """
    Pull 模式导出器构建器基类

    用于 Prometheus 等被动拉取的导出器。进程生命周期太短无法被拉取，
    需要在 flush() 中把缓存的指标推送出去。
    """
    pass


class Meter:
    """
    Meter 管理器

    负责：
    - 创建和配置 MeterProvider
    - 管理导出器
    - 关闭时先 flush Pull 导出器，再关闭 MeterProvider
    """

    def __init__(
        self,
        resource: Resource,
        push_exporter_builder: Optional[PushExporterBuilder] = None,
        pull_exporter_builder: Optional[PullExporterBuilder] = None,
        views: Optional[Sequence[View]] = None,
    ):
        """
        初始化 Meter

        Args:
            resource: OpenTelemetry Resource
            push_exporter_builder: Push 导出器构建器（OTLP/Stdout）
            pull_exporter_builder: Pull 导出器构建器（Prometheus）
            views: 自定义 View，默认使用耗时直方图分桶
        """
        self._resource = resource
        self._push_exporter_builder = push_exporter_builder
        self._pull_exporter_builder = pull_exporter_builder
        self._views = list(views) if views is not None else list(duration_views())
        self._provider: Optional[MeterProvider] = None

    def install(self) -> MeterProvider:
        """
        安装 MeterProvider

        Returns:
            MeterProvider 实例
        """
        readers = []

        # Push 导出器
        if self._push_exporter_builder:
            readers.append(self._push_exporter_builder.build())

        # Pull 导出器
        if self._pull_exporter_builder:
            readers.append(self._pull_exporter_builder.build())

        self._provider = MeterProvider(
            resource=self._resource,
            metric_readers=readers,
            views=self._views,
            shutdown_on_exit=False,
        )

        logger.debug("Meter installed: readers=%d", len(readers))

        return self._provider

    def get_meter(self, name: str = INSTRUMENTATION_NAME) -> metrics.Meter:
        """获取 Meter 实例"""
        if self._provider is None:
            raise RuntimeError("Meter is not installed")
        return self._provider.get_meter(name)

    def shutdown(self) -> None:
        """
        关闭 MeterProvider

        Pull 导出器的推送失败只记录日志。
        """
        if not self._provider:
            return

        try:
            if self._pull_exporter_builder:
                self._pull_exporter_builder.flush()
        except ExportPushError as e:
            logger.error("Failed to push metrics: %s", e)
        finally:
            self._provider.shutdown()
            self._provider = None
        logger.debug("Meter shutdown completed")

    @property
    def provider(self) -> Optional[MeterProvider]:
        """获取 MeterProvider"""
        return self._provider
