# -*- coding: utf-8 -*-
"""
OpenTelemetry Tracer 核心实现

提供：
- TracerProvider 创建和管理
- 导出器接口定义

TracerProvider 不会注册为全局 Provider，由 Pipeline 显式持有。
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SimpleSpanProcessor,
    SpanExporter,
)
from opentelemetry.sdk.trace.id_generator import IdGenerator
from opentelemetry.sdk.trace.sampling import ALWAYS_ON, ParentBased

logger = logging.getLogger(__name__)

INSTRUMENTATION_NAME = "tracebuild"


class TracerExporterBuilder(ABC):
    """
    Tracer 导出器构建器接口

    所有导出器实现都需要实现此接口。
    """

    @abstractmethod
    def build(self) -> SpanExporter:
        """
        构建 SpanExporter

        Returns:
            SpanExporter 实例
        """
        pass


class Tracer:
    """
    Tracer 管理器

    负责：
    - 创建和配置 TracerProvider
    - 管理 SpanExporter
    - 关闭时导出剩余 Span
    """

    def __init__(
        self,
        resource: Resource,
        exporter_builder: Optional[TracerExporterBuilder] = None,
        id_generator: Optional[IdGenerator] = None,
        batch_timeout_ms: int = 5000,
        use_batch_processor: bool = True,
    ):
        """
        初始化 Tracer

        Args:
            resource: OpenTelemetry Resource
            exporter_builder: 导出器构建器，为 None 时不导出
            id_generator: ID 生成器
            batch_timeout_ms: 批量导出间隔（毫秒）
            use_batch_processor: 是否使用批量处理器
        """
        self._resource = resource
        self._exporter_builder = exporter_builder
        self._id_generator = id_generator
        self._batch_timeout_ms = batch_timeout_ms
        self._use_batch_processor = use_batch_processor
        self._provider: Optional[TracerProvider] = None

    def _create_span_processor(self, exporter: SpanExporter) -> SpanProcessor:
        """创建 Span 处理器"""
        if self._use_batch_processor:
            return BatchSpanProcessor(
                exporter,
                schedule_delay_millis=self._batch_timeout_ms,
            )
        return SimpleSpanProcessor(exporter)

    def install(self) -> TracerProvider:
        """
        安装 TracerProvider

        采样策略：有父上下文时跟随父上下文（命令行推导出的父上下文总是已采样），
        根 span 总是采样。

        Returns:
            TracerProvider 实例
        """
        provider = TracerProvider(
            resource=self._resource,
            sampler=ParentBased(ALWAYS_ON),
            id_generator=self._id_generator,
            shutdown_on_exit=False,
        )

        if self._exporter_builder:
            exporter = self._exporter_builder.build()
            provider.add_span_processor(self._create_span_processor(exporter))

        self._provider = provider

        logger.debug(
            "Tracer installed: exporter=%s, batch_timeout=%dms",
            type(self._exporter_builder).__name__ if self._exporter_builder else None,
            self._batch_timeout_ms,
        )

        return provider

    def get_tracer(self, name: str = INSTRUMENTATION_NAME) -> trace.Tracer:
        """获取 Tracer 实例"""
        if self._provider is None:
            raise RuntimeError("Tracer is not installed")
        return self._provider.get_tracer(name)

    def shutdown(self) -> None:
        """关闭 TracerProvider，导出剩余 Span"""
        if self._provider:
            self._provider.shutdown()
            self._provider = None
            logger.debug("Tracer shutdown completed")

    @property
    def provider(self) -> Optional[TracerProvider]:
        """获取 TracerProvider"""
        return self._provider
