# -*- coding: utf-8 -*-
"""
遥测管道

按配置选择 trace 与 metric 导出器，安装 TracerProvider 和 MeterProvider，
并保证关闭（含 Push Gateway 推送）只执行一次。

状态流转：
    UNINITIALIZED -> INSTALLING -> INSTALLED -> SHUTTING_DOWN -> SHUTDOWN

安装失败时降级为不导出任何数据的管道，错误只记录日志，
不会影响被监控命令的结果。

示例:
    ```python
    pipeline = install_pipeline()
    try:
        with pipeline.tracer.start_as_current_span("work"):
            ...
    finally:
        pipeline.shutdown()
    ```
"""

import logging
import warnings
from enum import Enum
from typing import Mapping, Optional

from opentelemetry import metrics, trace

from tracebuild.errors import (
    PipelineInstallError,
    PipelineNotShutdownError,
    PipelineStateError,
)
from tracebuild.opentelemetry.config import (
    MetricConfig,
    MetricExporterType,
    OpenTelemetryConfig,
    TraceExporterType,
    TracerConfig,
    fallback_config,
    load_config,
)
from tracebuild.opentelemetry.ids import PresetIdGenerator
from tracebuild.opentelemetry.metric.meter import (
    Meter,
    PullExporterBuilder,
    PushExporterBuilder,
)
from tracebuild.opentelemetry.metric.otlp.exporter import OTLPMetricExporterBuilder
from tracebuild.opentelemetry.metric.prometheus.exporter import (
    PrometheusPushGatewayExporterBuilder,
)
from tracebuild.opentelemetry.metric.stdout.exporter import StdoutMetricExporterBuilder
from tracebuild.opentelemetry.resource import create_resource
from tracebuild.opentelemetry.tracer.jaeger.exporter import JaegerTraceExporterBuilder
from tracebuild.opentelemetry.tracer.otlp.exporter import OTLPTraceExporterBuilder
from tracebuild.opentelemetry.tracer.stdout.exporter import StdoutTraceExporterBuilder
from tracebuild.opentelemetry.tracer.tracer import Tracer, TracerExporterBuilder

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    """管道状态"""
    UNINITIALIZED = "uninitialized"
    INSTALLING = "installing"
    INSTALLED = "installed"
    SHUTTING_DOWN = "shutting_down"
    SHUTDOWN = "shutdown"


class Pipeline:
    """
    遥测管道

    持有 Tracer 与 Meter 管理器，以及 span id 预设用的 PresetIdGenerator。
    Provider 不注册为全局对象，调用方通过 ``pipeline.tracer`` / ``pipeline.meter`` 使用。
    """

    def __init__(
        self,
        tracer: Tracer,
        meter: Meter,
        id_generator: PresetIdGenerator,
        config: Optional[OpenTelemetryConfig] = None,
    ):
        """
        Args:
            tracer: Tracer 管理器，需使用 id_generator 创建
            meter: Meter 管理器
            id_generator: 预设 ID 生成器
            config: 创建管道使用的配置，仅用于日志
        """
        self._tracer = tracer
        self._meter = meter
        self._ids = id_generator
        self._config = config
        self._state = PipelineState.UNINITIALIZED

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def config(self) -> Optional[OpenTelemetryConfig]:
        return self._config

    def install(self) -> "Pipeline":
        """
        安装 TracerProvider 和 MeterProvider

        Returns:
            self

        Raises:
            PipelineStateError: 管道已经安装过
            PipelineInstallError: 构建导出器失败，已构建的部分已被关闭
        """
        if self._state != PipelineState.UNINITIALIZED:
            raise PipelineStateError(f"Pipeline cannot be installed in state {self._state.value}")

        self._state = PipelineState.INSTALLING
        try:
            self._tracer.install()
            self._meter.install()
        except Exception as e:
            self._release()
            self._state = PipelineState.SHUTDOWN
            raise PipelineInstallError(f"Failed to install telemetry pipeline: {e}") from e

        self._state = PipelineState.INSTALLED
        logger.debug("Telemetry pipeline installed")
        return self

    def _require_installed(self) -> None:
        if self._state != PipelineState.INSTALLED:
            raise PipelineStateError(f"Pipeline is not installed (state {self._state.value})")

    @property
    def tracer(self) -> trace.Tracer:
        """获取 Tracer"""
        self._require_installed()
        return self._tracer.get_tracer()

    @property
    def meter(self) -> metrics.Meter:
        """获取 Meter"""
        self._require_installed()
        return self._meter.get_meter()

    @property
    def ids(self) -> PresetIdGenerator:
        """获取预设 ID 生成器"""
        self._require_installed()
        return self._ids

    def shutdown(self) -> None:
        """
        关闭管道

        先关闭 Tracer（导出剩余 span），再关闭 Meter（推送指标后关闭 Provider）。
        只执行一次，之后的调用不做任何事；错误只记录日志。
        """
        if self._state in (PipelineState.SHUTTING_DOWN, PipelineState.SHUTDOWN):
            return
        if self._state == PipelineState.UNINITIALIZED:
            self._state = PipelineState.SHUTDOWN
            return

        self._state = PipelineState.SHUTTING_DOWN
        self._release()
        self._state = PipelineState.SHUTDOWN
        logger.debug("Telemetry pipeline shutdown completed")

    def _release(self) -> None:
        try:
            self._tracer.shutdown()
        except Exception as e:
            logger.error("Failed to shutdown tracer: %s", e)

        try:
            self._meter.shutdown()
        except Exception as e:
            logger.error("Failed to shutdown meter: %s", e)

    def assert_shutdown(self) -> None:
        """
        检查已安装的管道是否已关闭

        Raises:
            PipelineNotShutdownError: 管道已安装但未调用 shutdown()
        """
        if self._state in (PipelineState.INSTALLED, PipelineState.INSTALLING):
            raise PipelineNotShutdownError("Telemetry pipeline was installed but not shut down")

    def __enter__(self) -> "Pipeline":
        if self._state == PipelineState.UNINITIALIZED:
            self.install()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()

    def __del__(self):
        if getattr(self, "_state", None) == PipelineState.INSTALLED:
            warnings.warn(
                "Telemetry pipeline was garbage collected without shutdown(); "
                "buffered spans and metrics are lost",
                ResourceWarning,
                stacklevel=2,
            )

    def __repr__(self) -> str:
        return f"Pipeline(state={self._state.value})"


def _create_tracer_exporter_builder(config: TracerConfig) -> Optional[TracerExporterBuilder]:
    """创建 Tracer 导出器构建器"""
    if config.exporter_type == TraceExporterType.OTLP:
        return OTLPTraceExporterBuilder(
            endpoint=config.otlp.endpoint,
            protocol=config.otlp.protocol,
            headers=config.otlp.headers,
            insecure=config.otlp.insecure,
            timeout_ms=int(config.otlp.timeout_seconds * 1000),
        )
    elif config.exporter_type == TraceExporterType.JAEGER:
        return JaegerTraceExporterBuilder(
            agent_host=config.jaeger.agent_host,
            agent_port=config.jaeger.agent_port,
            collector_endpoint=config.jaeger.collector_endpoint,
            timeout_ms=int(config.jaeger.timeout_seconds * 1000),
        )
    elif config.exporter_type == TraceExporterType.STDOUT:
        return StdoutTraceExporterBuilder(
            pretty_print=config.stdout.pretty_print,
        )

    return None


def _create_metric_push_exporter_builder(config: MetricConfig) -> Optional[PushExporterBuilder]:
    """创建 Metric Push 导出器构建器"""
    if config.exporter_type == MetricExporterType.OTLP:
        return OTLPMetricExporterBuilder(
            endpoint=config.otlp.endpoint,
            protocol=config.otlp.protocol,
            headers=config.otlp.headers,
            insecure=config.otlp.insecure,
            timeout_ms=int(config.otlp.timeout_seconds * 1000),
            export_interval_ms=int(config.collect_interval_seconds * 1000),
        )
    elif config.exporter_type == MetricExporterType.STDOUT:
        return StdoutMetricExporterBuilder(
            pretty_print=config.stdout.pretty_print,
            export_interval_ms=int(config.collect_interval_seconds * 1000),
        )

    return None


def _create_metric_pull_exporter_builder(config: MetricConfig) -> Optional[PullExporterBuilder]:
    """创建 Metric Pull 导出器构建器"""
    if config.exporter_type == MetricExporterType.PROMETHEUS:
        return PrometheusPushGatewayExporterBuilder(
            url=config.prometheus.url,
            timeout_ms=int(config.prometheus.timeout_seconds * 1000),
            enable_process_collector=config.prometheus.enable_process_collector,
        )

    return None


def build_pipeline(config: OpenTelemetryConfig) -> Pipeline:
    """
    按配置创建（未安装的）管道

    Args:
        config: OpenTelemetryConfig

    Returns:
        UNINITIALIZED 状态的 Pipeline
    """
    resource = create_resource(config.resource)
    ids = PresetIdGenerator()

    tracer_builder = _create_tracer_exporter_builder(config.tracer)
    tracer = Tracer(
        resource=resource,
        exporter_builder=tracer_builder,
        id_generator=ids,
        batch_timeout_ms=int(config.tracer.batch_timeout_seconds * 1000),
        use_batch_processor=config.tracer.exporter_type != TraceExporterType.STDOUT,
    )

    meter = Meter(
        resource=resource,
        push_exporter_builder=_create_metric_push_exporter_builder(config.metric),
        pull_exporter_builder=_create_metric_pull_exporter_builder(config.metric),
    )

    return Pipeline(tracer, meter, ids, config=config)


def install_pipeline(environ: Optional[Mapping[str, str]] = None) -> Pipeline:
    """
    从环境变量读取配置并安装管道

    配置非法或导出器构建失败时降级为 fallback_config，保证一定返回已安装的管道。

    Args:
        environ: 环境变量，默认 os.environ

    Returns:
        INSTALLED 状态的 Pipeline
    """
    config: Optional[OpenTelemetryConfig] = None
    try:
        config = load_config(environ)
        pipeline = build_pipeline(config).install()
    except PipelineInstallError as e:
        logger.error("%s; falling back to exporters none", e)
    except Exception as e:
        logger.error(
            "%s; falling back to exporters none",
            PipelineInstallError(f"Failed to load telemetry configuration: {e}"),
        )
    else:
        logger.debug(
            "Telemetry pipeline installed: traces=%s, metrics=%s",
            config.tracer.exporter_type.value,
            config.metric.exporter_type.value,
        )
        return pipeline

    return build_pipeline(fallback_config(config)).install()
