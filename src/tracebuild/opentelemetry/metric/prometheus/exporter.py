# -*- coding: utf-8 -*-
"""
Prometheus Push Gateway 导出器

tracebuild 进程生命周期很短，无法被 Prometheus 拉取：
- 指标由 PrometheusMetricReader 缓存在 prometheus_client 的 Registry 中
- 关闭前把 Registry 编码为文本格式，一次性 POST 到 Push Gateway
"""

import logging
import re
from typing import Iterator, Optional

import requests
from opentelemetry.sdk.metrics.export import MetricReader
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    GC_COLLECTOR,
    PLATFORM_COLLECTOR,
    PROCESS_COLLECTOR,
    REGISTRY,
    generate_latest,
)
from prometheus_client.metrics_core import Metric
from prometheus_client.registry import CollectorRegistry

from tracebuild.errors import ExportPushError
from tracebuild.opentelemetry.metric.meter import PullExporterBuilder

logger = logging.getLogger(__name__)

MAX_KEY_LENGTH = 100

_INVALID_KEY_CHARS = re.compile(r"[^A-Za-z0-9_]")

# Push Gateway 接受的状态码
_PUSH_OK_STATUS = (200, 202)


def sanitize_prometheus_key(raw: str) -> str:
    """
    把任意字符串转换为合法的 Prometheus 标签名

    - [A-Za-z0-9_] 以外的字符替换为 _
    - 以数字开头时加前缀 key_，以 _ 开头时加前缀 key
    - 截断到 100 个字符

    结果是确定且幂等的。

    示例:
        ```python
        sanitize_prometheus_key("tracebuild.name")  # "tracebuild_name"
        sanitize_prometheus_key("0day")             # "key_0day"
        sanitize_prometheus_key("_private")         # "key_private"
        ```
    """
    key = _INVALID_KEY_CHARS.sub("_", raw)
    if key[:1].isdigit():
        key = "key_" + key
    elif key.startswith("_"):
        key = "key" + key
    return key[:MAX_KEY_LENGTH]


class _SanitizedRegistry:
    """在 collect 时清洗标签名的 Registry 包装"""

    def __init__(self, registry: CollectorRegistry):
        self._registry = registry

    def collect(self) -> Iterator[Metric]:
        for metric in self._registry.collect():
            metric.samples = [
                sample._replace(
                    labels={sanitize_prometheus_key(k): v for k, v in sample.labels.items()}
                )
                for sample in metric.samples
            ]
            yield metric


def _unregister_default_collectors() -> None:
    """从全局 REGISTRY 移除 prometheus_client 默认注册的进程/平台/GC 指标"""
    for collector in (PROCESS_COLLECTOR, PLATFORM_COLLECTOR, GC_COLLECTOR):
        try:
            REGISTRY.unregister(collector)
        except KeyError:
            # 已经移除
            pass


class PrometheusPushGatewayExporterBuilder(PullExporterBuilder):
    """
    Prometheus Push Gateway 导出器构建器

    PrometheusMetricReader 总是注册到 prometheus_client 的全局 REGISTRY，
    推送的也是全局 REGISTRY 的内容。

    示例:
        ```python
        builder = PrometheusPushGatewayExporterBuilder(
            url="http://localhost:9464/metrics/job/tracebuild",
        )
        reader = builder.build()
        ...
        builder.push()
        ```
    """

    def __init__(
        self,
        url: str,
        timeout_ms: int = 5000,
        enable_process_collector: bool = False,
    ):
        """
        初始化 Push Gateway 导出器构建器

        Args:
            url: 推送地址，形如 http://HOST:PORT/metrics/job/JOB
            timeout_ms: 推送超时时间（毫秒）
            enable_process_collector: 是否一并推送 Python 进程指标
        """
        self._url = url
        self._timeout_ms = timeout_ms
        self._enable_process_collector = enable_process_collector
        self._reader: Optional[MetricReader] = None

    def build(self) -> MetricReader:
        """构建 MetricReader"""
        from opentelemetry.exporter.prometheus import PrometheusMetricReader

        if not self._enable_process_collector:
            _unregister_default_collectors()

        # PrometheusMetricReader 把自身的 collector 注册到全局 REGISTRY
        self._reader = PrometheusMetricReader()

        logger.debug("Prometheus push gateway exporter created: url=%s", self._url)

        return self._reader

    @property
    def url(self) -> str:
        return self._url

    def encode(self) -> bytes:
        """把全局 REGISTRY 中当前缓存的指标编码为文本格式"""
        return generate_latest(_SanitizedRegistry(REGISTRY))

    def push(self) -> None:
        """
        推送一次指标

        Raises:
            ExportPushError: 连接失败、超时或 Push Gateway 返回非 200/202
        """
        if self._reader is None:
            return

        body = self.encode()
        try:
            response = requests.post(
                self._url,
                data=body,
                headers={"Content-Type": CONTENT_TYPE_LATEST},
                timeout=self._timeout_ms / 1000,
            )
        except requests.RequestException as e:
            raise ExportPushError(f"Failed to push metrics to {self._url}: {e}") from e

        if response.status_code not in _PUSH_OK_STATUS:
            raise ExportPushError(
                f"Failed to push metrics to {self._url}: unexpected status {response.status_code}"
            )

        logger.debug("Pushed %d bytes of metrics to %s", len(body), self._url)

    def flush(self) -> None:
        self.push()
