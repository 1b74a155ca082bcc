# -*- coding: utf-8 -*-
"""
OpenTelemetry 配置模块

配置来自环境变量，每次调用 load_config 都会重新读取，不做缓存。
"""

import os
import re
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, Field, field_validator

DEFAULT_OTLP_ENDPOINT = "https://localhost:4317"
DEFAULT_TIMEOUT = "5s"
PUSH_GATEWAY_JOB = "tracebuild"


def parse_duration(value: Union[str, int, float]) -> float:
    """
    解析时间字符串为秒数

    支持格式：
    - 纯数字：直接作为秒数
    - "30s"：30 秒
    - "5m"：5 分钟
    - "1h"：1 小时
    - "100ms"：100 毫秒
    """
    if isinstance(value, (int, float)):
        return float(value)

    value = value.strip()
    if not value:
        return 0.0

    # 纯数字
    if value.replace(".", "", 1).isdigit():
        return float(value)

    total_seconds = 0.0
    for number, unit in re.findall(r"(\d+(?:\.\d+)?)\s*(ms|us|h|m|s)", value, re.IGNORECASE):
        multiplier = {"h": 3600, "m": 60, "s": 1, "ms": 0.001, "us": 0.000001}[unit.lower()]
        total_seconds += float(number) * multiplier
    return total_seconds


class TraceExporterType(str, Enum):
    """Trace 导出器类型"""
    NONE = "none"
    STDOUT = "stdout"
    OTLP = "otlp"
    JAEGER = "jaeger"


class MetricExporterType(str, Enum):
    """Metric 导出器类型"""
    NONE = "none"
    STDOUT = "stdout"
    OTLP = "otlp"
    PROMETHEUS = "prometheus"


class OTLPProtocol(str, Enum):
    """OTLP 协议类型"""
    HTTP = "http"
    GRPC = "grpc"


def _supported(enum_cls) -> str:
    return ", ".join(member.value for member in enum_cls)


class OTLPConfig(BaseModel):
    """OTLP 导出器配置"""
    endpoint: str = Field(default=DEFAULT_OTLP_ENDPOINT, description="OTLP 端点地址")
    protocol: OTLPProtocol = Field(default=OTLPProtocol.GRPC, description="协议类型")
    headers: Dict[str, str] = Field(default_factory=dict, description="请求头")
    insecure: Optional[bool] = Field(default=None, description="是否禁用 TLS（None 时由端点 scheme 决定）")
    timeout: str = Field(default=DEFAULT_TIMEOUT, description="超时时间")

    @field_validator("protocol", mode="before")
    @classmethod
    def _normalize_protocol(cls, value: Any) -> Any:
        # OTEL_EXPORTER_OTLP_PROTOCOL 使用 http/protobuf、http/json
        if isinstance(value, str) and value.startswith("http"):
            return OTLPProtocol.HTTP
        return value

    @property
    def timeout_seconds(self) -> float:
        """获取超时秒数"""
        return parse_duration(self.timeout)


class JaegerConfig(BaseModel):
    """Jaeger 导出器配置"""
    agent_host: str = Field(default="localhost", description="Jaeger agent 地址")
    agent_port: int = Field(default=6831, description="Jaeger agent 端口")
    collector_endpoint: str = Field(default="", description="Jaeger collector HTTP 端点，非空时优先于 agent")
    timeout: str = Field(default=DEFAULT_TIMEOUT, description="超时时间")

    @property
    def timeout_seconds(self) -> float:
        return parse_duration(self.timeout)


class PrometheusConfig(BaseModel):
    """Prometheus Push Gateway 配置"""
    host: str = Field(default="0.0.0.0", description="Push Gateway 地址")
    port: int = Field(default=9464, description="Push Gateway 端口")
    job: str = Field(default=PUSH_GATEWAY_JOB, description="推送使用的 job 名")
    timeout: str = Field(default=DEFAULT_TIMEOUT, description="推送超时时间")
    enable_process_collector: bool = Field(default=False, description="是否推送 Python 进程指标")

    @property
    def endpoint(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def url(self) -> str:
        """推送地址"""
        return f"http://{self.endpoint}/metrics/job/{self.job}"

    @property
    def timeout_seconds(self) -> float:
        return parse_duration(self.timeout)


class StdoutConfig(BaseModel):
    """Stdout 导出器配置"""
    pretty_print: bool = Field(default=True, description="是否格式化输出")


class TracerConfig(BaseModel):
    """Tracer 配置"""
    exporter_type: TraceExporterType = Field(default=TraceExporterType.OTLP, description="导出器类型")
    otlp: OTLPConfig = Field(default_factory=OTLPConfig, description="OTLP 配置")
    jaeger: JaegerConfig = Field(default_factory=JaegerConfig, description="Jaeger 配置")
    stdout: StdoutConfig = Field(default_factory=StdoutConfig, description="Stdout 配置")
    batch_timeout: str = Field(default=DEFAULT_TIMEOUT, description="批量导出间隔")

    @field_validator("exporter_type", mode="before")
    @classmethod
    def _check_exporter_type(cls, value: Any) -> Any:
        if isinstance(value, str) and value not in {m.value for m in TraceExporterType}:
            raise ValueError(
                f"Unsupported traces exporter {value}. Supported are: {_supported(TraceExporterType)}"
            )
        return value

    @property
    def batch_timeout_seconds(self) -> float:
        return parse_duration(self.batch_timeout)


class MetricConfig(BaseModel):
    """Metric 配置"""
    exporter_type: MetricExporterType = Field(default=MetricExporterType.NONE, description="导出器类型（默认不导出指标）")
    otlp: OTLPConfig = Field(default_factory=OTLPConfig, description="OTLP 配置")
    prometheus: PrometheusConfig = Field(default_factory=PrometheusConfig, description="Prometheus 配置")
    stdout: StdoutConfig = Field(default_factory=StdoutConfig, description="Stdout 配置")
    collect_interval: str = Field(default="60s", description="周期导出间隔")

    @field_validator("exporter_type", mode="before")
    @classmethod
    def _check_exporter_type(cls, value: Any) -> Any:
        if isinstance(value, str) and value not in {m.value for m in MetricExporterType}:
            raise ValueError(
                f"Unsupported metrics exporter {value}. Supported are: {_supported(MetricExporterType)}"
            )
        return value

    @property
    def collect_interval_seconds(self) -> float:
        return parse_duration(self.collect_interval)


class ResourceConfig(BaseModel):
    """Resource 资源配置"""
    service_name: str = Field(default="tracebuild", description="服务名称")
    service_version: str = Field(default="", description="服务版本")
    attributes: Dict[str, str] = Field(default_factory=dict, description="自定义属性")


class OpenTelemetryConfig(BaseModel):
    """OpenTelemetry 完整配置"""
    tracer: TracerConfig = Field(default_factory=TracerConfig, description="Tracer 配置")
    metric: MetricConfig = Field(default_factory=MetricConfig, description="Metric 配置")
    resource: ResourceConfig = Field(default_factory=ResourceConfig, description="Resource 配置")


# 环境变量到配置路径的映射，靠前的优先级更低
ENV_MAPPINGS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("OTEL_TRACES_EXPORTER", ("tracer", "exporter_type")),
    ("OTEL_METRICS_EXPORTER", ("metric", "exporter_type")),
    ("OTEL_EXPORTER_OTLP_ENDPOINT", ("tracer", "otlp", "endpoint")),
    ("OTEL_EXPORTER_OTLP_ENDPOINT", ("metric", "otlp", "endpoint")),
    ("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT", ("tracer", "otlp", "endpoint")),
    ("OTEL_EXPORTER_OTLP_METRICS_ENDPOINT", ("metric", "otlp", "endpoint")),
    ("OTEL_EXPORTER_OTLP_PROTOCOL", ("tracer", "otlp", "protocol")),
    ("OTEL_EXPORTER_OTLP_PROTOCOL", ("metric", "otlp", "protocol")),
    ("OTEL_EXPORTER_OTLP_HEADERS", ("tracer", "otlp", "headers")),
    ("OTEL_EXPORTER_OTLP_HEADERS", ("metric", "otlp", "headers")),
    ("OTEL_EXPORTER_JAEGER_AGENT_HOST", ("tracer", "jaeger", "agent_host")),
    ("OTEL_EXPORTER_JAEGER_AGENT_PORT", ("tracer", "jaeger", "agent_port")),
    ("OTEL_EXPORTER_JAEGER_ENDPOINT", ("tracer", "jaeger", "collector_endpoint")),
    ("OTEL_EXPORTER_PROMETHEUS_HOST", ("metric", "prometheus", "host")),
    ("OTEL_EXPORTER_PROMETHEUS_PORT", ("metric", "prometheus", "port")),
    ("OTEL_SERVICE_NAME", ("resource", "service_name")),
)

_HEADER_PATHS = {("tracer", "otlp", "headers"), ("metric", "otlp", "headers")}


def load_config(environ: Optional[Mapping[str, str]] = None) -> OpenTelemetryConfig:
    """
    从环境变量加载 OpenTelemetry 配置

    Args:
        environ: 环境变量，默认 os.environ

    Returns:
        OpenTelemetryConfig 实例

    Raises:
        pydantic.ValidationError: 导出器名称不受支持或取值非法
    """
    if environ is None:
        environ = os.environ

    data: Dict[str, Any] = {}
    for env_var, path in ENV_MAPPINGS:
        value = environ.get(env_var)
        if value is None or value == "":
            continue
        if path in _HEADER_PATHS:
            _set_nested(data, path, parse_headers(value))
        else:
            _set_nested(data, path, value.strip())

    return OpenTelemetryConfig(**data)


def parse_headers(value: str) -> Dict[str, str]:
    """解析 k1=v1,k2=v2 格式的请求头"""
    headers: Dict[str, str] = {}
    for item in value.split(","):
        key, sep, val = item.partition("=")
        if sep and key.strip():
            headers[key.strip()] = val.strip()
    return headers


def _set_nested(data: Dict, path: tuple, value: Any) -> None:
    """设置嵌套字典的值"""
    for key in path[:-1]:
        data = data.setdefault(key, {})
    data[path[-1]] = value


def fallback_config(config: Optional[OpenTelemetryConfig] = None) -> OpenTelemetryConfig:
    """
    降级配置

    保留 Resource，trace 与 metric 导出器都替换为 none，保证安装一定成功。
    """
    resource = config.resource if config is not None else ResourceConfig()
    return OpenTelemetryConfig(
        tracer=TracerConfig(exporter_type=TraceExporterType.NONE),
        metric=MetricConfig(exporter_type=MetricExporterType.NONE),
        resource=resource.model_copy(),
    )
