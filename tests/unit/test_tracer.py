"""
Tracer 与导出器构建器测试
"""

import io
import json

import pytest
from opentelemetry.context import Context
from opentelemetry.sdk.trace.export import ConsoleSpanExporter

from tracebuild.opentelemetry.config import OTLPProtocol, ResourceConfig
from tracebuild.opentelemetry.resource import create_resource
from tracebuild.opentelemetry.tracer.jaeger.exporter import JaegerTraceExporterBuilder
from tracebuild.opentelemetry.tracer.otlp.exporter import OTLPTraceExporterBuilder
from tracebuild.opentelemetry.tracer.stdout.exporter import StdoutTraceExporterBuilder
from tracebuild.opentelemetry.tracer.tracer import Tracer


class TestTracer:
    """Tracer 管理器测试"""

    def test_get_tracer_requires_install(self):
        """测试安装前获取 tracer 抛出异常"""
        tracer = Tracer(create_resource(ResourceConfig()))
        with pytest.raises(RuntimeError):
            tracer.get_tracer()

    def test_resource(self):
        """测试 Resource 服务名"""
        tracer = Tracer(create_resource(ResourceConfig(service_name="ci")))
        provider = tracer.install()
        assert provider.resource.attributes["service.name"] == "ci"
        assert provider.resource.attributes["service.version"]
        tracer.shutdown()
        assert tracer.provider is None


class TestStdoutTraceExporter:
    """Stdout 导出器测试"""

    def test_pretty_print(self):
        """测试格式化输出"""
        out = io.StringIO()
        tracer = Tracer(
            create_resource(ResourceConfig()),
            exporter_builder=StdoutTraceExporterBuilder(pretty_print=True, out=out),
            use_batch_processor=False,
        )
        tracer.install()
        with tracer.get_tracer().start_as_current_span("compile", context=Context()) as span:
            span.set_attribute("tracebuild.cmd.command", "make")
        tracer.shutdown()

        record = json.loads(out.getvalue())
        assert record["name"] == "compile"
        assert record["kind"] == "INTERNAL"
        assert record["parent_id"] is None
        assert record["attributes"] == {"tracebuild.cmd.command": "make"}
        assert len(record["trace_id"]) == 32

    def test_plain(self):
        """测试非格式化时使用 SDK 默认输出"""
        exporter = StdoutTraceExporterBuilder(pretty_print=False, out=io.StringIO()).build()
        assert isinstance(exporter, ConsoleSpanExporter)


class TestOTLPTraceExporter:
    """OTLP 导出器测试"""

    def test_build_grpc(self):
        """测试构建 gRPC 导出器"""
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

        exporter = OTLPTraceExporterBuilder(endpoint="http://localhost:4317").build()
        assert isinstance(exporter, OTLPSpanExporter)
        exporter.shutdown()

    def test_build_http(self):
        """测试构建 HTTP 导出器"""
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

        exporter = OTLPTraceExporterBuilder(
            endpoint="localhost:4318",
            protocol=OTLPProtocol.HTTP,
        ).build()
        assert isinstance(exporter, OTLPSpanExporter)
        exporter.shutdown()


class TestJaegerTraceExporter:
    """Jaeger 导出器构建器测试（需要安装 jaeger 扩展）"""

    def test_build_agent(self, monkeypatch):
        """测试默认发送到 agent"""
        pytest.importorskip("opentelemetry.exporter.jaeger.thrift")
        monkeypatch.delenv("OTEL_EXPORTER_JAEGER_ENDPOINT", raising=False)
        exporter = JaegerTraceExporterBuilder(agent_host="jaeger-agent", agent_port=6832).build()
        try:
            assert exporter.agent_host_name == "jaeger-agent"
            assert exporter.agent_port == 6832
            assert not exporter.collector_endpoint
        finally:
            exporter.shutdown()

    def test_build_collector(self):
        """测试配置 collector 端点时直接发送到 collector"""
        pytest.importorskip("opentelemetry.exporter.jaeger.thrift")
        endpoint = "http://jaeger:14268/api/traces"
        exporter = JaegerTraceExporterBuilder(collector_endpoint=endpoint).build()
        try:
            assert exporter.collector_endpoint == endpoint
        finally:
            exporter.shutdown()
