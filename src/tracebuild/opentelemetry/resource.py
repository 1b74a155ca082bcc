# -*- coding: utf-8 -*-
"""
OpenTelemetry Resource

- service.name / service.version
- 自定义属性
- OTEL_RESOURCE_ATTRIBUTES（由 Resource.create 自动合并）
"""

from typing import Dict

from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource

from tracebuild.__version__ import __version__
from tracebuild.opentelemetry.config import ResourceConfig


def create_resource(config: ResourceConfig) -> Resource:
    """
    根据配置创建 Resource

    Args:
        config: ResourceConfig

    Returns:
        Resource 实例
    """
    attributes: Dict[str, str] = {
        SERVICE_NAME: config.service_name,
        SERVICE_VERSION: config.service_version or __version__,
    }
    attributes.update(config.attributes)
    return Resource.create(attributes)
