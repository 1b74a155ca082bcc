# -*- coding: utf-8 -*-
"""
Build/Step ID 编解码

文本格式固定为 48 位小写十六进制：
- 前 32 位：128 bit trace id
- 后 16 位：64 bit span id

示例:
    ```python
    build = BuildId.generate()
    text = str(build)
    assert BuildId.parse(text) == build
    ```
"""

import random
import re
from typing import NamedTuple

from tracebuild.errors import MalformedIdError

ID_LENGTH = 48
_TRACE_LENGTH = 32

_HEX_RE = re.compile(r"[0-9a-fA-F]+")

_TRACE_ID_BITS = 128
_SPAN_ID_BITS = 64


class BuildId(NamedTuple):
    """
    Build ID

    trace: 128 bit trace 部分
    span: 64 bit span 部分（build 根 span 的 id）
    """

    trace: int
    span: int

    @classmethod
    def generate(cls) -> "BuildId":
        """随机生成 ID（与 OpenTelemetry RandomIdGenerator 一样，避免生成全零 ID）"""
        trace = 0
        while trace == 0:
            trace = random.getrandbits(_TRACE_ID_BITS)
        span = 0
        while span == 0:
            span = random.getrandbits(_SPAN_ID_BITS)
        return cls(trace=trace, span=span)

    @classmethod
    def parse(cls, text: str) -> "BuildId":
        """
        从文本解析

        Args:
            text: 48 位十六进制字符串

        Returns:
            BuildId 实例

        Raises:
            MalformedIdError: 长度不是 48 或包含非十六进制字符
        """
        if len(text) != ID_LENGTH:
            raise MalformedIdError(f"string len is not {ID_LENGTH}: {text!r}")

        s_trace, s_span = text[:_TRACE_LENGTH], text[_TRACE_LENGTH:]
        for half in (s_trace, s_span):
            if not _HEX_RE.fullmatch(half):
                raise MalformedIdError(f"invalid hex digit in id: {text!r}")

        return cls(trace=int(s_trace, 16), span=int(s_span, 16))

    def format(self) -> str:
        """格式化为 48 位小写十六进制（保留前导零）"""
        return f"{self.trace:032x}{self.span:016x}"

    def __str__(self) -> str:
        return self.format()

    @property
    def trace_id(self) -> int:
        return self.trace

    @property
    def span_id(self) -> int:
        return self.span


class StepId(NamedTuple):
    """
    Step ID

    与 BuildId 使用相同的文本格式，但只有 span 部分有意义，
    trace 部分在推导上下文时被忽略。
    """

    id: BuildId

    @classmethod
    def generate(cls) -> "StepId":
        return cls(BuildId.generate())

    @classmethod
    def parse(cls, text: str) -> "StepId":
        return cls(BuildId.parse(text))

    def format(self) -> str:
        return self.id.format()

    def __str__(self) -> str:
        return self.format()

    @property
    def span_id(self) -> int:
        return self.id.span
