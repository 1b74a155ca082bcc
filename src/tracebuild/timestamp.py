# -*- coding: utf-8 -*-
"""
时间戳编解码

文本格式为 Unix 纪元以来的整秒数，精度为 1 秒。
"""

import re
import time
from datetime import datetime, timezone

from tracebuild.errors import MalformedTimestampError

_DIGITS_RE = re.compile(r"[0-9]+")

_NANOS_PER_SECOND = 1_000_000_000


class Timestamp:
    """
    时间点

    示例:
        ```python
        ts = Timestamp.parse("1700000000")
        assert str(ts) == "1700000000"
        ```
    """

    __slots__ = ("_datetime",)

    def __init__(self, value: datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        self._datetime = value

    @classmethod
    def now(cls) -> "Timestamp":
        """获取当前时间"""
        return cls(datetime.now(tz=timezone.utc))

    @classmethod
    def parse(cls, text: str) -> "Timestamp":
        """
        从整秒数文本解析

        Raises:
            MalformedTimestampError: 非整数文本，或超出可表示范围
        """
        if not _DIGITS_RE.fullmatch(text):
            raise MalformedTimestampError(f"invalid unix timestamp: {text!r}")

        try:
            value = datetime.fromtimestamp(int(text), tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise MalformedTimestampError(f"secs is too large: {text}") from e
        return cls(value)

    @property
    def value(self) -> datetime:
        return self._datetime

    @property
    def seconds(self) -> int:
        """Unix 纪元以来的整秒数"""
        return int(self._datetime.timestamp())

    @property
    def nanos(self) -> int:
        """OpenTelemetry 使用的纳秒时间戳"""
        return self.seconds * _NANOS_PER_SECOND

    def elapsed_seconds(self) -> int:
        """距今经过的整秒数（时间在未来时为 0）"""
        return max(0, int(time.time()) - self.seconds)

    def format(self) -> str:
        return str(self.seconds)

    def __str__(self) -> str:
        return self.format()

    def __repr__(self) -> str:
        return f"Timestamp({self.format()})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Timestamp):
            return NotImplemented
        return self.seconds == other.seconds

    def __hash__(self) -> int:
        return hash(self.seconds)
