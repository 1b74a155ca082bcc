# -*- coding: utf-8 -*-
"""构建/步骤状态"""

from enum import Enum

from opentelemetry.trace import StatusCode

from tracebuild.errors import MalformedStatusError


class Status(str, Enum):
    """状态，文本形式为 success / failure"""

    SUCCESS = "success"
    FAILURE = "failure"

    @classmethod
    def parse(cls, text: str) -> "Status":
        try:
            return cls(text)
        except ValueError:
            raise MalformedStatusError(
                f"invalid status {text!r}; valid are: success, failure"
            ) from None

    @property
    def status_code(self) -> StatusCode:
        """转换为 Span 状态码"""
        if self is Status.SUCCESS:
            return StatusCode.OK
        return StatusCode.ERROR

    def __str__(self) -> str:
        return self.value
