"""
live_comment.core.errors
~~~~~~~~~~~~~~~~~~~~~~~~

业务异常体系。服务层直接抛出，由 ``main`` 中注册的异常处理器统一转换为
``{"message": ...}`` 格式的 JSON 响应。

未归入此体系的异常一律视为内部错误（500），不向调用方泄露细节。
"""
from __future__ import annotations


class LiveCommentError(Exception):
    """所有可预期业务错误的基类。

    Attributes:
        message: 返回给调用方的提示信息。
        status_code: 对应的 HTTP 状态码。
    """

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(LiveCommentError):
    """缺少必填字段。"""

    status_code = 400


class ForbiddenError(LiveCommentError):
    """调用方不是房间主持人。"""

    status_code = 403


class NotFoundError(LiveCommentError):
    """引用的房间不存在。"""

    status_code = 404


def require(**fields: object) -> None:
    """校验必填参数，任一缺失（``None`` 或空字符串）即抛出 ``ValidationError``。"""
    for name, value in fields.items():
        if value is None or value == "":
            raise ValidationError(f"Missing required parameter: {name}")
