"""
live_comment.clients.streams
~~~~~~~~~~~~~~~~~~~~~~~~~~~~

直播流 API 的类型化客户端（直播流服务本身不在本仓库实现）。

基于 ``httpx.AsyncClient``，统一附加 JSON 头与 Bearer Token，
并把常见错误状态码映射为具体异常:

  - 401 → ``StreamsUnauthorizedError``
  - 403 → ``StreamsForbiddenError``
  - 404 → ``StreamsNotFoundError``
  - 其他非 2xx → ``StreamsApiError``
"""
from __future__ import annotations

from types import TracebackType
from typing import Any

import httpx
from pydantic import TypeAdapter

from live_comment.core.config import settings
from live_comment.core.logging import get_logger
from live_comment.schemas.live_comment import CamelModel

logger = get_logger(__name__)


# ── 模型 ──────────────────────────────────────────────────────────────

class Stream(CamelModel):
    """一场直播。"""

    id: str
    title: str
    description: str | None = None
    creator: str
    created_at: str
    is_live: bool
    viewers: int | None = None


class StreamCreate(CamelModel):
    """创建直播的请求体。"""

    title: str
    description: str | None = None
    creator: str


class StreamUpdate(CamelModel):
    """更新直播的请求体，未设置的字段不会发送。"""

    title: str | None = None
    description: str | None = None
    creator: str | None = None
    is_live: bool | None = None
    viewers: int | None = None


_STREAM_LIST = TypeAdapter(list[Stream])


# ── 异常 ──────────────────────────────────────────────────────────────

class StreamsApiError(Exception):
    """直播流 API 返回了非 2xx 状态码。

    Attributes:
        status_code: HTTP 状态码。
    """

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code


class StreamsUnauthorizedError(StreamsApiError):
    """未认证或 Token 失效（401）。"""


class StreamsForbiddenError(StreamsApiError):
    """无权访问（403）。"""


class StreamsNotFoundError(StreamsApiError):
    """直播不存在（404）。"""


_ERRORS_BY_STATUS: dict[int, type[StreamsApiError]] = {
    401: StreamsUnauthorizedError,
    403: StreamsForbiddenError,
    404: StreamsNotFoundError,
}


# ── 客户端 ────────────────────────────────────────────────────────────

class StreamsClient:
    """直播流 API 客户端，推荐以 ``async with`` 方式使用。

    Args:
        base_url: API 基址，默认取 ``settings.STREAMS_API_URL``。
        token: 可选的 Bearer Token。
        transport: 可选的 httpx transport（测试时注入 ``httpx.MockTransport``）。
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=(base_url or settings.STREAMS_API_URL).rstrip("/"),
            headers=headers,
            transport=transport,
        )

    async def __aenter__(self) -> StreamsClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_streams(self) -> list[Stream]:
        """获取全部直播。"""
        data = await self._request("GET", "/streams")
        return _STREAM_LIST.validate_python(data)

    async def get_stream(self, stream_id: str) -> Stream:
        """获取单场直播。"""
        data = await self._request("GET", f"/streams/{stream_id}")
        return Stream.model_validate(data)

    async def create_stream(self, stream: StreamCreate) -> Stream:
        """创建直播。"""
        data = await self._request(
            "POST", "/streams",
            json=stream.model_dump(by_alias=True, exclude_none=True),
        )
        return Stream.model_validate(data)

    async def update_stream(self, stream_id: str, update: StreamUpdate) -> Stream:
        """更新直播（仅发送已设置的字段）。"""
        data = await self._request(
            "PUT", f"/streams/{stream_id}",
            json=update.model_dump(by_alias=True, exclude_unset=True),
        )
        return Stream.model_validate(data)

    async def delete_stream(self, stream_id: str) -> Any:
        """删除直播，返回服务端响应体（可能为空）。"""
        return await self._request("DELETE", f"/streams/{stream_id}")

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        resp = await self._client.request(method, path, **kwargs)
        if resp.is_error:
            self._raise_for_status(resp)
        if not resp.content:
            return None
        return resp.json()

    @staticmethod
    def _raise_for_status(resp: httpx.Response) -> None:
        status = resp.status_code
        if status == 401:
            logger.warning("直播流 API 未认证 | %s %s", resp.request.method, resp.request.url)
        elif status == 403:
            logger.error("直播流 API 拒绝访问 | %s %s", resp.request.method, resp.request.url)
        elif status >= 500:
            logger.error("直播流 API 服务端错误 | status=%d | %s", status, resp.request.url)
        error_cls = _ERRORS_BY_STATUS.get(status, StreamsApiError)
        raise error_cls(status, resp.text)
