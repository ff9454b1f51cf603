"""
live_comment.services.gateway
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

推送网关 —— 按连接 ID 向单个 WebSocket 客户端推送消息。

- ``LocalConnectionGateway``：直接持有本进程接受的 WebSocket 连接。
- ``HttpConnectionGateway``：调用推送端点 ``POST {endpoint}/@connections/{id}``，
  端点负责把请求交给持有该连接的 worker。

两者在找不到目标连接时都抛出 ``ConnectionGoneError``。本地网关只认识本进程的连接，
是否据此删除连接记录由广播器按记录上的 ``worker_id`` 判断。
"""
from __future__ import annotations

from typing import Protocol

import httpx
from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from live_comment.core.logging import get_logger

logger = get_logger(__name__)


class ConnectionGoneError(Exception):
    """目标连接已断开或不存在（对应推送端点的 410 Gone）。"""

    def __init__(self, connection_id: str) -> None:
        super().__init__(f"connection gone: {connection_id}")
        self.connection_id = connection_id


class PushError(Exception):
    """除连接失效以外的推送失败。"""


def _is_closed(websocket: WebSocket) -> bool:
    """任一方向已进入 DISCONNECTED 即视为连接已关闭。"""
    return (
        websocket.client_state == WebSocketState.DISCONNECTED
        or websocket.application_state == WebSocketState.DISCONNECTED
    )


class ConnectionGateway(Protocol):
    """按连接 ID 推送消息的最小接口。"""

    async def post_to_connection(self, connection_id: str, data: str) -> None:
        ...


class LocalConnectionGateway:
    """本进程内的推送网关。

    WebSocket 端点在连接建立时 ``register``，断开时 ``unregister``。
    只在事件循环内访问，无需加锁。

    Attributes:
        active_connections: ``connection_id -> WebSocket`` 映射。
    """

    def __init__(self) -> None:
        self.active_connections: dict[str, WebSocket] = {}

    def register(self, connection_id: str, websocket: WebSocket) -> None:
        """登记一条已接受的连接。"""
        self.active_connections[connection_id] = websocket

    def unregister(self, connection_id: str) -> None:
        """移除连接，不存在时忽略。"""
        self.active_connections.pop(connection_id, None)

    async def post_to_connection(self, connection_id: str, data: str) -> None:
        """向指定连接发送文本帧。

        Raises:
            ConnectionGoneError: 连接不在本进程，或 socket 已关闭。
        """
        websocket = self.active_connections.get(connection_id)
        if websocket is None or _is_closed(websocket):
            self.unregister(connection_id)
            raise ConnectionGoneError(connection_id)
        try:
            await websocket.send_text(data)
        except (WebSocketDisconnect, OSError) as e:
            self.unregister(connection_id)
            raise ConnectionGoneError(connection_id) from e
        except RuntimeError as e:
            # 只有发送过程中 socket 被关闭才视为失效，其他 RuntimeError 原样抛出
            if not _is_closed(websocket):
                raise
            self.unregister(connection_id)
            raise ConnectionGoneError(connection_id) from e

    @property
    def online_count(self) -> int:
        """当前本进程持有的连接数。"""
        return len(self.active_connections)


class HttpConnectionGateway:
    """通过 HTTP 推送端点投递消息的网关。

    Attributes:
        endpoint: 推送端点基址，例如 ``https://push.example.com/prod``。
    """

    def __init__(
        self,
        endpoint: str,
        timeout: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def post_to_connection(self, connection_id: str, data: str) -> None:
        """POST 原始消息到 ``/@connections/{connection_id}``。

        Raises:
            ConnectionGoneError: 端点返回 410。
            PushError: 端点返回其他非 2xx 状态码。
        """
        url = f"{self.endpoint}/@connections/{connection_id}"
        resp = await self._client.post(
            url,
            content=data.encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )
        if resp.status_code == 410:
            raise ConnectionGoneError(connection_id)
        if resp.is_error:
            raise PushError(f"push to {connection_id} failed: HTTP {resp.status_code}")

    async def aclose(self) -> None:
        """关闭底层 HTTP 连接池。"""
        await self._client.aclose()
