"""
live_comment.api.ws
~~~~~~~~~~~~~~~~~~~

WebSocket 实时评论接口。

连接生命周期与托管网关的三个路由一一对应:
  - 建立连接（``$connect``）     → 分配 connection_id，登记到本地推送网关
  - ``{"action": "joinRoom", "roomId": ...}`` → 记录连接与房间的映射
  - 断开连接（``$disconnect``）  → 删除连接记录

消息协议（服务端 → 客户端）:
  - ``{"type": "connected", "connectionId": ...}`` —— 连接建立后立即发送
  - ``{"type": <action>, "statusCode": ..., "message"?: ...}`` —— 每个客户端动作的处理结果
  - 评论 JSON（``roomId``、``commentId``、``content`` ...）—— 房间内有新评论时推送
"""
from __future__ import annotations

import json
import uuid

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as PydanticValidationError

from live_comment.core.logging import get_logger, request_id_ctx_var
from live_comment.schemas.live_comment import JoinRoomMessage, WsResult
from live_comment.services.connection_service import ConnectionService
from live_comment.services.gateway import LocalConnectionGateway

logger = get_logger(__name__)

router: APIRouter = APIRouter()

JOIN_ROOM_ACTION: str = "joinRoom"


async def dispatch_message(
    service: ConnectionService, connection_id: str, raw: str,
) -> tuple[str, WsResult]:
    """按 ``action`` 字段路由一条客户端消息。

    Returns:
        ``(action, result)``，无法解析的消息 action 记为 ``"error"``。
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return "error", WsResult(status_code=400, message="Invalid message")
    if not isinstance(data, dict):
        return "error", WsResult(status_code=400, message="Invalid message")

    action = data.get("action")
    if action != JOIN_ROOM_ACTION:
        return str(action or "error"), WsResult(status_code=400, message=f"Unknown action: {action}")

    try:
        message = JoinRoomMessage.model_validate(data)
    except PydanticValidationError:
        return action, WsResult(status_code=400, message="Invalid message")
    return action, await service.join_room(connection_id, message.room_id)


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    """WebSocket 评论推送端点。

    Args:
        websocket: FastAPI WebSocket 连接对象。
    """
    connection_id: str = uuid.uuid4().hex
    token = request_id_ctx_var.set(f"ws-{connection_id[:8]}")

    service: ConnectionService = websocket.app.state.connection_service
    gateway: LocalConnectionGateway = websocket.app.state.local_gateway

    try:
        await websocket.accept()
        gateway.register(connection_id, websocket)
        await service.on_connect(connection_id)
        logger.info("观众进入 | 本进程在线: %d", gateway.online_count)

        try:
            await websocket.send_json({"type": "connected", "connectionId": connection_id})
            while True:
                raw: str = await websocket.receive_text()
                action, result = await dispatch_message(service, connection_id, raw)
                await websocket.send_json(result.to_frame(action))
        except WebSocketDisconnect:
            pass  # 正常断开
        except Exception as e:
            logger.error("WebSocket 异常: %s", e, exc_info=True)
        finally:
            gateway.unregister(connection_id)
            await service.on_disconnect(connection_id)
            logger.info("观众退出 | 本进程在线: %d", gateway.online_count)
    finally:
        request_id_ctx_var.reset(token)
