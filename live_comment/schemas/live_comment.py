"""
live_comment.schemas.live_comment
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

房间 / 评论 / 连接相关的 Pydantic 请求/响应模型。

字段在 Python 侧使用 snake_case（同时也是 MongoDB 文档的字段名），
序列化到客户端时统一使用 camelCase 别名（``roomId``、``hostId`` ...）。
请求模型的字段全部可选：缺失字段由服务层统一校验并返回 400，
而不是交给 FastAPI 返回 422。
"""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

RoomStatus = Literal["OPEN", "CLOSED"]

DEFAULT_NICKNAME: str = "Anonymous"


class CamelModel(BaseModel):
    """使用 camelCase 别名、同时允许按字段名构造的基类。"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── 房间 ──────────────────────────────────────────────────────────────

class Room(CamelModel):
    """房间完整记录。"""

    room_id: str = Field(..., description="房间唯一标识")
    name: str = Field(..., description="房间名称")
    host_id: str = Field(..., description="主持人标识")
    status: RoomStatus = Field(default="OPEN", description="房间状态：OPEN / CLOSED")
    created_at: str = Field(..., description="创建时间（ISO 格式）")
    updated_at: str = Field(..., description="最近更新时间（ISO 格式）")


class CreateRoomRequest(CamelModel):
    """创建房间请求体。"""

    name: str | None = None
    host_id: str | None = None


class CreateRoomResponse(CamelModel):
    """创建房间响应数据。"""

    room_id: str
    name: str
    host_id: str
    status: RoomStatus
    created_at: str


class CloseRoomRequest(CamelModel):
    """关闭房间请求体。"""

    host_id: str | None = None


class CloseRoomResponse(CamelModel):
    """关闭房间响应数据。"""

    room_id: str
    status: RoomStatus
    updated_at: str


class RoomListResponse(CamelModel):
    """按主持人查询房间的响应数据。"""

    rooms: list[Room] = Field(default_factory=list)


# ── 评论 ──────────────────────────────────────────────────────────────

class Comment(CamelModel):
    """单条评论。创建后不可变。"""

    room_id: str = Field(..., description="所属房间 ID")
    comment_id: str = Field(..., description="评论唯一标识")
    content: str = Field(..., description="评论文本")
    nickname: str = Field(default=DEFAULT_NICKNAME, description="发送者昵称")
    created_at: str = Field(..., description="创建时间（ISO 格式）")


class PostCommentRequest(CamelModel):
    """发表评论请求体。``roomId`` 可省略，给出时须与路径参数一致。"""

    room_id: str | None = None
    content: str | None = None
    nickname: str | None = None


class CommentListResponse(CamelModel):
    """房间评论列表响应数据。"""

    room_id: str
    comments: list[Comment] = Field(default_factory=list)


# ── WebSocket 连接 ────────────────────────────────────────────────────

class Connection(CamelModel):
    """一条已加入房间的 WebSocket 连接记录。

    ``worker_id`` 是接受该连接的进程标识，只有该进程持有对应的 socket。
    """

    connection_id: str
    room_id: str | None = None
    worker_id: str | None = Field(default=None, description="持有该连接的 worker 标识")
    timestamp: str | None = Field(default=None, description="加入房间的时间（ISO 格式）")


class JoinRoomMessage(CamelModel):
    """``joinRoom`` 动作的消息体。"""

    action: str = "joinRoom"
    room_id: str | None = None


class WsResult(BaseModel):
    """WebSocket 事件处理结果，语义等同于网关路由的返回值。"""

    status_code: int = 200
    message: str | None = None

    def to_frame(self, action: str) -> dict:
        """转换为回发给客户端的 JSON 帧。"""
        frame: dict = {"type": action, "statusCode": self.status_code}
        if self.message is not None:
            frame["message"] = self.message
        return frame
