"""
live_comment.services.connection_service
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

WebSocket 连接生命周期业务 —— 建立、断开、加入房间。

每个处理函数都返回 ``WsResult``（状态码 + 可选消息），
异常在这里被吞掉并转换为 500，不会让 WebSocket 端点崩溃。
"""
from __future__ import annotations

from live_comment.core.logging import get_logger
from live_comment.core.timeutil import utc_now_iso
from live_comment.db.connection_repository import ConnectionRepository
from live_comment.db.room_repository import RoomRepository
from live_comment.schemas.live_comment import Connection, WsResult

logger = get_logger(__name__)


class ConnectionService:
    """连接生命周期服务。

    Attributes:
        rooms: 房间仓库，用于校验加入的房间是否存在。
        connections: 连接仓库。
        worker_id: 本进程标识，写入每条连接记录。
    """

    def __init__(
        self,
        rooms: RoomRepository,
        connections: ConnectionRepository,
        worker_id: str,
    ) -> None:
        self.rooms = rooms
        self.connections = connections
        self.worker_id = worker_id

    async def on_connect(self, connection_id: str) -> WsResult:
        """连接建立：仅记录日志，不做持久化。"""
        logger.info("连接已建立 | connection=%s", connection_id)
        return WsResult(status_code=200)

    async def on_disconnect(self, connection_id: str) -> WsResult:
        """连接断开：删除连接记录（幂等）。"""
        try:
            await self.connections.delete(connection_id)
        except Exception as e:
            logger.error("删除连接记录失败: %s | connection=%s", e, connection_id, exc_info=True)
            return WsResult(status_code=500)
        logger.info("连接已断开 | connection=%s", connection_id)
        return WsResult(status_code=200)

    async def join_room(self, connection_id: str, room_id: str | None) -> WsResult:
        """把连接加入房间。

        不校验房间是否仍为 ``OPEN``；重复加入以最后一次为准。
        """
        if not room_id:
            return WsResult(status_code=400, message="roomId is required")

        try:
            room = await self.rooms.get(room_id)
            if room is None:
                return WsResult(status_code=404, message="Room not found")
            await self.connections.put(Connection(
                connection_id=connection_id,
                room_id=room_id,
                worker_id=self.worker_id,
                timestamp=utc_now_iso(),
            ))
        except Exception as e:
            logger.error("加入房间失败: %s | connection=%s", e, connection_id, exc_info=True)
            return WsResult(status_code=500, message="Internal server error")

        logger.info("连接加入房间 | connection=%s | room=%s", connection_id, room_id)
        return WsResult(status_code=200)

    async def owned_by_other_worker(self, connection_id: str) -> bool:
        """连接记录是否存在且归属于其他 worker。"""
        record = await self.connections.get(connection_id)
        return (
            record is not None
            and record.worker_id is not None
            and record.worker_id != self.worker_id
        )
