"""
live_comment.services.room_service
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

房间生命周期业务 —— 创建、关闭、按主持人查询。

只有创建房间时声明的主持人可以关闭房间。关闭是“先读后写”，
不带乐观锁：主持人的并发关闭会各自写一次，结果相同。
"""
from __future__ import annotations

import uuid

from live_comment.core.errors import ForbiddenError, NotFoundError, ValidationError, require
from live_comment.core.logging import get_logger
from live_comment.core.timeutil import utc_now_iso
from live_comment.db.room_repository import RoomRepository
from live_comment.schemas.live_comment import CloseRoomResponse, Room

logger = get_logger(__name__)


class RoomService:
    """房间业务服务。

    Attributes:
        repo: 房间持久化仓库。
    """

    def __init__(self, repo: RoomRepository) -> None:
        self.repo = repo

    async def create_room(self, name: str | None, host_id: str | None) -> Room:
        """创建一个 ``OPEN`` 状态的新房间。

        没有幂等键，重复提交会创建多个房间。

        Raises:
            ValidationError: ``name`` 或 ``host_id`` 缺失。
        """
        if not name or not host_id:
            raise ValidationError("Missing required fields: name and hostId")

        now = utc_now_iso()
        room = Room(
            room_id=str(uuid.uuid4()),
            name=name,
            host_id=host_id,
            status="OPEN",
            created_at=now,
            updated_at=now,
        )
        await self.repo.create(room)
        logger.info("房间已创建 | room=%s | host=%s", room.room_id, host_id)
        return room

    async def close_room(self, room_id: str | None, host_id: str | None) -> CloseRoomResponse:
        """由主持人关闭房间。

        Raises:
            ValidationError: ``room_id`` 或 ``host_id`` 缺失。
            NotFoundError: 房间不存在。
            ForbiddenError: 调用方不是该房间的主持人。
        """
        require(roomId=room_id)
        require(hostId=host_id)

        room = await self.repo.get(room_id)
        if room is None:
            raise NotFoundError("Room not found")
        if room.host_id != host_id:
            logger.warning("非主持人尝试关闭房间 | room=%s | caller=%s", room_id, host_id)
            raise ForbiddenError("Forbidden: Only the host can close the room")

        updated_at = utc_now_iso()
        await self.repo.close(room_id, updated_at)
        logger.info("房间已关闭 | room=%s", room_id)
        return CloseRoomResponse(room_id=room_id, status="CLOSED", updated_at=updated_at)

    async def list_rooms_by_host(self, host_id: str | None) -> list[Room]:
        """列出主持人的全部房间（可能为空）。"""
        require(hostId=host_id)
        return await self.repo.list_by_host(host_id)
