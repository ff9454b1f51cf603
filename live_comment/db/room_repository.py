"""
live_comment.db.room_repository
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

房间持久化仓库 —— 封装 MongoDB ``rooms`` 集合的增查改操作。

房间只会被创建和关闭，系统从不删除房间。
"""
from __future__ import annotations

from motor.motor_asyncio import AsyncIOMotorDatabase

from live_comment.core.config import settings
from live_comment.schemas.live_comment import Room

_PROJECTION: dict = {"_id": 0}


class RoomRepository:
    """房间持久化仓库。

    Attributes:
        db: MongoDB 数据库实例。
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        collection_name: str = settings.ROOMS_COLLECTION,
    ) -> None:
        self.db = db
        self._collection = db[collection_name]

    async def create(self, room: Room) -> None:
        """写入一条新房间记录。"""
        await self._collection.insert_one(room.model_dump())

    async def get(self, room_id: str) -> Room | None:
        """按 ID 读取房间，不存在时返回 ``None``。"""
        doc = await self._collection.find_one({"room_id": room_id}, _PROJECTION)
        if doc is None:
            return None
        return Room.model_validate(doc)

    async def close(self, room_id: str, updated_at: str) -> None:
        """将房间状态置为 ``CLOSED``。

        无条件更新（不带版本号），重复关闭只会再写一次相同的状态。
        """
        await self._collection.update_one(
            {"room_id": room_id},
            {"$set": {"status": "CLOSED", "updated_at": updated_at}},
        )

    async def list_by_host(self, host_id: str) -> list[Room]:
        """列出指定主持人创建的全部房间。

        ``host_id`` 上没有索引，这是一次全集合扫描 + 过滤，只适合小规模数据。
        """
        cursor = self._collection.find({"host_id": host_id}, _PROJECTION)
        docs = await cursor.to_list(length=None)
        return [Room.model_validate(doc) for doc in docs]
