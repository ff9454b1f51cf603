"""
live_comment.db.connection_repository
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

WebSocket 连接持久化仓库 —— 记录每条连接加入了哪个房间、由哪个 worker 持有。

``connection_id`` 为主键，``room_id`` 上建二级索引用于广播时按房间查找连接。
"""
from __future__ import annotations

from motor.motor_asyncio import AsyncIOMotorDatabase

from live_comment.core.config import settings
from live_comment.schemas.live_comment import Connection

_PROJECTION: dict = {"_id": 0}


class ConnectionRepository:
    """连接持久化仓库。

    Attributes:
        db: MongoDB 数据库实例。
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        collection_name: str = settings.CONNECTIONS_COLLECTION,
    ) -> None:
        self.db = db
        self._collection = db[collection_name]

    async def put(self, connection: Connection) -> None:
        """写入（或覆盖）连接记录，以最后一次加入为准。"""
        await self._collection.update_one(
            {"connection_id": connection.connection_id},
            {"$set": connection.model_dump(exclude={"connection_id"})},
            upsert=True,
        )

    async def get(self, connection_id: str) -> Connection | None:
        """按 ID 读取连接记录，不存在时返回 ``None``。"""
        doc = await self._collection.find_one({"connection_id": connection_id}, _PROJECTION)
        if doc is None:
            return None
        return Connection.model_validate(doc)

    async def list_by_room(self, room_id: str) -> list[Connection]:
        """返回已加入指定房间的全部连接记录。"""
        cursor = self._collection.find({"room_id": room_id}, _PROJECTION)
        docs = await cursor.to_list(length=None)
        return [Connection.model_validate(doc) for doc in docs]

    async def delete(self, connection_id: str) -> None:
        """删除连接记录。记录不存在时静默成功。"""
        await self._collection.delete_one({"connection_id": connection_id})
