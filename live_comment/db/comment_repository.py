"""
live_comment.db.comment_repository
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

评论持久化仓库 —— 封装 MongoDB ``comments`` 集合的追加写与按房间范围读。

每条评论一个文档（扁平设计），以 ``(room_id, comment_id)`` 唯一标识。
"""
from __future__ import annotations

from motor.motor_asyncio import AsyncIOMotorDatabase

from live_comment.core.config import settings
from live_comment.schemas.live_comment import Comment


class CommentRepository:
    """评论持久化仓库。

    Attributes:
        db: MongoDB 数据库实例。
        sort_key: 列表查询的升序排序字段，``comment_id`` 或 ``created_at``。
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        collection_name: str = settings.COMMENTS_COLLECTION,
        sort_key: str = settings.COMMENT_SORT_KEY,
    ) -> None:
        self.db = db
        self.sort_key = sort_key
        self._collection = db[collection_name]

    async def create(self, comment: Comment) -> None:
        """追加一条评论。"""
        await self._collection.insert_one(comment.model_dump())

    async def list_by_room(self, room_id: str) -> list[Comment]:
        """读取指定房间的全部评论，按 ``sort_key`` 升序。

        Args:
            room_id: 房间唯一标识。

        Returns:
            评论列表，房间没有评论时为空列表。
        """
        cursor = (
            self._collection
            .find({"room_id": room_id}, {"_id": 0})
            .sort(self.sort_key, 1)
        )
        docs = await cursor.to_list(length=None)
        return [Comment.model_validate(doc) for doc in docs]
