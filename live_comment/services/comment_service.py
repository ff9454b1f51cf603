"""
live_comment.services.comment_service
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

评论业务 —— 发表评论（写入 + 广播）与按房间读取评论。

发表评论时不校验房间是否存在或已关闭；广播为尽力而为，
任何广播失败都不会影响评论写入的结果。
"""
from __future__ import annotations

import uuid

from live_comment.core.errors import ValidationError, require
from live_comment.core.logging import get_logger
from live_comment.core.timeutil import utc_now_iso
from live_comment.db.comment_repository import CommentRepository
from live_comment.schemas.live_comment import DEFAULT_NICKNAME, Comment
from live_comment.services.broadcaster import CommentBroadcaster

logger = get_logger(__name__)


class CommentService:
    """评论业务服务。

    Attributes:
        repo: 评论持久化仓库。
        broadcaster: 评论广播器，为 ``None`` 时不广播。
    """

    def __init__(
        self,
        repo: CommentRepository,
        broadcaster: CommentBroadcaster | None = None,
    ) -> None:
        self.repo = repo
        self.broadcaster = broadcaster

    async def post_comment(
        self,
        room_id: str | None,
        content: str | None,
        nickname: str | None = None,
    ) -> Comment:
        """写入一条评论并广播给房间内的在线连接。

        Raises:
            ValidationError: ``room_id`` 或 ``content`` 缺失。
        """
        if not room_id or not content:
            raise ValidationError("Missing required fields: roomId and content")

        comment = Comment(
            room_id=room_id,
            comment_id=str(uuid.uuid4()),
            content=content,
            nickname=nickname or DEFAULT_NICKNAME,
            created_at=utc_now_iso(),
        )
        await self.repo.create(comment)
        logger.info("评论已写入 | room=%s | comment=%s", room_id, comment.comment_id)

        await self._broadcast(comment)
        return comment

    async def list_comments(self, room_id: str | None) -> list[Comment]:
        """读取房间的全部评论（升序，可能为空）。"""
        require(roomId=room_id)
        return await self.repo.list_by_room(room_id)

    async def _broadcast(self, comment: Comment) -> None:
        if self.broadcaster is None:
            return
        try:
            await self.broadcaster.broadcast(comment)
        except Exception as e:
            # 广播失败不应影响评论写入
            logger.error("评论广播失败: %s | room=%s", e, comment.room_id, exc_info=True)
