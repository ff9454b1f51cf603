"""
tests.test_comment_service
~~~~~~~~~~~~~~~~~~~~~~~~~~

CommentService 业务服务层单元测试。

验证：
- 评论写入的字段默认值
- 广播为尽力而为，失败不影响写入结果
"""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from live_comment.core.errors import ValidationError
from live_comment.services.comment_service import CommentService


def make_repo() -> MagicMock:
    repo = MagicMock()
    repo.create = AsyncMock()
    repo.list_by_room = AsyncMock(return_value=[])
    return repo


class TestPostComment:
    """测试发表评论。"""

    @pytest.mark.asyncio
    async def test_post_comment_defaults(self) -> None:
        """未提供昵称时使用 Anonymous，并生成 comment_id 与时间戳。"""
        repo = make_repo()
        service = CommentService(repo)

        comment = await service.post_comment("r1", "hello")

        repo.create.assert_awaited_once_with(comment)
        assert comment.room_id == "r1"
        assert comment.content == "hello"
        assert comment.nickname == "Anonymous"
        assert comment.comment_id
        assert comment.created_at

    @pytest.mark.asyncio
    async def test_empty_nickname_falls_back(self) -> None:
        service = CommentService(make_repo())

        comment = await service.post_comment("r1", "hello", nickname="")

        assert comment.nickname == "Anonymous"

    @pytest.mark.asyncio
    async def test_comment_ids_are_unique(self) -> None:
        service = CommentService(make_repo())

        a = await service.post_comment("r1", "a")
        b = await service.post_comment("r1", "b")

        assert a.comment_id != b.comment_id

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("room_id", "content"), [(None, "x"), ("r1", None), ("r1", "")])
    async def test_missing_fields(self, room_id: str | None, content: str | None) -> None:
        repo = make_repo()
        service = CommentService(repo)

        with pytest.raises(ValidationError, match="Missing required fields: roomId and content"):
            await service.post_comment(room_id, content)

        repo.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_broadcasts_after_write(self) -> None:
        repo = make_repo()
        broadcaster = MagicMock()
        broadcaster.broadcast = AsyncMock()
        service = CommentService(repo, broadcaster)

        comment = await service.post_comment("r1", "hello", nickname="amy")

        broadcaster.broadcast.assert_awaited_once_with(comment)

    @pytest.mark.asyncio
    async def test_broadcast_failure_is_swallowed(self) -> None:
        """广播抛出异常时，评论依然返回。"""
        repo = make_repo()
        broadcaster = MagicMock()
        broadcaster.broadcast = AsyncMock(side_effect=RuntimeError("lookup failed"))
        service = CommentService(repo, broadcaster)

        comment = await service.post_comment("r1", "hello")

        assert comment.content == "hello"
        repo.create.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_write_failure_propagates(self) -> None:
        """写入失败应向上抛出（由全局处理器转为 500），且不广播。"""
        repo = make_repo()
        repo.create.side_effect = RuntimeError("write failed")
        broadcaster = MagicMock()
        broadcaster.broadcast = AsyncMock()
        service = CommentService(repo, broadcaster)

        with pytest.raises(RuntimeError):
            await service.post_comment("r1", "hello")

        broadcaster.broadcast.assert_not_called()


class TestListComments:
    """测试读取评论。"""

    @pytest.mark.asyncio
    async def test_list_delegates_to_repo(self) -> None:
        repo = make_repo()
        service = CommentService(repo)

        comments = await service.list_comments("r1")

        repo.list_by_room.assert_awaited_once_with("r1")
        assert comments == []

    @pytest.mark.asyncio
    async def test_missing_room_id(self) -> None:
        service = CommentService(make_repo())

        with pytest.raises(ValidationError, match="Missing required parameter: roomId"):
            await service.list_comments(None)
