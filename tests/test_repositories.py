"""
tests.test_repositories
~~~~~~~~~~~~~~~~~~~~~~~

MongoDB 仓库单元测试（mock motor 集合，不连接真实数据库）。
"""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from live_comment.core.config import settings
from live_comment.db import _mask_uri, ensure_indexes, get_database
from live_comment.db.comment_repository import CommentRepository
from live_comment.db.connection_repository import ConnectionRepository
from live_comment.db.room_repository import RoomRepository
from live_comment.schemas.live_comment import Comment, Connection, Room


def make_db(collection: MagicMock) -> MagicMock:
    db = MagicMock()
    db.__getitem__.return_value = collection
    return db


def make_collection(docs: list[dict] | None = None) -> MagicMock:
    """构造一个 mock 集合，``find()`` 返回的游标支持 ``sort()`` 链式调用。"""
    collection = MagicMock()
    collection.create_index = AsyncMock()
    collection.insert_one = AsyncMock()
    collection.update_one = AsyncMock()
    collection.delete_one = AsyncMock()
    collection.find_one = AsyncMock(return_value=None)

    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.to_list = AsyncMock(return_value=docs or [])
    collection.find.return_value = cursor
    return collection


def make_room(**overrides) -> Room:
    data = dict(
        room_id="r1",
        name="Demo",
        host_id="h1",
        status="OPEN",
        created_at="2024-01-01T00:00:00+00:00",
        updated_at="2024-01-01T00:00:00+00:00",
    )
    data.update(overrides)
    return Room(**data)


class TestDatabaseHelpers:
    """测试连接串脱敏、未初始化访问与索引创建。"""

    def test_masks_password(self) -> None:
        assert _mask_uri("mongodb://user:secret@db:27017/live") == "mongodb://user:***@db:27017/live"

    def test_without_password_unchanged(self) -> None:
        assert _mask_uri("mongodb://localhost:27017") == "mongodb://localhost:27017"

    def test_get_database_before_connect(self) -> None:
        with pytest.raises(RuntimeError):
            get_database()

    @pytest.mark.asyncio
    async def test_ensure_indexes_covers_all_collections(self) -> None:
        collections = {
            settings.ROOMS_COLLECTION: make_collection(),
            settings.COMMENTS_COLLECTION: make_collection(),
            settings.CONNECTIONS_COLLECTION: make_collection(),
        }
        db = MagicMock()
        db.__getitem__.side_effect = collections.__getitem__

        await ensure_indexes(db)

        def index_names(name: str) -> set[str]:
            return {c.kwargs["name"] for c in collections[name].create_index.call_args_list}

        assert index_names(settings.ROOMS_COLLECTION) == {"idx_room_id"}
        assert index_names(settings.COMMENTS_COLLECTION) == {"idx_room_comment", "idx_room_time"}
        assert index_names(settings.CONNECTIONS_COLLECTION) == {"idx_connection_id", "idx_room"}
        collections[settings.ROOMS_COLLECTION].create_index.assert_any_await(
            "room_id", unique=True, name="idx_room_id",
        )


class TestRoomRepository:
    """测试房间仓库。"""

    @pytest.mark.asyncio
    async def test_create_inserts_snake_case_document(self) -> None:
        collection = make_collection()
        repo = RoomRepository(make_db(collection), "rooms")

        await repo.create(make_room())

        doc = collection.insert_one.call_args.args[0]
        assert doc["room_id"] == "r1"
        assert doc["host_id"] == "h1"
        assert doc["status"] == "OPEN"

    @pytest.mark.asyncio
    async def test_repository_does_not_create_indexes(self) -> None:
        """索引在启动时统一创建，读写路径上不再建索引。"""
        collection = make_collection()
        repo = RoomRepository(make_db(collection), "rooms")

        await repo.create(make_room())
        await repo.get("r1")

        collection.create_index.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self) -> None:
        collection = make_collection()
        repo = RoomRepository(make_db(collection), "rooms")

        assert await repo.get("nope") is None
        collection.find_one.assert_awaited_once_with({"room_id": "nope"}, {"_id": 0})

    @pytest.mark.asyncio
    async def test_get_existing(self) -> None:
        collection = make_collection()
        collection.find_one.return_value = make_room().model_dump()
        repo = RoomRepository(make_db(collection), "rooms")

        room = await repo.get("r1")

        assert room is not None
        assert room.status == "OPEN"

    @pytest.mark.asyncio
    async def test_close_sets_status_and_timestamp(self) -> None:
        collection = make_collection()
        repo = RoomRepository(make_db(collection), "rooms")

        await repo.close("r1", "2024-01-02T00:00:00+00:00")

        collection.update_one.assert_awaited_once_with(
            {"room_id": "r1"},
            {"$set": {"status": "CLOSED", "updated_at": "2024-01-02T00:00:00+00:00"}},
        )

    @pytest.mark.asyncio
    async def test_list_by_host_filters(self) -> None:
        collection = make_collection([
            make_room().model_dump(),
            make_room(room_id="r2", status="CLOSED").model_dump(),
        ])
        repo = RoomRepository(make_db(collection), "rooms")

        rooms = await repo.list_by_host("h1")

        collection.find.assert_called_once_with({"host_id": "h1"}, {"_id": 0})
        assert [(r.room_id, r.status) for r in rooms] == [("r1", "OPEN"), ("r2", "CLOSED")]


class TestCommentRepository:
    """测试评论仓库。"""

    @pytest.mark.asyncio
    async def test_list_sorted_by_configured_key(self) -> None:
        doc = Comment(
            room_id="r1",
            comment_id="c1",
            content="hi",
            nickname="Anonymous",
            created_at="2024-01-01T00:00:00+00:00",
        ).model_dump()
        collection = make_collection([doc])
        repo = CommentRepository(make_db(collection), "comments", sort_key="created_at")

        comments = await repo.list_by_room("r1")

        collection.find.assert_called_once_with({"room_id": "r1"}, {"_id": 0})
        collection.find.return_value.sort.assert_called_once_with("created_at", 1)
        assert comments[0].comment_id == "c1"

    @pytest.mark.asyncio
    async def test_empty_room(self) -> None:
        repo = CommentRepository(make_db(make_collection()), "comments", sort_key="comment_id")

        assert await repo.list_by_room("r1") == []


class TestConnectionRepository:
    """测试连接仓库。"""

    @pytest.mark.asyncio
    async def test_put_upserts_with_owner(self) -> None:
        collection = make_collection()
        repo = ConnectionRepository(make_db(collection), "connections")

        await repo.put(Connection(
            connection_id="c1",
            room_id="r1",
            worker_id="w1",
            timestamp="2024-01-01T00:00:00+00:00",
        ))

        collection.update_one.assert_awaited_once_with(
            {"connection_id": "c1"},
            {"$set": {"room_id": "r1", "worker_id": "w1", "timestamp": "2024-01-01T00:00:00+00:00"}},
            upsert=True,
        )

    @pytest.mark.asyncio
    async def test_list_by_room_returns_records(self) -> None:
        collection = make_collection([
            {"connection_id": "c1", "room_id": "r1", "worker_id": "w1", "timestamp": "t"},
            {"connection_id": "c2", "room_id": "r1", "worker_id": "w2", "timestamp": "t"},
        ])
        repo = ConnectionRepository(make_db(collection), "connections")

        records = await repo.list_by_room("r1")

        collection.find.assert_called_once_with({"room_id": "r1"}, {"_id": 0})
        assert [(c.connection_id, c.worker_id) for c in records] == [("c1", "w1"), ("c2", "w2")]

    @pytest.mark.asyncio
    async def test_get(self) -> None:
        collection = make_collection()
        collection.find_one.return_value = {"connection_id": "c1", "room_id": "r1", "worker_id": "w1"}
        repo = ConnectionRepository(make_db(collection), "connections")

        record = await repo.get("c1")

        assert record == Connection(connection_id="c1", room_id="r1", worker_id="w1")
        assert await ConnectionRepository(make_db(make_collection()), "connections").get("x") is None

    @pytest.mark.asyncio
    async def test_delete(self) -> None:
        collection = make_collection()
        repo = ConnectionRepository(make_db(collection), "connections")

        await repo.delete("c1")

        collection.delete_one.assert_awaited_once_with({"connection_id": "c1"})
