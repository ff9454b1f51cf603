"""
tests.conftest
~~~~~~~~~~~~~~

共享 pytest fixtures —— 用内存版仓库替换 MongoDB，
使接口与服务层测试可在无数据库、无网络的环境下快速运行。
"""
from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Iterator
from contextlib import asynccontextmanager

import pytest

# ── 在所有测试导入前设置环境变量 ─────────────────────────────────────
os.environ.setdefault("ENVIRONMENT", "test")  # 激活 .env.test 配置

from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from live_comment.main import app, configure_services  # noqa: E402
from live_comment.schemas.live_comment import Comment, Connection, Room  # noqa: E402


# ── 内存版仓库 ────────────────────────────────────────────────────────

class FakeRoomRepository:
    """与 ``RoomRepository`` 接口一致的内存实现。"""

    def __init__(self) -> None:
        self.rooms: dict[str, Room] = {}

    async def create(self, room: Room) -> None:
        self.rooms[room.room_id] = room.model_copy()

    async def get(self, room_id: str) -> Room | None:
        room = self.rooms.get(room_id)
        return room.model_copy() if room else None

    async def close(self, room_id: str, updated_at: str) -> None:
        room = self.rooms.get(room_id)
        if room is not None:
            self.rooms[room_id] = room.model_copy(
                update={"status": "CLOSED", "updated_at": updated_at},
            )

    async def list_by_host(self, host_id: str) -> list[Room]:
        return [room for room in self.rooms.values() if room.host_id == host_id]


class FakeCommentRepository:
    """与 ``CommentRepository`` 接口一致的内存实现（按 comment_id 升序）。"""

    def __init__(self) -> None:
        self.comments: list[Comment] = []

    async def create(self, comment: Comment) -> None:
        self.comments.append(comment.model_copy())

    async def list_by_room(self, room_id: str) -> list[Comment]:
        matched = [c for c in self.comments if c.room_id == room_id]
        return sorted(matched, key=lambda c: c.comment_id)


class FakeConnectionRepository:
    """与 ``ConnectionRepository`` 接口一致的内存实现。"""

    def __init__(self) -> None:
        self.connections: dict[str, Connection] = {}

    async def put(self, connection: Connection) -> None:
        self.connections[connection.connection_id] = connection.model_copy()

    async def get(self, connection_id: str) -> Connection | None:
        return self.connections.get(connection_id)

    async def list_by_room(self, room_id: str) -> list[Connection]:
        return [c for c in self.connections.values() if c.room_id == room_id]

    async def delete(self, connection_id: str) -> None:
        self.connections.pop(connection_id, None)


class FakeStore:
    """一组共享的内存仓库。"""

    def __init__(self) -> None:
        self.rooms = FakeRoomRepository()
        self.comments = FakeCommentRepository()
        self.connections = FakeConnectionRepository()


@pytest.fixture()
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture()
def client(monkeypatch: pytest.MonkeyPatch, store: FakeStore) -> Iterator[TestClient]:
    """以内存仓库启动应用的 TestClient（不连接 MongoDB）。"""

    @asynccontextmanager
    async def _lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
        configure_services(_app, store.rooms, store.comments, store.connections)
        yield

    monkeypatch.setattr(app.router, "lifespan_context", _lifespan)
    with TestClient(app) as test_client:
        yield test_client
