"""
live_comment.db
~~~~~~~~~~~~~~~

MongoDB 异步连接管理。

使用 ``motor`` 提供的 ``AsyncIOMotorClient``，在应用生命周期内维护一个
全局连接池。lifespan startup 依次调用 ``connect_mongo()`` 和
``ensure_indexes()``，shutdown 时调用 ``close_mongo()``。

集合与索引:
  - ``rooms``        —— ``room_id`` 唯一
  - ``comments``     —— ``(room_id, comment_id)`` 唯一，``(room_id, created_at)``
  - ``connections``  —— ``connection_id`` 唯一，``room_id``（广播时按房间查找）

各集合的读写由同目录下的仓库类封装。
"""
from __future__ import annotations

from urllib.parse import urlparse, urlunparse

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from live_comment.core.config import settings
from live_comment.core.logging import get_logger

logger = get_logger(__name__)

_client: AsyncIOMotorClient | None = None


def _mask_uri(uri: str) -> str:
    """将 MongoDB URI 中的密码替换为 ``***``，防止日志泄漏凭证。"""
    parsed = urlparse(uri)
    if parsed.password:
        masked = parsed._replace(
            netloc=f"{parsed.username}:***@{parsed.hostname}"
            + (f":{parsed.port}" if parsed.port else ""),
        )
        return urlunparse(masked)
    return uri


async def connect_mongo() -> AsyncIOMotorDatabase:
    """初始化 MongoDB 连接池并 ping 一次，返回默认数据库。"""
    global _client
    _client = AsyncIOMotorClient(settings.MONGO_URI)
    db = _client[settings.MONGO_DB_NAME]

    try:
        await db.command("ping")
    except Exception as e:
        logger.error("MongoDB 连接失败 | uri=%s | %s", _mask_uri(settings.MONGO_URI), e, exc_info=True)
        raise

    logger.info(
        "MongoDB 已连接 | uri=%s | db=%s",
        _mask_uri(settings.MONGO_URI),
        settings.MONGO_DB_NAME,
    )
    return db


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """为房间、评论、连接三张集合创建索引。

    ``create_index`` 本身是幂等的，每个 worker 启动时各执行一次即可，
    仓库类不再自行建索引。
    """
    rooms = db[settings.ROOMS_COLLECTION]
    await rooms.create_index("room_id", unique=True, name="idx_room_id")

    comments = db[settings.COMMENTS_COLLECTION]
    await comments.create_index(
        [("room_id", 1), ("comment_id", 1)],
        unique=True,
        name="idx_room_comment",
    )
    # COMMENT_SORT_KEY=created_at 时使用
    await comments.create_index([("room_id", 1), ("created_at", 1)], name="idx_room_time")

    connections = db[settings.CONNECTIONS_COLLECTION]
    await connections.create_index("connection_id", unique=True, name="idx_connection_id")
    await connections.create_index("room_id", name="idx_room")

    logger.info(
        "MongoDB 索引已就绪 | %s, %s, %s",
        settings.ROOMS_COLLECTION,
        settings.COMMENTS_COLLECTION,
        settings.CONNECTIONS_COLLECTION,
    )


async def close_mongo() -> None:
    """关闭 MongoDB 连接池。应在 lifespan shutdown 中调用。"""
    global _client
    if _client is not None:
        _client.close()
        _client = None
        logger.info("MongoDB 连接已关闭")


def get_database() -> AsyncIOMotorDatabase:
    """获取默认数据库实例。

    Raises:
        RuntimeError: 如果在 ``connect_mongo()`` 之前调用。
    """
    if _client is None:
        raise RuntimeError(
            "MongoDB 尚未初始化，请先调用 connect_mongo()",
        )
    return _client[settings.MONGO_DB_NAME]
