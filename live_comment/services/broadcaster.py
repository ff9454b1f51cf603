"""
live_comment.services.broadcaster
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

评论广播器 —— 把新发表的评论推送给已加入该房间的全部在线连接。

每条连接独立推送、并发执行，全部结束后才返回：
  - 推送成功 → delivered
  - 连接已失效（``ConnectionGoneError``）且记录归本 worker → 删除连接记录，pruned
  - 连接已失效但记录归其他 worker → 保留记录，skipped
  - 其他异常 → 记录日志后吞掉，failed

单个连接的失败不会影响其他连接，也不会向上抛出。不做重试。
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass

from live_comment.core.logging import get_logger
from live_comment.db.connection_repository import ConnectionRepository
from live_comment.schemas.live_comment import Comment, Connection
from live_comment.services.gateway import ConnectionGateway, ConnectionGoneError

logger = get_logger(__name__)

_DELIVERED = "delivered"
_PRUNED = "pruned"
_SKIPPED = "skipped"


@dataclass
class BroadcastReport:
    """一次广播的结果统计，仅用于日志和测试，不返回给调用方。"""

    delivered: int = 0
    pruned: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.delivered + self.pruned + self.skipped + self.failed


class CommentBroadcaster:
    """评论广播器。

    Attributes:
        connections: 连接仓库，用于按房间查找连接和清理失效连接。
        gateway: 推送网关。
        worker_id: 本进程标识。设置时只清理本 worker 持有的失效连接，
            适用于只能看到本进程 socket 的本地网关；为 ``None`` 时
            网关的 "Gone" 判断是权威的，任何失效连接都会被清理。
    """

    def __init__(
        self,
        connections: ConnectionRepository,
        gateway: ConnectionGateway,
        worker_id: str | None = None,
    ) -> None:
        self.connections = connections
        self.gateway = gateway
        self.worker_id = worker_id

    async def broadcast(self, comment: Comment) -> BroadcastReport:
        """向评论所属房间的全部连接推送该评论。"""
        targets = await self.connections.list_by_room(comment.room_id)
        payload: str = comment.model_dump_json(by_alias=True)

        results = await asyncio.gather(
            *(self._deliver(conn, payload) for conn in targets),
            return_exceptions=True,
        )

        report = BroadcastReport()
        for conn, result in zip(targets, results):
            if result == _DELIVERED:
                report.delivered += 1
            elif result == _PRUNED:
                report.pruned += 1
            elif result == _SKIPPED:
                report.skipped += 1
            else:
                report.failed += 1
                logger.warning("推送失败 | connection=%s | error=%r", conn.connection_id, result)

        logger.info(
            "评论广播完成 | room=%s | comment=%s | 成功 %d | 清理 %d | 跳过 %d | 失败 %d",
            comment.room_id, comment.comment_id,
            report.delivered, report.pruned, report.skipped, report.failed,
        )
        return report

    def _owns(self, connection: Connection) -> bool:
        return self.worker_id is None or connection.worker_id == self.worker_id

    async def _deliver(self, connection: Connection, payload: str) -> str:
        """推送给单个连接；连接失效且归本 worker 时删除其记录。"""
        try:
            await self.gateway.post_to_connection(connection.connection_id, payload)
        except ConnectionGoneError:
            if not self._owns(connection):
                logger.debug(
                    "连接由其他 worker 持有，跳过 | connection=%s | worker=%s",
                    connection.connection_id, connection.worker_id,
                )
                return _SKIPPED
            logger.info("连接已失效，清理记录 | connection=%s", connection.connection_id)
            await self.connections.delete(connection.connection_id)
            return _PRUNED
        return _DELIVERED
