"""
live_comment.api.connections
~~~~~~~~~~~~~~~~~~~~~~~~~~~~

推送端点 —— ``POST /@connections/{connection_id}``。

把请求体原样推送给本进程持有的指定 WebSocket 连接:
  - 推送成功                        → 200
  - 连接记录归其他 worker（请求被路由错了）→ 421，调用方不应据此清理记录
  - 其他情况下连接不存在             → 410，``HttpConnectionGateway`` 据此判断连接已失效
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from live_comment.api.deps import get_connection_service, get_local_gateway
from live_comment.core.logging import get_logger
from live_comment.services.connection_service import ConnectionService
from live_comment.services.gateway import ConnectionGoneError, LocalConnectionGateway

logger = get_logger(__name__)

router: APIRouter = APIRouter()


@router.post("/@connections/{connection_id}", summary="向指定连接推送消息")
async def post_to_connection(
    connection_id: str,
    request: Request,
    gateway: LocalConnectionGateway = Depends(get_local_gateway),
    service: ConnectionService = Depends(get_connection_service),
) -> JSONResponse:
    data: bytes = await request.body()
    try:
        await gateway.post_to_connection(connection_id, data.decode("utf-8"))
    except ConnectionGoneError:
        if await service.owned_by_other_worker(connection_id):
            logger.warning("推送请求落到了非持有者 worker | connection=%s", connection_id)
            return JSONResponse(status_code=421, content={"message": "Misdirected Request"})
        logger.debug("推送目标不存在 | connection=%s", connection_id)
        return JSONResponse(status_code=410, content={"message": "Gone"})
    return JSONResponse(status_code=200, content={})
