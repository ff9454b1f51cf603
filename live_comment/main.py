"""
live_comment.main
~~~~~~~~~~~~~~~~~

FastAPI 应用入口 —— 注册路由、挂载中间件、定义生命周期。
"""
from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from live_comment.api import comments, connections, rooms, ws
from live_comment.core.config import settings
from live_comment.core.errors import LiveCommentError
from live_comment.core.logging import get_logger, request_id_ctx_var, setup_logging
from live_comment.db import close_mongo, connect_mongo, ensure_indexes
from live_comment.db.comment_repository import CommentRepository
from live_comment.db.connection_repository import ConnectionRepository
from live_comment.db.room_repository import RoomRepository
from live_comment.services.broadcaster import CommentBroadcaster
from live_comment.services.comment_service import CommentService
from live_comment.services.connection_service import ConnectionService
from live_comment.services.gateway import (
    ConnectionGateway,
    HttpConnectionGateway,
    LocalConnectionGateway,
)
from live_comment.services.room_service import RoomService

# 初始化日志系统（必须在其他模块之前）
setup_logging()
logger = get_logger(__name__)

_CORS_HEADERS: dict[str, str] = {"Access-Control-Allow-Origin": "*"}


def configure_services(
    app: FastAPI,
    room_repo: RoomRepository,
    comment_repo: CommentRepository,
    connection_repo: ConnectionRepository,
    gateway: ConnectionGateway | None = None,
) -> None:
    """组装业务服务并挂载到 ``app.state``。

    ``gateway`` 缺省时使用本进程的 ``LocalConnectionGateway``，此时广播只清理
    本 worker 持有的失效连接；外部推送端点返回的 410 则视为权威结果。
    """
    worker_id = settings.WORKER_ID
    local_gateway = LocalConnectionGateway()

    broadcaster = None
    if settings.BROADCAST_ENABLED:
        broadcaster = CommentBroadcaster(
            connection_repo,
            gateway or local_gateway,
            worker_id=None if gateway is not None else worker_id,
        )

    app.state.local_gateway = local_gateway
    app.state.room_service = RoomService(room_repo)
    app.state.comment_service = CommentService(comment_repo, broadcaster)
    app.state.connection_service = ConnectionService(room_repo, connection_repo, worker_id)


# ── 生命周期 ──────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期钩子，仅在 worker 启动/关闭时各执行一次。"""
    # ── 启动 ──
    db = await connect_mongo()
    await ensure_indexes(db)

    http_gateway: HttpConnectionGateway | None = None
    if settings.WEBSOCKET_API_ENDPOINT:
        http_gateway = HttpConnectionGateway(
            settings.WEBSOCKET_API_ENDPOINT,
            timeout=settings.PUSH_TIMEOUT_SECONDS,
        )

    configure_services(
        app,
        room_repo=RoomRepository(db),
        comment_repo=CommentRepository(db),
        connection_repo=ConnectionRepository(db),
        gateway=http_gateway,
    )
    logger.info(
        "🚀 应用已启动 | env=%s | worker=%s | debug=%s | log_level=%s | push=%s",
        settings.ENVIRONMENT,
        settings.WORKER_ID,
        settings.debug,
        settings.effective_log_level,
        settings.WEBSOCKET_API_ENDPOINT or "local",
    )
    yield
    # ── 关闭 ──
    if http_gateway is not None:
        await http_gateway.aclose()
    await close_mongo()
    logger.info("👋 应用已关闭")


# ── 创建 FastAPI 实例 ─────────────────────────────────────────────────

app: FastAPI = FastAPI(
    title=settings.PROJECT_NAME,
    description="实时评论后端 API",
    version=settings.VERSION,
    debug=settings.debug,
    lifespan=lifespan,
)

# ── CORS 中间件 ───────────────────────────────────────────────────────
# 所有来源均允许；不携带凭证，响应头固定为 ``*``
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
)


@app.middleware("http")
async def request_context_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """为每个请求设置请求 ID，并保证响应带有 CORS 头。"""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
    token = request_id_ctx_var.set(request_id)
    try:
        response = await call_next(request)
    finally:
        request_id_ctx_var.reset(token)
    response.headers["X-Request-ID"] = request_id
    response.headers.setdefault("Access-Control-Allow-Origin", "*")
    return response


# ── 路由挂载 ──────────────────────────────────────────────────────────
app.include_router(rooms.router, tags=["Rooms"])
app.include_router(comments.router, tags=["Comments"])
app.include_router(connections.router, tags=["Push"])
app.include_router(ws.router, tags=["WebSocket"])


# ── 异常处理器 ────────────────────────────────────────────────────────

@app.exception_handler(LiveCommentError)
async def live_comment_error_handler(request: Request, exc: LiveCommentError) -> JSONResponse:
    """业务异常 → 对应状态码 + ``{"message": ...}``。"""
    logger.info("请求被拒绝: %s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message},
        headers=_CORS_HEADERS,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    """请求体无法解析或字段类型错误 → 400。"""
    logger.info("请求体无效: %s %s -> %s", request.method, request.url.path, exc.errors())
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid request body"},
        headers=_CORS_HEADERS,
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """捕获所有未处理异常，统一返回 500，不向调用方泄露内部细节。"""
    logger.error("未捕获异常: %s %s -> %s", request.method, request.url, exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"message": "Internal server error"},
        headers=_CORS_HEADERS,
    )


@app.get("/health", tags=["System"])
async def health_check() -> JSONResponse:
    """验证服务是否正常运行。"""
    return JSONResponse(
        content={
            "status": "ok",
            "environment": settings.ENVIRONMENT,
            "debug": settings.debug,
            "log_level": settings.effective_log_level,
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "live_comment.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.reload,  # 仅 dev 环境开启热重载
        log_level=settings.effective_log_level.lower(),
    )
