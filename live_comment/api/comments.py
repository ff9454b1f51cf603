"""
live_comment.api.comments
~~~~~~~~~~~~~~~~~~~~~~~~~

评论 REST 接口 —— 发表评论（并实时广播）、读取房间评论。

端点:
  - ``POST /rooms/{room_id}/comments``  → 发表评论
  - ``GET  /rooms/{room_id}/comments``  → 读取房间全部评论（升序）
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from live_comment.api.deps import get_comment_service
from live_comment.core.errors import ValidationError
from live_comment.schemas.live_comment import Comment, CommentListResponse, PostCommentRequest
from live_comment.services.comment_service import CommentService

router: APIRouter = APIRouter()


@router.post(
    "/rooms/{room_id}/comments",
    summary="发表评论",
    status_code=201,
    response_model=Comment,
)
async def post_comment(
    room_id: str,
    body: PostCommentRequest | None = None,
    service: CommentService = Depends(get_comment_service),
) -> Comment:
    """写入评论并推送给房间内的在线观众。

    请求体中的 ``roomId`` 可省略；如果给出，必须与路径参数一致。
    """
    body = body or PostCommentRequest()
    if body.room_id and body.room_id != room_id:
        raise ValidationError("roomId in body does not match path")
    return await service.post_comment(
        room_id=room_id,
        content=body.content,
        nickname=body.nickname,
    )


@router.get(
    "/rooms/{room_id}/comments",
    summary="读取房间评论",
    response_model=CommentListResponse,
)
async def list_comments(
    room_id: str,
    service: CommentService = Depends(get_comment_service),
) -> CommentListResponse:
    """返回房间的全部评论，没有评论时 ``comments`` 为空列表。"""
    comments = await service.list_comments(room_id)
    return CommentListResponse(room_id=room_id, comments=comments)
