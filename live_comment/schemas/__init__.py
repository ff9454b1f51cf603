"""
live_comment.schemas
~~~~~~~~~~~~~~~~~~~~
Pydantic schemas and models for the API.
"""
from live_comment.schemas.live_comment import (
    DEFAULT_NICKNAME,
    CloseRoomRequest,
    CloseRoomResponse,
    Comment,
    CommentListResponse,
    Connection,
    CreateRoomRequest,
    CreateRoomResponse,
    JoinRoomMessage,
    PostCommentRequest,
    Room,
    RoomListResponse,
    RoomStatus,
    WsResult,
)
