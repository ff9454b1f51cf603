"""
live_comment.api.rooms
~~~~~~~~~~~~~~~~~~~~~~

房间 REST 接口 —— 创建、按主持人查询、关闭。

端点:
  - ``POST  /rooms``              → 创建房间
  - ``GET   /rooms?hostId=``      → 查询主持人的房间
  - ``PATCH /rooms/{room_id}``    → 主持人关闭房间
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from live_comment.api.deps import get_room_service
from live_comment.schemas.live_comment import (
    CloseRoomRequest,
    CloseRoomResponse,
    CreateRoomRequest,
    CreateRoomResponse,
    RoomListResponse,
)
from live_comment.services.room_service import RoomService

router: APIRouter = APIRouter()


@router.post(
    "/rooms",
    summary="创建房间",
    status_code=201,
    response_model=CreateRoomResponse,
)
async def create_room(
    body: CreateRoomRequest | None = None,
    service: RoomService = Depends(get_room_service),
) -> CreateRoomResponse:
    """创建一个新房间，初始状态为 ``OPEN``。"""
    body = body or CreateRoomRequest()
    room = await service.create_room(body.name, body.host_id)
    return CreateRoomResponse(
        room_id=room.room_id,
        name=room.name,
        host_id=room.host_id,
        status=room.status,
        created_at=room.created_at,
    )


@router.get("/rooms", summary="查询主持人的房间", response_model=RoomListResponse)
async def list_rooms(
    host_id: str | None = Query(None, alias="hostId", description="主持人标识"),
    service: RoomService = Depends(get_room_service),
) -> RoomListResponse:
    """返回指定主持人创建的全部房间，没有时返回空列表。"""
    rooms = await service.list_rooms_by_host(host_id)
    return RoomListResponse(rooms=rooms)


@router.patch("/rooms/{room_id}", summary="关闭房间", response_model=CloseRoomResponse)
async def close_room(
    room_id: str,
    body: CloseRoomRequest | None = None,
    service: RoomService = Depends(get_room_service),
) -> CloseRoomResponse:
    """将房间状态改为 ``CLOSED``，仅房间主持人可操作。

    Args:
        room_id: 房间唯一标识。
        body: 包含调用方 ``hostId`` 的请求体。
    """
    body = body or CloseRoomRequest()
    return await service.close_room(room_id, body.host_id)
