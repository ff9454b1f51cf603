from fastapi import Request

from live_comment.services.comment_service import CommentService
from live_comment.services.connection_service import ConnectionService
from live_comment.services.gateway import LocalConnectionGateway
from live_comment.services.room_service import RoomService


def get_room_service(request: Request) -> RoomService:
    return request.app.state.room_service


def get_comment_service(request: Request) -> CommentService:
    return request.app.state.comment_service


def get_connection_service(request: Request) -> ConnectionService:
    return request.app.state.connection_service


def get_local_gateway(request: Request) -> LocalConnectionGateway:
    return request.app.state.local_gateway
