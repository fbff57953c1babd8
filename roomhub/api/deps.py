from fastapi.requests import HTTPConnection

from roomhub.services.room_service import RoomService


def get_room_service(conn: HTTPConnection) -> RoomService:
    return conn.app.state.room_service
