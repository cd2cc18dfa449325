from flask_socketio import join_room, leave_room, emit
from flask import current_app
from league import socketio

NAMESPACE = '/ws'

SCORE_UPDATED = 'SCORE_UPDATED'
LEADERBOARD_UPDATED = 'LEADERBOARD_UPDATED'
ROUND_COMPLETED = 'ROUND_COMPLETED'
PUTT_OFF_UPDATED = 'PUTT_OFF_UPDATED'
CARDS_UPDATED = 'CARDS_UPDATED'


def room_for(league_night_id) -> str:
    return f"night:{league_night_id}"


def notify(league_night_id, event_type: str, payload=None) -> None:
    """Push a league night update to everyone watching that night.

    Fire-and-forget: a failed emit is logged, never raised to the caller.
    """
    try:
        socketio.emit(
            'state_update',
            {'type': event_type, 'league_night_id': league_night_id, 'payload': payload or {}},
            to=room_for(league_night_id),
            namespace=NAMESPACE,
        )
    except Exception as exc:
        current_app.logger.warning(f"[notify-failed] night={league_night_id} type={event_type}: {exc}")


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_night(data):
    league_night_id = (data or {}).get('league_night_id')
    if league_night_id is None:
        emit('error', {'message': 'league_night_id is required'})
        return
    room = room_for(league_night_id)
    join_room(room)
    emit('joined', {'room': room})


def handle_leave_night(data):
    league_night_id = (data or {}).get('league_night_id')
    if league_night_id is None:
        emit('error', {'message': 'league_night_id is required'})
        return
    room = room_for(league_night_id)
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('join_night', handle_join_night, namespace=NAMESPACE)
    socketio.on_event('leave_night', handle_leave_night, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)

    if testing:
        # Test-only mirror on default namespace
        socketio.on_event('connect', handle_connect, namespace='/')
        socketio.on_event('join_night', handle_join_night, namespace='/')
        socketio.on_event('leave_night', handle_leave_night, namespace='/')
        socketio.on_event('ping', handle_ping, namespace='/')
