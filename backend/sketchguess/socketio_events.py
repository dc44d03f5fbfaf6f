from flask import current_app, request
from flask_socketio import emit, join_room, leave_room
from typing import Dict, Set

from sketchguess import socketio
from sketchguess.errors import NotFound
from sketchguess.services.games.channels import KINDS, NAMESPACE, channel_name
from sketchguess.services.games.store import get_room_or_404


_sid_to_channels: Dict[str, Set[str]] = {}


def _get_sid() -> str:
    return request.sid  # type: ignore[attr-defined]


def _requested_channels(data):
    """Channel names for a subscribe/unsubscribe payload, or None if the room is unknown."""
    payload = data or {}
    room_code = payload.get('room_code')
    try:
        room = get_room_or_404(room_code)
    except NotFound:
        emit('error', {'error': 'room_not_found', 'message': 'Room not found'})
        return None
    kinds = payload.get('channels') or list(KINDS)
    if not isinstance(kinds, list) or any(k not in KINDS for k in kinds):
        emit('error', {'error': 'invalid_channels', 'message': f'channels must be a subset of {list(KINDS)}'})
        return None
    return [channel_name(k, room.id) for k in kinds]


def handle_connect():
    _sid_to_channels[_get_sid()] = set()
    emit('connected', {'message': f'Connected to {NAMESPACE}'})


def handle_disconnect(*args):
    # Socket.IO drops room membership itself; only our bookkeeping is left.
    _sid_to_channels.pop(_get_sid(), None)


def handle_subscribe(data):
    names = _requested_channels(data)
    if names is None:
        return
    joined = _sid_to_channels.setdefault(_get_sid(), set())
    for name in names:
        join_room(name)
        joined.add(name)
    current_app.logger.info(f"[subscribe] sid={_get_sid()} channels={names}")
    emit('subscribed', {'channels': names})


def handle_unsubscribe(data):
    names = _requested_channels(data)
    if names is None:
        return
    joined = _sid_to_channels.get(_get_sid(), set())
    for name in names:
        leave_room(name)
        joined.discard(name)
    emit('unsubscribed', {'channels': names})


def handle_ping(data):
    emit('pong', data or {})


def subscriptions_for(sid: str) -> Set[str]:
    return set(_sid_to_channels.get(sid, set()))


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on the '/ws' namespace."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('subscribe', handle_subscribe, namespace=NAMESPACE)
    socketio.on_event('unsubscribe', handle_unsubscribe, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)
