"""Per-room notification channels.

Every authoritative write is followed by a publish that only says *what*
changed; subscribers reload the aggregate themselves. Delivery is
best-effort, so nothing here may be relied on for state.
"""

from flask import current_app

from sketchguess import socketio

NAMESPACE = '/ws'

ROOM = 'room'
DRAWING = 'drawing'
CHAT = 'chat'
KINDS = (ROOM, DRAWING, CHAT)


def channel_name(kind: str, room_id: int) -> str:
    if kind not in KINDS:
        raise ValueError(f'unknown channel kind: {kind}')
    return f"{kind}:{room_id}"


def parse_channel(name: str):
    """Split ``room:12`` into ``('room', 12)``; None for anything else."""
    kind, _, raw_id = (name or '').partition(':')
    if kind not in KINDS or not raw_id.isdigit():
        return None
    return kind, int(raw_id)


def publish(kind: str, room, event_type: str, payload=None) -> None:
    hint = {'room_id': room.id, 'room_code': room.room_code}
    hint.update(payload or {})
    channel = channel_name(kind, room.id)
    try:
        socketio.emit(event_type, hint, to=channel, namespace=NAMESPACE)
    except Exception as exc:
        # The write already committed; the next reload trigger catches subscribers up.
        current_app.logger.warning(f"[publish-failed] channel={channel} event={event_type} error={exc}")
