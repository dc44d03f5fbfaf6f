"""Client-side reconciliation as pure reducers.

Every input (a channel notification, a reload result, a clock tick, a failed
call) goes through a function ``(view, input) -> (view, commands)``. The view
is immutable and commands are plain values, so the whole protocol can be
exercised without a transport. Handlers never apply deltas: a notification
only ever asks for a reload, which makes duplicates and reordering harmless.
"""

from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple

from sketchguess.errors import GameError, InvalidTransition, NotFound, TransientIO, Unauthorized
from sketchguess.services.games.channels import CHAT, DRAWING, ROOM
from sketchguess.services.games.scoring import seconds_left


@dataclass(frozen=True)
class ReloadRoom:
    pass


@dataclass(frozen=True)
class ReloadStrokes:
    round_number: int


@dataclass(frozen=True)
class ReloadMessages:
    pass


@dataclass(frozen=True)
class RequestAdvance:
    expected_round: int


@dataclass(frozen=True)
class ShowNotice:
    text: str
    level: str = 'info'


READ_COMMANDS = (ReloadRoom, ReloadStrokes, ReloadMessages)


@dataclass(frozen=True)
class Notification:
    kind: str
    event_type: str
    payload: dict = field(default_factory=dict)


@dataclass(frozen=True)
class RoomView:
    room_code: str
    user_id: Optional[int] = None
    room: Optional[dict] = None
    strokes: Tuple[dict, ...] = ()
    strokes_round: Optional[int] = None
    messages: Tuple[dict, ...] = ()
    time_left: int = 0
    celebrating: bool = False
    winners: Tuple[int, ...] = ()
    advance_requested_for: Optional[int] = None
    notice: Optional[str] = None
    not_found: bool = False

    @property
    def state(self) -> Optional[str]:
        return self.room['state'] if self.room else None

    @property
    def current_round(self) -> int:
        return self.room['current_round'] if self.room else 0

    @property
    def player_id(self) -> Optional[int]:
        return self.room.get('viewer_player_id') if self.room else None

    @property
    def players(self) -> Tuple[dict, ...]:
        return tuple(self.room.get('players') or ()) if self.room else ()

    @property
    def is_drawer(self) -> bool:
        return bool(self.room) and self.player_id is not None \
            and self.room.get('current_drawer_id') == self.player_id

    @property
    def can_draw(self) -> bool:
        return self.is_drawer and self.state == 'playing'

    @property
    def can_guess(self) -> bool:
        return self.state == 'playing' and self.player_id is not None and not self.is_drawer


def _dedupe(commands) -> List:
    out = []
    for c in commands:
        if c not in out:
            out.append(c)
    return out


def on_notification(view: RoomView, note: Notification):
    if view.room is None:
        return view, [ReloadRoom()]

    if note.kind == ROOM:
        if note.event_type == 'round_end' and note.payload.get('round_number') == view.current_round:
            winners = tuple(note.payload.get('winners') or ())
            return replace(view, celebrating=True, winners=winners), [ReloadRoom()]
        if note.event_type == 'correct_guess':
            name = note.payload.get('display_name') or 'Someone'
            return replace(view, notice=f'{name} guessed correctly!'), [ReloadRoom()]
        return view, [ReloadRoom()]

    if note.kind == DRAWING:
        # Hints may be stale or out of order; always reload the active round.
        return view, [ReloadStrokes(view.current_round)]

    if note.kind == CHAT:
        return view, [ReloadMessages()]

    return view, []


def on_room_loaded(view: RoomView, room: dict, now_ms: int):
    commands = []
    previous_round = view.current_round if view.room else None
    view = replace(view, room=room, not_found=False)

    if previous_round is None or room['current_round'] != previous_round:
        view = replace(view, strokes=(), strokes_round=None, celebrating=False, winners=())
        commands.append(ReloadStrokes(room['current_round']))
        if previous_round is None:
            commands.append(ReloadMessages())

    if room['state'] != 'playing':
        view = replace(view, celebrating=False)

    return replace(view, time_left=_time_left(room, now_ms)), _dedupe(commands)


def _time_left(room: Optional[dict], now_ms: int) -> int:
    if not room or room.get('state') != 'playing':
        return 0
    return seconds_left(room['round_duration'], room.get('round_started_at_ms'), now_ms)


def on_strokes_loaded(view: RoomView, round_number: int, strokes):
    if round_number != view.current_round:
        # A response for a round we already left.
        return view, []
    return replace(view, strokes=tuple(strokes), strokes_round=round_number), []


def on_messages_loaded(view: RoomView, messages):
    return replace(view, messages=tuple(messages)), []


def on_tick(view: RoomView, now_ms: int):
    time_left = _time_left(view.room, now_ms)
    view = replace(view, time_left=time_left)
    if (
        view.state == 'playing'
        and time_left == 0
        and view.player_id is not None
        and view.advance_requested_for != view.current_round
    ):
        # Any participant may call time; the server guard drops duplicates.
        view = replace(view, advance_requested_for=view.current_round)
        return view, [RequestAdvance(view.current_round)]
    return view, []


def on_error(view: RoomView, error: GameError, command=None):
    is_read = isinstance(command, READ_COMMANDS)
    if isinstance(command, RequestAdvance) and view.advance_requested_for == command.expected_round:
        # The request did not land; let the next tick ask again.
        view = replace(view, advance_requested_for=None)
        if error.code == 'round_active':
            # Our clock ran ahead of the server's.
            return view, [ReloadRoom()]
    if isinstance(error, NotFound) and (is_read or error.code == 'room_not_found'):
        return replace(view, not_found=True, notice='Room not found'), []
    if isinstance(error, TransientIO):
        if is_read:
            # The next notification retries the read.
            return view, []
        return replace(view, notice=error.message), [ShowNotice(error.message, level='warning')]
    if isinstance(error, (InvalidTransition, Unauthorized)):
        return replace(view, notice=error.message), [ReloadRoom(), ShowNotice(error.message, level='warning')]
    return replace(view, notice=error.message), [ShowNotice(error.message, level='error')]
