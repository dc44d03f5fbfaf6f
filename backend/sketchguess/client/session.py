import logging
import time
from typing import Callable, List, Optional

import requests

from sketchguess.errors import GameError, TransientIO, error_from_response
from .canvas import Canvas
from . import view as v

logger = logging.getLogger(__name__)


def _clock_ms() -> int:
    return int(time.time() * 1000)


class HttpGateway:
    """Talks to the REST API; any HTTP error comes back as the matching GameError."""

    def __init__(self, base_url: str, session: Optional[requests.Session] = None, timeout: float = 10.0):
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout

    def _call(self, method: str, path: str, **kwargs):
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise TransientIO(f'{method} {path} failed: {exc}') from exc
        if resp.status_code >= 400:
            try:
                body = resp.json()
            except ValueError:
                body = {}
            raise error_from_response(resp.status_code, body)
        return resp.json()

    def login(self, username, password):
        return self._call('POST', '/auth/login', json={'username': username, 'password': password})

    def fetch_room(self, code):
        return self._call('GET', f'/api/rooms/{code}')

    def fetch_strokes(self, code, round_number):
        return self._call('GET', f'/api/rooms/{code}/strokes', params={'round': round_number})['strokes']

    def fetch_messages(self, code):
        return self._call('GET', f'/api/rooms/{code}/messages')['messages']

    def join(self, code):
        return self._call('POST', f'/api/rooms/{code}/join')

    def start(self, code):
        return self._call('POST', f'/api/rooms/{code}/start')

    def advance(self, code, expected_round):
        return self._call('POST', f'/api/rooms/{code}/advance', json={'expected_round': expected_round})

    def add_stroke(self, code, stroke):
        return self._call('POST', f'/api/rooms/{code}/strokes', json=stroke)

    def undo(self, code):
        return self._call('POST', f'/api/rooms/{code}/strokes/undo')

    def clear(self, code):
        return self._call('POST', f'/api/rooms/{code}/strokes/clear')

    def send_message(self, code, text):
        return self._call('POST', f'/api/rooms/{code}/messages', json={'text': text})


class SessionClient:
    """Drives one participant's view of a room.

    Feed it notifications from any transport via :meth:`dispatch` (or the
    callables from :meth:`handler_for`) and call :meth:`tick` from a timer.
    """

    def __init__(self, gateway, room_code: str, clock: Callable[[], int] = _clock_ms,
                 canvas: Optional[Canvas] = None, on_notice: Optional[Callable] = None):
        self.gateway = gateway
        self.clock = clock
        self.canvas = canvas or Canvas()
        self.on_notice = on_notice
        self.view = v.RoomView(room_code=room_code.upper())
        self._rendered = None

    @property
    def room_code(self):
        return self.view.room_code

    def refresh(self) -> v.RoomView:
        self._run([v.ReloadRoom()])
        return self.view

    def dispatch(self, kind: str, event_type: str, payload=None) -> v.RoomView:
        self.view, commands = v.on_notification(self.view, v.Notification(kind, event_type, payload or {}))
        self._run(commands)
        return self.view

    def handler_for(self, kind: str):
        return lambda event_type, payload=None: self.dispatch(kind, event_type, payload)

    def tick(self) -> v.RoomView:
        self.view, commands = v.on_tick(self.view, self.clock())
        self._run(commands)
        return self.view

    def join(self):
        return self._write(lambda: self.gateway.join(self.room_code), [v.ReloadRoom()])

    def start(self):
        return self._write(lambda: self.gateway.start(self.room_code), [v.ReloadRoom()])

    def send_message(self, text: str):
        if self.view.is_drawer and self.view.state == 'playing':
            return None
        return self._write(lambda: self.gateway.send_message(self.room_code, text), [v.ReloadMessages()])

    def draw(self, points, color='#000000', width=5, is_eraser=False):
        if not self.view.can_draw:
            return None
        stroke = {
            'points': [list(p) for p in points],
            'color': color,
            'width': width,
            'is_eraser': is_eraser,
            'round_number': self.view.current_round,
        }
        return self._write(lambda: self.gateway.add_stroke(self.room_code, stroke),
                           [v.ReloadStrokes(self.view.current_round)])

    def undo(self):
        return self._write(lambda: self.gateway.undo(self.room_code), [v.ReloadStrokes(self.view.current_round)])

    def clear(self):
        return self._write(lambda: self.gateway.clear(self.room_code), [v.ReloadStrokes(self.view.current_round)])

    def _write(self, call, follow_up):
        try:
            result = call()
        except GameError as exc:
            self.view, commands = v.on_error(self.view, exc)
            self._run(commands)
            return None
        self._run(follow_up)
        return result

    def _run(self, commands: List) -> None:
        queue = list(commands)
        while queue:
            command = queue.pop(0)
            try:
                more = self._execute(command)
            except GameError as exc:
                logger.info('command %s failed: %s', command, exc)
                self.view, more = v.on_error(self.view, exc, command)
            queue.extend(c for c in more if c not in queue)
        self._render()

    def _execute(self, command) -> List:
        code = self.room_code
        if isinstance(command, v.ReloadRoom):
            self.view, more = v.on_room_loaded(self.view, self.gateway.fetch_room(code), self.clock())
            return more
        if isinstance(command, v.ReloadStrokes):
            strokes = self.gateway.fetch_strokes(code, command.round_number)
            self.view, more = v.on_strokes_loaded(self.view, command.round_number, strokes)
            return more
        if isinstance(command, v.ReloadMessages):
            self.view, more = v.on_messages_loaded(self.view, self.gateway.fetch_messages(code))
            return more
        if isinstance(command, v.RequestAdvance):
            self.gateway.advance(code, command.expected_round)
            return [v.ReloadRoom()]
        if isinstance(command, v.ShowNotice):
            if self.on_notice:
                self.on_notice(command.text, command.level)
            return []
        raise TypeError(f'unknown command: {command!r}')

    def _render(self) -> None:
        key = (self.view.strokes_round, tuple(s.get('id') for s in self.view.strokes))
        if key != self._rendered:
            self.canvas.replay(self.view.strokes)
            self._rendered = key
