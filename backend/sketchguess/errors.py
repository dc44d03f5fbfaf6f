"""Error taxonomy shared by the game services, the HTTP API and the client.

Every error carries a short machine-readable ``code`` and the HTTP status the
API answers with, so the client can map a response back to the same class.
"""


class GameError(Exception):
    status_code = 400
    code = 'game_error'

    def __init__(self, message=None, code=None):
        super().__init__(message or self.code)
        self.message = message or self.code
        if code:
            self.code = code

    def to_dict(self):
        return {'error': self.code, 'message': self.message}


class InvalidTransition(GameError):
    """A round-engine precondition no longer holds (stale or illegal view)."""
    status_code = 409
    code = 'invalid_transition'


class Unauthorized(GameError):
    """Action attempted by the wrong role, e.g. a stroke from a non-drawer."""
    status_code = 403
    code = 'unauthorized'


class NotFound(GameError):
    status_code = 404
    code = 'not_found'


class TransientIO(GameError):
    """The store or channel call failed; safe to retry on the next reload."""
    status_code = 503
    code = 'transient_io'


class InvalidPayload(GameError):
    status_code = 400
    code = 'invalid_payload'


_BY_STATUS = {cls.status_code: cls for cls in (InvalidTransition, Unauthorized, NotFound, TransientIO, InvalidPayload)}


def error_from_response(status_code, body):
    """Rebuild the matching GameError from an API error response."""
    body = body or {}
    cls = _BY_STATUS.get(status_code, GameError)
    return cls(body.get('message'), code=body.get('error'))
