"""Participant-side view reconciliation for a room."""

from .canvas import Canvas
from .session import HttpGateway, SessionClient

__all__ = ['Canvas', 'HttpGateway', 'SessionClient']
