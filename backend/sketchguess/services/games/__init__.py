"""Game domain services: rounds, drawing, chat, scoring and timers.

This package contains the domain logic imported by HTTP routes and socket
handlers, keeping transport concerns separated from core game mechanics.
"""
