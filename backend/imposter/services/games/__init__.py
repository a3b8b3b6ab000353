"""Game domain services: roster, rounds, access list and disconnect timers.

This package contains pure(ish) domain logic used by the game session and
the Socket.IO handlers, keeping transport concerns separated from the game
mechanics.
"""

from .access import AccessGate
from .registry import SessionRegistry
from .rounds import Round, RoundEngine
