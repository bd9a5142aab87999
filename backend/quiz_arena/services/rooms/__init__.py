"""Room domain services: store, lifecycle, scoring and timers.

Imported by socket handlers and HTTP routes, keeping transport concerns
separated from core game mechanics.
"""

from .errors import RoomError
from .scheduler import RevealScheduler
from .state_machine import RoomStateMachine
from .store import RoomStore

__all__ = ['RoomError', 'RevealScheduler', 'RoomStateMachine', 'RoomStore']
