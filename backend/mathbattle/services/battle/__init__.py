"""Battle room engine: rooms, players, timed rounds and scoring.

Everything here is transport agnostic and memory resident. The HTTP routes
in ``mathbattle.api.battle`` and the Socket.IO handlers only talk to
``BattleService``.
"""

from .service import BattleService
from .scheduler import RoomTimers

__all__ = ['BattleService', 'RoomTimers']
