"""Battle service: the single entry point used by HTTP routes and the CLI.

Each public method evicts stale rooms, resolves the room and runs the
operation under ``room.lock``. Listeners are notified after the lock is
released, timer transitions included.
"""
import logging
import random
from typing import Callable, List, Optional, Tuple

from mathbattle.services.problems import PROBLEMS, Problem
from .errors import NotFound, PlayerNotFound
from .models import Player, Room, now_ms
from .registry import RoomRegistry
from .rooms import RoomStateMachine
from .rounds import DEFAULT_NEXT_ROUND_DELAY_MS, RoundController
from .scheduler import RoomTimers
from .settings import BattleConfig

logger = logging.getLogger(__name__)


class BattleService:
    def __init__(self, catalog: Optional[List[Problem]] = None, timers: Optional[RoomTimers] = None,
                 clock: Callable[[], int] = now_ms, max_players: int = 24,
                 empty_room_ttl_ms: int = 10 * 60 * 1000, room_ttl_ms: int = 6 * 60 * 60 * 1000,
                 next_round_delay_ms: int = DEFAULT_NEXT_ROUND_DELAY_MS,
                 rng: Optional[random.Random] = None,
                 on_change: Optional[Callable[[str], None]] = None):
        self.clock = clock
        self.timers = timers or RoomTimers()
        self.timers.on_fired = self._notify
        self.on_change = on_change
        self.rounds = RoundController(
            PROBLEMS if catalog is None else catalog,
            self.timers,
            clock,
            next_round_delay_ms=next_round_delay_ms,
            rng=rng,
        )
        self.rooms = RoomStateMachine(self.rounds, clock, max_players=max_players)
        self.registry = RoomRegistry(
            clock,
            max_players=max_players,
            empty_room_ttl_ms=empty_room_ttl_ms,
            room_ttl_ms=room_ttl_ms,
            on_evict=self._on_evict,
        )

    @classmethod
    def from_config(cls, config, timers: RoomTimers, on_change=None, clock: Callable[[], int] = now_ms):
        return cls(
            timers=timers,
            clock=clock,
            max_players=int(config.get('BATTLE_MAX_PLAYERS', 24)),
            empty_room_ttl_ms=int(config.get('BATTLE_EMPTY_ROOM_TTL_SEC', 600)) * 1000,
            room_ttl_ms=int(config.get('BATTLE_ROOM_TTL_SEC', 21600)) * 1000,
            next_round_delay_ms=int(config.get('BATTLE_NEXT_ROUND_DELAY_MS', DEFAULT_NEXT_ROUND_DELAY_MS)),
            on_change=on_change,
        )

    # ---- operations ----

    def join(self, room_id, name, token: Optional[str] = None) -> Tuple[Room, Player, bool]:
        self.registry.evict_stale()
        room = self.registry.resolve_or_create(room_id)
        with room.lock:
            player, rejoined = self.rooms.join(room, name, token)
        self._notify(room.id)
        return room, player, rejoined

    def quick_join_target(self) -> Room:
        self.registry.evict_stale()
        room = self.registry.find_joinable_room()
        if room is None:
            raise NotFound('No joinable room is available right now.')
        return room

    def configure(self, room_id, token: Optional[str], raw) -> Tuple[Room, BattleConfig]:
        room = self._room(room_id)
        with room.lock:
            config = self.rooms.set_config(room, token, raw)
        self._notify(room.id)
        return room, config

    def start(self, room_id, token: Optional[str]) -> Room:
        room = self._room(room_id)
        with room.lock:
            self.rooms.start(room, token)
        self._notify(room.id)
        return room

    def answer(self, room_id, token: str, answers) -> Tuple[Room, dict]:
        room = self._room(room_id)
        with room.lock:
            result = self.rooms.submit_answer(room, token, answers)
        self._notify(room.id)
        return room, result

    def leave(self, room_id, token: Optional[str]) -> Room:
        room = self._room(room_id)
        with room.lock:
            player = self.rooms.leave(room, token)
        if player is not None:
            self._notify(room.id)
        return room

    def state(self, room_id, token: Optional[str] = None) -> Tuple[Room, dict]:
        """View of ``room_id``; an unknown non-empty token is rejected."""
        room = self._room(room_id)
        with room.lock:
            if token and token not in room.players:
                raise PlayerNotFound()
            return room, self.rooms.view(room, token)

    def game_view(self, room: Room, token: Optional[str] = None) -> dict:
        with room.lock:
            return self.rooms.view(room, token)

    # ---- helpers ----

    def _room(self, room_id) -> Room:
        self.registry.evict_stale()
        return self.registry.require_room(room_id)

    def _on_evict(self, room: Room) -> None:
        with room.lock:
            self.timers.cancel(room.id)

    def _notify(self, room_id: str) -> None:
        if self.on_change is None:
            return
        try:
            self.on_change(room_id)
        except Exception:
            logger.exception(f"[notify-error] room={room_id}")
