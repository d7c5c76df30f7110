"""Room state machine: waiting -> active -> results (and back via restart).

Callers hold ``room.lock`` for the duration of each method.
"""
import logging
from typing import Callable, Optional, Tuple

from .errors import AlreadyActive, Forbidden, InvalidConfig, NoPlayers, StartFailed
from .models import ROOM_ACTIVE, Player, Room
from .players import join_player, remove_player
from .rounds import RoundController
from .settings import DEFAULT_CONFIG, BattleConfig, normalize_config
from .views import build_game_view

logger = logging.getLogger(__name__)


class RoomStateMachine:
    def __init__(self, rounds: RoundController, clock: Callable[[], int], max_players: int = 24):
        self.rounds = rounds
        self.clock = clock
        self.max_players = max_players

    def join(self, room: Room, name, token: Optional[str]) -> Tuple[Player, bool]:
        now = self.clock()
        was_empty = not room.players
        player, rejoined = join_player(room, name, token, now, self.max_players)
        room.touch(now)
        if was_empty and room.state == ROOM_ACTIVE:
            self.rounds.resume(room)
        return player, rejoined

    def set_config(self, room: Room, token: Optional[str], raw) -> BattleConfig:
        self._require_host(room, token)
        if room.state == ROOM_ACTIVE:
            raise InvalidConfig()
        config = normalize_config(raw)
        room.config = config
        room.touch(self.clock())
        logger.info(f"[room-config] room={room.id} config={config.to_dict()}")
        return config

    def start(self, room: Room, token: Optional[str]) -> Room:
        self._require_host(room, token)
        if not room.players:
            raise NoPlayers()
        if room.state == ROOM_ACTIVE:
            raise AlreadyActive()
        if not self.rounds.catalog:
            raise StartFailed('The problem catalog is empty.')

        now = self.clock()
        if room.config is None:
            room.config = DEFAULT_CONFIG
        room.history = []
        room.used_problem_ids.clear()
        for player in room.players.values():
            player.reset_stats()
        room.round = None
        room.started_at = now
        room.finished_at = None
        room.touch(now)
        logger.info(f"[game-start] room={room.id} players={len(room.players)} config={room.config.to_dict()}")

        if not self.rounds.begin(room):
            raise StartFailed()
        return room

    def submit_answer(self, room: Room, token: str, answers) -> dict:
        return self.rounds.submit(room, token, answers)

    def leave(self, room: Room, token: Optional[str]) -> Optional[Player]:
        now = self.clock()
        room.touch(now)
        player = remove_player(room, token) if token else None
        if player is not None and not room.players:
            self.rounds.halt(room)
        return player

    def view(self, room: Room, viewer_token: Optional[str] = None) -> dict:
        now = self.clock()
        viewer = room.players.get(viewer_token) if viewer_token else None
        if viewer is not None:
            viewer.last_seen_at = now
        room.touch(now)
        return build_game_view(room, viewer, now, self.max_players)

    def _require_host(self, room: Room, token: Optional[str]) -> None:
        if not token or token != room.host_token:
            raise Forbidden()
