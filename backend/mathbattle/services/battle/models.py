import random
import string
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from mathbattle.services.problems import Problem
from .settings import BattleConfig

ROOM_WAITING = 'waiting'
ROOM_ACTIVE = 'active'
ROOM_RESULTS = 'results'

ROUND_ACTIVE = 'active'
ROUND_FINISHED = 'finished'

FINISH_TIME = 'time'
FINISH_MAX_CORRECT = 'max_correct'


def now_ms() -> int:
    return int(time.time() * 1000)


def generate_room_id(length=6):
    """Random room code; uniqueness is checked by the registry."""
    return ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))


@dataclass
class Player:
    id: str
    token: str
    name: str
    seq: int
    joined_at: int
    last_seen_at: int
    score: int = 0
    correct_count: int = 0
    wrong_count: int = 0

    def reset_stats(self) -> None:
        self.score = 0
        self.correct_count = 0
        self.wrong_count = 0

    def to_dict(self, is_host: bool = False) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'score': self.score,
            'isHost': is_host,
            'joinedAt': self.joined_at,
        }


@dataclass
class Attempt:
    token: str
    at: int
    correct: bool
    placement: Optional[int] = None
    awarded: Optional[int] = None
    penalty: Optional[int] = None
    message: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'at': self.at,
            'correct': self.correct,
            'placement': self.placement,
            'awarded': self.awarded,
            'penalty': self.penalty,
            'message': self.message,
        }


@dataclass
class Winner:
    token: str
    player_id: str
    name: str
    placement: int
    awarded: int
    at: int
    elapsed_ms: int

    def to_dict(self) -> dict:
        return {
            'playerId': self.player_id,
            'name': self.name,
            'placement': self.placement,
            'awarded': self.awarded,
            'at': self.at,
            'elapsedMs': self.elapsed_ms,
        }


@dataclass
class Round:
    index: int
    problem: Problem
    started_at: int
    ends_at: int
    status: str = ROUND_ACTIVE
    attempts: List[Attempt] = field(default_factory=list)
    correct: List[Winner] = field(default_factory=list)
    finish_reason: Optional[str] = None
    finished_at: Optional[int] = None
    next_start_at: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return self.status == ROUND_ACTIVE

    def has_solved(self, token: str) -> bool:
        return any(w.token == token for w in self.correct)

    def attempts_for(self, token: str) -> List[Attempt]:
        return [a for a in self.attempts if a.token == token]


@dataclass
class Room:
    id: str
    created_at: int
    updated_at: int
    state: str = ROOM_WAITING
    host_token: Optional[str] = None
    config: Optional[BattleConfig] = None
    players: Dict[str, Player] = field(default_factory=dict)
    next_player_seq: int = 1
    used_problem_ids: Set[str] = field(default_factory=set)
    round: Optional[Round] = None
    history: List[dict] = field(default_factory=list)
    started_at: Optional[int] = None
    finished_at: Optional[int] = None
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    def touch(self, now: int) -> None:
        self.updated_at = now

    @property
    def host(self) -> Optional[Player]:
        return self.players.get(self.host_token) if self.host_token else None

    def players_by_join(self) -> List[Player]:
        return sorted(self.players.values(), key=lambda p: (p.joined_at, p.seq))

    def leaderboard(self) -> List[Player]:
        return sorted(self.players.values(), key=lambda p: (-p.score, p.joined_at, p.seq))
