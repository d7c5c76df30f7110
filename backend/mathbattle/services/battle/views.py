"""Per-viewer JSON projection of a room (the ``game`` object clients render)."""
import math
from typing import Optional

from .models import ROOM_ACTIVE, ROOM_RESULTS, Player, Room, Round
from .scoring import final_results
from .settings import DEFAULT_CONFIG

HISTORY_LIMIT = 10


def _round_view(round_: Optional[Round], viewer: Optional[Player], now: int) -> Optional[dict]:
    if round_ is None:
        return None
    remaining = 0
    if round_.is_active:
        remaining = max(0, math.ceil((round_.ends_at - now) / 1000))
    return {
        'index': round_.index,
        'status': round_.status,
        'startedAt': round_.started_at,
        'endsAt': round_.ends_at,
        'remainingSeconds': remaining,
        'problem': round_.problem.public_dict(),
        'correct': [w.to_dict() for w in round_.correct],
        'myAttempts': [a.to_dict() for a in round_.attempts_for(viewer.token)] if viewer else [],
        'finishReason': round_.finish_reason,
        'finishedAt': round_.finished_at,
        'nextStartAt': round_.next_start_at,
    }


def build_game_view(room: Room, viewer: Optional[Player], now: int, max_players: int) -> dict:
    host = room.host
    config = room.config
    locked = room.state == ROOM_ACTIVE

    me = None
    if viewer is not None:
        me = viewer.to_dict(is_host=viewer.token == room.host_token)
        me['correctCount'] = viewer.correct_count
        me['wrongCount'] = viewer.wrong_count

    return {
        'id': room.id,
        'state': room.state,
        'createdAt': room.created_at,
        'updatedAt': room.updated_at,
        'startedAt': room.started_at,
        'finishedAt': room.finished_at,
        'serverTime': now,
        'config': config.to_dict() if config else None,
        'defaultConfig': DEFAULT_CONFIG.to_dict(),
        'players': [p.to_dict(is_host=p.token == room.host_token) for p in room.leaderboard()],
        'me': me,
        'hostId': host.id if host else None,
        'round': _round_view(room.round, viewer, now),
        'history': room.history[-HISTORY_LIMIT:],
        'totals': {
            'roundsPlanned': config.rounds if config else None,
            'roundsPlayed': len(room.history),
            'playerCount': len(room.players),
            'maxPlayers': max_players,
        },
        'results': final_results(room) if room.state == ROOM_RESULTS else None,
        'settingsLocked': locked,
        'canEditSettings': bool(me and me['isHost'] and not locked),
    }
