"""Player sessions: join, reconnect by token, leave and host hand-over."""
import logging
import re
import secrets
from typing import Optional, Tuple

from .errors import RoomFull
from .models import Player, Room

logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 24

_CONTROL_CHARS = re.compile(r'[\x00-\x1f\x7f]')
_WHITESPACE = re.compile(r'\s+')


def sanitize_name(raw, seq: int) -> str:
    """Trim, collapse whitespace and cap the length; ``Player N`` when blank."""
    name = raw if isinstance(raw, str) else ''
    name = _CONTROL_CHARS.sub(' ', name)
    name = _WHITESPACE.sub(' ', name).strip()[:NAME_MAX_LENGTH].strip()
    return name or f'Player {seq}'


def generate_token() -> str:
    return secrets.token_hex(16)


def format_player_id(seq: int) -> str:
    return f'P{seq:02d}'


def join_player(room: Room, name, token: Optional[str], now: int, max_players: int) -> Tuple[Player, bool]:
    """Add a player to ``room`` or reconnect an existing one.

    Returns ``(player, rejoined)``. A reconnecting token keeps its id, score
    and history; only the display name (when given) and ``last_seen_at``
    change.
    """
    existing = room.players.get(token) if token else None
    if existing:
        if isinstance(name, str) and name.strip():
            existing.name = sanitize_name(name, existing.seq)
        existing.last_seen_at = now
        logger.info(f"[player-rejoin] room={room.id} player={existing.id}")
        return existing, True

    if len(room.players) >= max_players:
        raise RoomFull(f'Room {room.id} is full ({max_players} players).')

    seq = room.next_player_seq
    room.next_player_seq += 1
    player = Player(
        id=format_player_id(seq),
        token=generate_token(),
        name=sanitize_name(name, seq),
        seq=seq,
        joined_at=now,
        last_seen_at=now,
    )
    room.players[player.token] = player
    if room.host_token is None:
        room.host_token = player.token
    logger.info(
        f"[player-join] room={room.id} player={player.id} host={room.host_token == player.token} "
        f"count={len(room.players)}"
    )
    return player, False


def remove_player(room: Room, token: str) -> Optional[Player]:
    """Drop ``token`` from the room, handing host to the earliest joiner left."""
    player = room.players.pop(token, None)
    if player is None:
        return None
    if room.host_token == token:
        remaining = room.players_by_join()
        room.host_token = remaining[0].token if remaining else None
        new_host = room.host
        logger.info(
            f"[host-change] room={room.id} from={player.id} to={new_host.id if new_host else None}"
        )
    logger.info(f"[player-leave] room={room.id} player={player.id} count={len(room.players)}")
    return player
